"""
API Gateway Service package for the Music Access Gateway.

The gateway gives clients one interface over the netease, qq and kuwo
music backends, enforcing:
- Rate limiting: in-memory per-client minute windows
- Method configs: upstream call shapes fetched from TuneHub per call
- Normalization: backend payloads mapped to canonical songs, charts, playlists
- Search fallback across sources in a fixed order

Structure:
- app.main: FastAPI app, routes, and middleware wiring.
- app.adapters: HTTP clients for TuneHub and the music backends.
- app.domain: Templates, request building, transformers, search fallback.
- app.ratelimit: Per-minute window limiter and client identity.
- app.assets: Static UI files with single-page-app fallback.
"""
