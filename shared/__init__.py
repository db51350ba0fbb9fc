"""
Shared utilities for the Music Access Gateway.

This package aggregates common building blocks consumed by the services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and the JSON error envelope
- base_service: FastAPI scaffolding (middleware, health, error handlers)

Do not import from service packages into shared/.
"""
