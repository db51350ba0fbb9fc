"""
Domain logic for the Gateway Service.

Pure request processing (template resolution, request building, payload
normalization) plus the dispatcher and search fallback that drive the
adapters.
"""

from .models import CallVars, Function, MethodConfig, Playlist, PlaylistInfo, Song, Source, ToplistEntry
from .request_builder import build_upstream_request
from .templates import evaluate, resolve
from .transformers import transform

__all__ = [
    "CallVars",
    "Function",
    "MethodConfig",
    "Playlist",
    "PlaylistInfo",
    "Song",
    "Source",
    "ToplistEntry",
    "build_upstream_request",
    "evaluate",
    "resolve",
    "transform",
]
