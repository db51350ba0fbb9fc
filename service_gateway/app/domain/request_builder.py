"""
Turns a method config plus call vars into a concrete request descriptor.

Pure transformation: no network I/O happens here.
"""

from __future__ import annotations

import json
from typing import Any, Dict

import httpx

from .models import MethodConfig, RequestDescriptor
from .templates import VarsLike, resolve, stringify


def _has_content_type(headers: Dict[str, str]) -> bool:
    return any(key.lower() == "content-type" for key in headers)


def build_upstream_request(config: MethodConfig, vars: VarsLike) -> RequestDescriptor:
    """Build the request an upstream call should make."""
    method = (config.method or "GET").upper()
    headers: Dict[str, str] = {key: stringify(value) for key, value in (config.headers or {}).items()}

    url = httpx.URL(config.url)
    if config.params:
        params: Dict[str, Any] = resolve(config.params, vars)
        for key, value in params.items():
            if value is None or value == "":
                continue
            url = url.copy_set_param(key, stringify(value))

    body = None
    if config.body is not None:
        resolved_body = resolve(config.body, vars)
        body = json.dumps(resolved_body, ensure_ascii=False, separators=(",", ":"))
        if not _has_content_type(headers):
            headers["Content-Type"] = "application/json"

    return RequestDescriptor(url=str(url), method=method, headers=headers, body=body)
