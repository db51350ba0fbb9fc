"""
Template resolution for method configs.

Method configs carry ``{{expr}}`` placeholders inside their ``params`` and
``body``. Only a closed set of expressions is understood; each one maps to a
pure function of the call vars. Anything outside that set is looked up
literally in the vars and otherwise resolves to an empty string. Nothing is
ever evaluated as code.
"""

from __future__ import annotations

import math
import re
from typing import Any, Callable, Dict, Mapping, Union

from .models import CallVars

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
DEFAULT_PAGE_SIZE = 20

_PLACEHOLDER = re.compile(r"\{\{([^{}]+)\}\}")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_WHITESPACE = re.compile(r"\s+")

VarsLike = Union[CallVars, Mapping[str, Any]]


def to_number(value: Any, default: Union[int, float]) -> Union[int, float]:
    """Best-effort numeric coercion; integral values come back as ``int``."""
    if value is None or value == "":
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return int(number) if number.is_integer() else number


def parse_leading_int(value: Any) -> int:
    """Parse the integer prefix of ``value`` the way ``parseInt`` would, else 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else 0


def _page(vars: Mapping[str, Any]) -> Union[int, float]:
    return to_number(vars.get("page"), DEFAULT_PAGE)


def _limit(vars: Mapping[str, Any]) -> Union[int, float]:
    return to_number(vars.get("limit"), DEFAULT_LIMIT)


EXPRESSIONS: Dict[str, Callable[[Mapping[str, Any]], Any]] = {
    "keyword": lambda vars: vars.get("keyword") or "",
    "id": lambda vars: vars.get("id") or "",
    "ids": lambda vars: vars.get("ids") or "",
    "page": _page,
    "page||1": _page,
    "limit": _limit,
    "limit||20": _limit,
    "pageSize": lambda vars: to_number(vars.get("pageSize"), DEFAULT_PAGE_SIZE),
    "(page||1)-1": lambda vars: _page(vars) - 1,
    "((page||1)-1)*(limit||20)": lambda vars: (_page(vars) - 1) * _limit(vars),
    "parseInt(id)": lambda vars: parse_leading_int(vars.get("id")),
}


def _as_mapping(vars: VarsLike) -> Mapping[str, Any]:
    if isinstance(vars, CallVars):
        return vars.as_template_vars()
    return vars or {}


def stringify(value: Any) -> str:
    """String form used for interpolation and query strings."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def evaluate(expression: str, vars: VarsLike) -> Any:
    """Evaluate one placeholder expression against the call vars."""
    mapping = _as_mapping(vars)
    expr = _WHITESPACE.sub("", str(expression or ""))

    handler = EXPRESSIONS.get(expr)
    if handler is not None:
        return handler(mapping)
    if expr in mapping:
        return mapping[expr]
    return ""


def resolve(value: Any, vars: VarsLike) -> Any:
    """Resolve placeholders recursively through mappings and sequences.

    A string that is exactly one placeholder keeps the expression's native
    type; placeholders embedded in text are interpolated as strings.
    """
    mapping = _as_mapping(vars)

    if isinstance(value, Mapping):
        return {key: resolve(item, mapping) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [resolve(item, mapping) for item in value]
    if not isinstance(value, str):
        return value

    full = _PLACEHOLDER.fullmatch(value)
    if full:
        return evaluate(full.group(1), mapping)

    return _PLACEHOLDER.sub(lambda match: stringify(evaluate(match.group(1), mapping)), value)
