"""Coercion helpers for heterogeneous raw config values.

Site configs arrive from TOML, YAML and JSON, so the same boolean may show up
as ``true``, ``"true"``, ``"1"`` or ``1``. Everything downstream works on the
canonical values produced here.
"""
from __future__ import annotations

import logging
from typing import Any, List

from .errors import CoercionAmbiguous

__all__ = [
    "TRUE_STRINGS",
    "FALSE_STRINGS",
    "coerce_boolean",
    "coerce_string",
    "coerce_int",
    "coerce_string_list",
]

_logger = logging.getLogger(__name__)

TRUE_STRINGS = frozenset({"true", "1", "yes"})
FALSE_STRINGS = frozenset({"false", "0", "no"})


def coerce_boolean(value: Any, *, strict: bool = False) -> bool:
    """Normalize a boolean-like value.

    Strings outside TRUE_STRINGS/FALSE_STRINGS are ambiguous: with ``strict``
    they raise CoercionAmbiguous, otherwise they read as False.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        s = value.strip().lower()
        if s in TRUE_STRINGS:
            return True
        if s in FALSE_STRINGS:
            return False
        if strict:
            raise CoercionAmbiguous(value)
        _logger.debug("ambiguous boolean %r treated as false", value)
        return False
    if isinstance(value, (int, float)):
        return value != 0
    return False


def coerce_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    return str(value)


def coerce_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return int(default)
    try:
        return int(value)
    except OverflowError:
        return int(default)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError):
            return int(default)


def coerce_string_list(value: Any) -> List[str]:
    """A lone string becomes a one-element list; None and non-sequences become []."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, (list, tuple)):
        return [coerce_string(v) for v in value if v is not None and coerce_string(v)]
    return []
