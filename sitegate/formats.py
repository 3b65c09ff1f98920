"""Format predicates for third-party service identifiers.

Each validator takes whatever the config held and answers True/False. They
never raise: None, non-strings and empty strings are simply invalid.
"""
from __future__ import annotations

import re
from typing import Any, Callable, Dict

__all__ = [
    "is_valid_analytics_id",
    "is_valid_advertising_client_id",
    "is_valid_social_pixel_id",
    "is_valid_search_engine_id",
    "VALIDATORS",
]

_ANALYTICS_RE = re.compile(r"G-[A-Za-z0-9]{6,}")
_ANALYTICS_MIN_LEN = 10
_LEGACY_ANALYTICS_PREFIXES = ("UA-", "GTM-")

_AD_CLIENT_RE = re.compile(r"ca-pub-[0-9]{13,16}")
_AD_CLIENT_MIN_LEN = 20

_PIXEL_RE = re.compile(r"[0-9]{15}")


def is_valid_analytics_id(value: Any) -> bool:
    """GA4 measurement ID: ``G-`` plus alphanumerics, at least 10 chars total."""
    if not isinstance(value, str) or not value:
        return False
    if value.startswith(_LEGACY_ANALYTICS_PREFIXES):
        return False
    return len(value) >= _ANALYTICS_MIN_LEN and _ANALYTICS_RE.fullmatch(value) is not None


def is_valid_advertising_client_id(value: Any) -> bool:
    if not isinstance(value, str) or not value:
        return False
    return len(value) >= _AD_CLIENT_MIN_LEN and _AD_CLIENT_RE.fullmatch(value) is not None


def is_valid_social_pixel_id(value: Any) -> bool:
    if not isinstance(value, str) or not value:
        return False
    return _PIXEL_RE.fullmatch(value) is not None


def is_valid_search_engine_id(value: Any) -> bool:
    # Provider-opaque; only non-emptiness is enforced.
    return isinstance(value, str) and len(value) > 0


VALIDATORS: Dict[str, Callable[[Any], bool]] = {
    "analytics": is_valid_analytics_id,
    "advertising": is_valid_advertising_client_id,
    "socialPixel": is_valid_social_pixel_id,
    "search": is_valid_search_engine_id,
}
