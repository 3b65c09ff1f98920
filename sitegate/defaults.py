"""Documented defaults for every effective setting.

``apply_defaults`` only fills settings the resolver left unset. Anything that
was declared, including an explicit ``false`` or ``""``, is kept as-is.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Mapping

from .resolve import UNSET, ResolvedConfig
from .types import EffectiveConfig

__all__ = [
    "DEFAULT_BANNER_MESSAGE",
    "DEFAULT_PRECONNECT_DOMAINS",
    "DEFAULTS",
    "DERIVED_DEFAULTS",
    "apply_defaults",
]

DEFAULT_BANNER_MESSAGE = "This website uses cookies to enhance your experience."

# Analytics, ads and pixel origins, in that order.
DEFAULT_PRECONNECT_DOMAINS = (
    "https://www.googletagmanager.com",
    "https://pagead2.googlesyndication.com",
    "https://connect.facebook.net",
)

DEFAULTS: Dict[str, Any] = {
    "analytics.trackingId": "",
    "analytics.anonymizeIp": True,
    "analytics.respectDoNotTrack": True,
    "advertising.enabled": False,
    "advertising.clientId": "",
    "advertising.autoAds": False,
    "advertising.placements.header": True,
    "advertising.placements.sidebar": True,
    "advertising.placements.footer": True,
    "advertising.placements.inContent": True,
    "advertising.slots.inArticle": "",
    "socialPixel.enabled": False,
    "socialPixel.pixelId": "",
    "socialPixel.events.pageView": True,
    "socialPixel.events.viewContent": False,
    "socialPixel.events.search": False,
    "socialPixel.events.contact": False,
    "socialPixel.events.lead": False,
    "search.engineId": "",
    "diagrams.enabled": True,
    "diagrams.theme": "default",
    "diagrams.startOnLoad": True,
    "diagrams.securityLevel": "loose",
    "privacy.respectDoNotTrack": True,
    "privacy.anonymizeIp": True,
    "privacy.cookieConsent": False,
    "privacy.consentBanner.enabled": False,
    "privacy.consentBanner.message": DEFAULT_BANNER_MESSAGE,
    "privacy.consentBanner.position": "bottom",
    "privacy.consentBanner.theme": "light",
    "privacy.gdpr.enabled": False,
    "privacy.gdpr.region": "global",
    "privacy.gdpr.legalBasis": "consent",
    "privacy.gdpr.dataRetentionMonths": 24,
    "performance.lazyLoadAds": True,
    "performance.asyncScripts": True,
    "performance.preconnectDomains": DEFAULT_PRECONNECT_DOMAINS,
}

# Defaults that depend on other (already settled) settings. Evaluated in
# order, after DEFAULTS, against the values settled so far.
DERIVED_DEFAULTS: Dict[str, Callable[[Mapping[str, Any]], Any]] = {
    "advertising.lazyLoad": lambda v: v["performance.lazyLoadAds"],
    "advertising.slots.header": lambda v: v["advertising.slots.inArticle"],
    "advertising.slots.sidebar": lambda v: v["advertising.slots.inArticle"],
    "advertising.slots.footer": lambda v: v["advertising.slots.inArticle"],
    "search.enabled": lambda v: v["search.engineId"] != "",
}


def apply_defaults(resolved: ResolvedConfig) -> EffectiveConfig:
    """Fill every unset setting and return the total EffectiveConfig."""
    values: Dict[str, Any] = {}
    for path, default in DEFAULTS.items():
        got = resolved.get(path)
        values[path] = default if got is UNSET else got
    for path, derive in DERIVED_DEFAULTS.items():
        got = resolved.get(path)
        values[path] = derive(values) if got is UNSET else got
    return EffectiveConfig.from_flat(values, explicit=resolved.explicit, sources=resolved.sources)
