"""Which third-party services may execute for this visitor.

Everything here is pure: the inputs are the stored consent (already loaded),
the live Do-Not-Track signal and the effective config. Nothing is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..coerce import coerce_boolean
from ..formats import (
    is_valid_advertising_client_id,
    is_valid_analytics_id,
    is_valid_social_pixel_id,
)
from ..types import EffectiveConfig
from .record import RETENTION_DAYS, ConsentRecord, is_expired, now_ms

__all__ = [
    "ServicePermissions",
    "GdprProfile",
    "compute_permissions",
    "runnable_services",
    "parse_do_not_track",
    "gdpr_profile",
    "banner_required",
]


@dataclass(frozen=True)
class ServicePermissions:
    analytics: bool
    advertising: bool
    functional: bool
    search_service: bool
    diagram_service: bool

    def to_dict(self) -> Dict[str, bool]:
        return {
            "analytics": self.analytics,
            "advertising": self.advertising,
            "functional": self.functional,
            "searchService": self.search_service,
            "diagramService": self.diagram_service,
        }


def _effective_record(consent: Any, now: int, retention_days: int) -> ConsentRecord:
    if isinstance(consent, ConsentRecord):
        record: Optional[ConsentRecord] = consent
    else:
        record = ConsentRecord.from_dict(consent)
    if record is None or is_expired(record, now, retention_days):
        return ConsentRecord.no_consent()
    return record


def compute_permissions(
    consent: ConsentRecord | None,
    do_not_track: Any,
    config: EffectiveConfig,
    *,
    now: int | None = None,
    retention_days: int = RETENTION_DAYS,
) -> ServicePermissions:
    """Derive the per-category permission map.

    Absent, malformed (non-record) and expired consent all read as NoConsent.
    When the site respects Do-Not-Track and the signal is on, analytics and
    advertising are off regardless of what was granted. ``do_not_track``
    may also be a raw header value; it goes through ``parse_do_not_track``.
    """
    now = now_ms() if now is None else now
    record = _effective_record(consent, now, retention_days)

    if config.privacy.respect_do_not_track and parse_do_not_track(do_not_track):
        analytics = advertising = False
    else:
        analytics, advertising = record.analytics, record.advertising

    return ServicePermissions(
        analytics=analytics,
        advertising=advertising,
        functional=record.functional,
        # Search and diagrams carry no tracking; always permitted.
        search_service=True,
        diagram_service=True,
    )


def runnable_services(permissions: ServicePermissions, config: EffectiveConfig) -> Dict[str, bool]:
    """Combine permissions with what the site actually configured.

    A service runs only when it is permitted, enabled and has a usable ID.
    """
    analytics_id = config.analytics.tracking_id
    ads, pixel = config.advertising, config.social_pixel
    return {
        "analytics": permissions.analytics and is_valid_analytics_id(analytics_id),
        "advertising": permissions.advertising and ads.enabled
        and is_valid_advertising_client_id(ads.client_id),
        "socialPixel": permissions.advertising and pixel.enabled
        and is_valid_social_pixel_id(pixel.pixel_id),
        "search": permissions.search_service and config.search.enabled
        and bool(config.search.engine_id),
        "diagrams": permissions.diagram_service and config.diagrams.enabled,
    }


def parse_do_not_track(value: Any) -> bool:
    """Normalize a DNT header / navigator value: ``"1"``, ``"yes"`` and True mean on.

    Browsers report ``"unspecified"`` or null when unset; those, like any
    unrecognized value, mean off.
    """
    if value is None:
        return False
    return coerce_boolean(value)


@dataclass(frozen=True)
class GdprProfile:
    enabled: bool
    region: str
    requires_consent: bool
    compliance_level: str  # strict | standard | none


def gdpr_profile(config: EffectiveConfig) -> GdprProfile:
    gdpr = config.privacy.gdpr
    eu = gdpr.region.upper() == "EU"
    requires = gdpr.enabled and (eu or gdpr.legal_basis == "consent")
    if not gdpr.enabled:
        level = "none"
    elif eu:
        level = "strict"
    else:
        level = "standard"
    return GdprProfile(enabled=gdpr.enabled, region=gdpr.region, requires_consent=requires,
                       compliance_level=level)


def banner_required(
    config: EffectiveConfig,
    consent: ConsentRecord | None,
    *,
    now: int | None = None,
    retention_days: int = RETENTION_DAYS,
) -> bool:
    """Whether the consent banner should be shown: it is configured and no
    unexpired decision is stored."""
    privacy = config.privacy
    if not (privacy.cookie_consent and privacy.consent_banner.enabled):
        return False
    now = now_ms() if now is None else now
    if not isinstance(consent, ConsentRecord):
        return True
    return is_expired(consent, now, retention_days)
