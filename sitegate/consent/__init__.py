"""Visitor consent: stored decisions, their lifecycle, and what they permit."""
from __future__ import annotations

from .manager import CONSENT_GIVEN, CONSENT_REVOKED, ConsentManager
from .permissions import (
    GdprProfile,
    ServicePermissions,
    banner_required,
    compute_permissions,
    gdpr_profile,
    parse_do_not_track,
    runnable_services,
)
from .record import CONSENT_VERSION, RETENTION_DAYS, ConsentRecord, is_expired, now_ms
from .state import ConsentEvent, ConsentState, ConsentStateMachine, classify, consent_level
from .storage import STORAGE_KEY, ConsentStorage, JsonFileStorage, MemoryStorage

__all__ = [
    "CONSENT_GIVEN",
    "CONSENT_REVOKED",
    "CONSENT_VERSION",
    "RETENTION_DAYS",
    "STORAGE_KEY",
    "ConsentEvent",
    "ConsentManager",
    "ConsentRecord",
    "ConsentState",
    "ConsentStateMachine",
    "ConsentStorage",
    "GdprProfile",
    "JsonFileStorage",
    "MemoryStorage",
    "ServicePermissions",
    "banner_required",
    "classify",
    "compute_permissions",
    "consent_level",
    "gdpr_profile",
    "is_expired",
    "now_ms",
    "parse_do_not_track",
    "runnable_services",
]
