"""Consent state machine.

NO_CONSENT is both the initial state and what an expired record collapses
back to on the next read.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Optional

from .record import RETENTION_DAYS, ConsentRecord, is_expired

__all__ = ["ConsentState", "ConsentEvent", "ConsentStateMachine", "classify", "consent_level"]

_logger = logging.getLogger(__name__)


class ConsentState(Enum):
    NO_CONSENT = auto()
    PARTIAL_CONSENT = auto()
    FULL_CONSENT = auto()
    CONSENT_EXPIRED = auto()


class ConsentEvent(Enum):
    GRANT_PARTIAL = auto()
    GRANT_FULL = auto()
    WITHDRAW = auto()
    EXPIRE = auto()
    RESET = auto()


_TRANSITIONS = {
    ConsentState.NO_CONSENT: {
        ConsentEvent.GRANT_PARTIAL: ConsentState.PARTIAL_CONSENT,
        ConsentEvent.GRANT_FULL: ConsentState.FULL_CONSENT,
        ConsentEvent.WITHDRAW: ConsentState.NO_CONSENT,
        ConsentEvent.EXPIRE: ConsentState.CONSENT_EXPIRED,
    },
    ConsentState.PARTIAL_CONSENT: {
        ConsentEvent.GRANT_PARTIAL: ConsentState.PARTIAL_CONSENT,
        ConsentEvent.GRANT_FULL: ConsentState.FULL_CONSENT,
        ConsentEvent.WITHDRAW: ConsentState.NO_CONSENT,
        ConsentEvent.EXPIRE: ConsentState.CONSENT_EXPIRED,
    },
    ConsentState.FULL_CONSENT: {
        ConsentEvent.GRANT_PARTIAL: ConsentState.PARTIAL_CONSENT,
        ConsentEvent.GRANT_FULL: ConsentState.FULL_CONSENT,
        ConsentEvent.WITHDRAW: ConsentState.NO_CONSENT,
        ConsentEvent.EXPIRE: ConsentState.CONSENT_EXPIRED,
    },
    ConsentState.CONSENT_EXPIRED: {
        ConsentEvent.RESET: ConsentState.NO_CONSENT,
    },
}


class ConsentStateMachine:
    def __init__(self, state: ConsentState = ConsentState.NO_CONSENT):
        self.state = state

    def transition(self, event: ConsentEvent) -> ConsentState:
        next_state = _TRANSITIONS.get(self.state, {}).get(event, self.state)
        if event not in _TRANSITIONS.get(self.state, {}):
            _logger.warning(
                "Invalid consent transition: %s --%s--> %s", self.state, event, next_state
            )
        self.state = next_state
        return self.state


def classify(
    record: Optional[ConsentRecord], now: int, retention_days: int = RETENTION_DAYS
) -> ConsentState:
    """State implied by a stored record at time ``now`` (epoch ms)."""
    if record is None:
        return ConsentState.NO_CONSENT
    if is_expired(record, now, retention_days):
        return ConsentState.CONSENT_EXPIRED
    if record.analytics and record.advertising and record.functional:
        return ConsentState.FULL_CONSENT
    if record.is_default():
        return ConsentState.NO_CONSENT
    return ConsentState.PARTIAL_CONSENT


def consent_level(record: Optional[ConsentRecord]) -> str:
    """Coarse label used by banners and reports: full | analytics | functional | none."""
    r = record or ConsentRecord.no_consent()
    if r.analytics and r.advertising:
        return "full"
    if r.analytics:
        return "analytics"
    if r.functional:
        return "functional"
    return "none"
