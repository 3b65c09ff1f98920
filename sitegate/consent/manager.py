"""Consent lifecycle over a storage backend.

Every change is one read-then-write against the backend; the last writer
wins. Storage failures never reach the caller: a failed load reads as
NoConsent and a failed save is logged while the in-memory decision still
applies for the rest of the session.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from ..types import EffectiveConfig
from .permissions import ServicePermissions, compute_permissions
from .record import CONSENT_VERSION, RETENTION_DAYS, ConsentRecord, is_expired, now_ms
from .state import ConsentEvent, ConsentState, ConsentStateMachine, classify
from .storage import ConsentStorage

__all__ = ["ConsentManager", "CONSENT_GIVEN", "CONSENT_REVOKED"]

_logger = logging.getLogger(__name__)

# Notification names understood by the page scripts.
CONSENT_GIVEN = "cookieConsentGiven"
CONSENT_REVOKED = "cookieConsentRevoked"

Listener = Callable[[str, ConsentRecord], None]


class ConsentManager:
    def __init__(
        self,
        storage: ConsentStorage,
        clock: Callable[[], int] = now_ms,
        retention_days: int = RETENTION_DAYS,
        version: str = CONSENT_VERSION,
    ):
        self.storage = storage
        self.clock = clock
        self.retention_days = retention_days
        self.version = version
        self._session: Optional[ConsentRecord] = None
        self._listeners: List[Listener] = []
        self._machine = ConsentStateMachine(self._classify_stored())

    # ---- reading ---------------------------------------------------------

    def _load(self) -> Optional[ConsentRecord]:
        if self._session is not None:
            return self._session
        try:
            stored = self.storage.load()
        except Exception as e:
            _logger.warning("Consent storage unavailable; treating as no consent: %s", e)
            return None
        if stored is None or isinstance(stored, ConsentRecord):
            return stored
        record = ConsentRecord.from_dict(stored)
        if record is None:
            _logger.warning("Ignoring malformed consent record from %r", self.storage)
        return record

    def _classify_stored(self) -> ConsentState:
        return classify(self._load(), self.clock(), self.retention_days)

    def current(self) -> ConsentRecord:
        """The decision in force now; NoConsent when absent or expired."""
        record = self._load()
        if record is None or is_expired(record, self.clock(), self.retention_days):
            return ConsentRecord.no_consent()
        return record

    @property
    def state(self) -> ConsentState:
        observed = self._classify_stored()
        if observed is ConsentState.CONSENT_EXPIRED:
            if self._machine.state is not ConsentState.CONSENT_EXPIRED:
                self._machine.transition(ConsentEvent.EXPIRE)
            self._machine.transition(ConsentEvent.RESET)
            return self._machine.state
        self._machine.state = observed
        return observed

    def has_decision(self) -> bool:
        """True while an unexpired decision is stored (banner can stay hidden)."""
        record = self._load()
        return record is not None and not is_expired(record, self.clock(), self.retention_days)

    def permissions(self, do_not_track: bool, config: EffectiveConfig) -> ServicePermissions:
        return compute_permissions(
            self._load(),
            do_not_track,
            config,
            now=self.clock(),
            retention_days=self.retention_days,
        )

    # ---- writing ---------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        """Register ``listener(event_name, record)`` for consent changes."""
        self._listeners.append(listener)

    def _notify(self, name: str, record: ConsentRecord) -> None:
        for listener in list(self._listeners):
            try:
                listener(name, record)
            except Exception:
                _logger.exception("Consent listener %r failed on %s", listener, name)

    def _commit(self, record: ConsentRecord, event: ConsentEvent, notification: str) -> ConsentRecord:
        self._session = record
        try:
            self.storage.save(record)
        except Exception as e:
            _logger.warning("Consent not persisted; applies to this session only: %s", e)
        else:
            self._session = None
        if self._machine.state is ConsentState.CONSENT_EXPIRED:
            self._machine.transition(ConsentEvent.RESET)
        self._machine.transition(event)
        _logger.info("consent %s -> %s", event.name.lower(), self._machine.state.name)
        self._notify(notification, record)
        return record

    def grant(self, analytics: bool, advertising: bool, functional: bool = True) -> ConsentRecord:
        record = ConsentRecord(
            analytics=bool(analytics),
            advertising=bool(advertising),
            functional=bool(functional),
            timestamp=self.clock(),
            version=self.version,
        )
        if record.analytics and record.advertising and record.functional:
            event = ConsentEvent.GRANT_FULL
        elif record.is_default():
            event = ConsentEvent.WITHDRAW
        else:
            event = ConsentEvent.GRANT_PARTIAL
        notification = CONSENT_GIVEN if (record.analytics or record.advertising) else CONSENT_REVOKED
        return self._commit(record, event, notification)

    def accept_all(self) -> ConsentRecord:
        return self.grant(analytics=True, advertising=True, functional=True)

    def reject_all(self) -> ConsentRecord:
        return self.grant(analytics=False, advertising=False, functional=True)

    def withdraw(self) -> ConsentRecord:
        """Revoke analytics and advertising; functional storage stays allowed.

        The withdrawal is itself a stored decision, so the banner does not
        reappear until it expires.
        """
        record = ConsentRecord(
            analytics=False,
            advertising=False,
            functional=True,
            timestamp=self.clock(),
            version=self.version,
        )
        return self._commit(record, ConsentEvent.WITHDRAW, CONSENT_REVOKED)
