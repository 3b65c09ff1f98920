import logging

from sitegate.consent import (
    CONSENT_GIVEN,
    CONSENT_REVOKED,
    ConsentManager,
    ConsentState,
    JsonFileStorage,
    MemoryStorage,
)
from sitegate.errors import StorageError
from tests.helpers.consent import make_record


class _BrokenStorage:
    def load(self):
        return None

    def save(self, record):
        raise StorageError("disk full")


def test_fresh_manager_has_no_consent(memory_storage, clock):
    m = ConsentManager(memory_storage, clock=clock)
    assert m.state is ConsentState.NO_CONSENT
    assert m.current().is_default()
    assert not m.has_decision()


def test_grant_persists_with_clock_timestamp(memory_storage, clock):
    m = ConsentManager(memory_storage, clock=clock)
    r = m.grant(analytics=True, advertising=False)
    assert r.timestamp == clock.now
    assert memory_storage.record == r
    assert m.state is ConsentState.PARTIAL_CONSENT
    assert m.has_decision()


def test_accept_all_then_withdraw(memory_storage, clock):
    m = ConsentManager(memory_storage, clock=clock)
    m.accept_all()
    assert m.state is ConsentState.FULL_CONSENT
    m.withdraw()
    assert m.state is ConsentState.NO_CONSENT
    assert m.has_decision()
    assert memory_storage.saves == 2


def test_reject_all_is_a_decision(memory_storage, clock):
    m = ConsentManager(memory_storage, clock=clock)
    r = m.reject_all()
    assert r.is_default()
    assert m.state is ConsentState.NO_CONSENT
    assert m.has_decision()


def test_expired_decision_collapses_to_no_consent(memory_storage, clock):
    m = ConsentManager(memory_storage, clock=clock)
    m.accept_all()
    clock.advance(days=366)
    assert m.state is ConsentState.NO_CONSENT
    assert m.current().is_default()
    assert not m.has_decision()
    m.grant(analytics=True, advertising=True)
    assert m.state is ConsentState.FULL_CONSENT


def test_starts_from_expired_stored_record(clock):
    store = MemoryStorage(make_record(True, True, age_days=500))
    m = ConsentManager(store, clock=clock)
    assert m.state is ConsentState.NO_CONSENT
    m.accept_all()
    assert m.state is ConsentState.FULL_CONSENT


def test_save_failure_is_logged_not_raised(clock, caplog):
    m = ConsentManager(_BrokenStorage(), clock=clock)
    with caplog.at_level(logging.WARNING, logger="sitegate.consent.manager"):
        r = m.accept_all()
    assert "not persisted" in caplog.text
    # the decision still applies for this session
    assert m.current() == r
    assert m.state is ConsentState.FULL_CONSENT


def test_permissions_use_stored_decision_and_dnt(memory_storage, clock, effective):
    m = ConsentManager(memory_storage, clock=clock)
    m.accept_all()
    cfg = effective()
    assert m.permissions(False, cfg).advertising is True
    assert m.permissions(True, cfg).advertising is False


def test_listeners_get_notified(memory_storage, clock):
    seen = []
    m = ConsentManager(memory_storage, clock=clock)
    m.subscribe(lambda name, record: seen.append((name, record.analytics)))
    m.grant(analytics=True, advertising=False)
    m.withdraw()
    m.reject_all()
    assert seen == [(CONSENT_GIVEN, True), (CONSENT_REVOKED, False), (CONSENT_REVOKED, False)]


def test_failing_listener_does_not_break_commit(memory_storage, clock, caplog):
    m = ConsentManager(memory_storage, clock=clock)

    def boom(name, record):
        raise RuntimeError("listener bug")

    m.subscribe(boom)
    m.accept_all()
    assert memory_storage.record is not None
    assert "listener" in caplog.text


def test_file_backed_manager_survives_restart(tmp_path, clock):
    path = tmp_path / "consent.json"
    ConsentManager(JsonFileStorage(path), clock=clock).grant(analytics=False, advertising=True)
    again = ConsentManager(JsonFileStorage(path), clock=clock)
    assert again.state is ConsentState.PARTIAL_CONSENT
    assert again.current().advertising is True


class _LoadRaises:
    def __init__(self):
        self.saved = None

    def load(self):
        raise OSError("storage unavailable")

    def save(self, record):
        self.saved = record


class _LoadsMapping:
    def __init__(self, data):
        self.data = data

    def load(self):
        return self.data

    def save(self, record):
        self.data = record.to_dict()


class _QuotaStorage(MemoryStorage):
    def save(self, record):
        raise RuntimeError("quota exceeded")


def test_load_failure_reads_as_no_consent(clock, caplog):
    with caplog.at_level(logging.WARNING, logger="sitegate.consent.manager"):
        m = ConsentManager(_LoadRaises(), clock=clock)
        assert m.state is ConsentState.NO_CONSENT
        assert m.current().is_default()
        assert not m.has_decision()
    assert "storage unavailable" in caplog.text
    r = m.accept_all()
    assert m.storage.saved == r


def test_backend_returning_a_mapping_is_parsed(clock):
    stored = make_record(True, False).to_dict()
    m = ConsentManager(_LoadsMapping(stored), clock=clock)
    assert m.state is ConsentState.PARTIAL_CONSENT
    assert m.current().analytics is True
    assert m.has_decision()


def test_backend_returning_garbage_reads_as_no_consent(clock, caplog):
    m = ConsentManager(_LoadsMapping({"analytics": "maybe"}), clock=clock)
    assert m.state is ConsentState.NO_CONSENT
    assert m.current().is_default()
    assert "malformed" in caplog.text


def test_any_save_failure_is_contained(clock, caplog):
    m = ConsentManager(_QuotaStorage(), clock=clock)
    r = m.accept_all()
    assert "quota exceeded" in caplog.text
    assert m.current() == r
    assert m.state is ConsentState.FULL_CONSENT
