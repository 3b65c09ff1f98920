import pytest

from sitegate.consent import (
    banner_required,
    compute_permissions,
    gdpr_profile,
    parse_do_not_track,
    runnable_services,
)
from tests.helpers.consent import NOW_MS, make_record

AD_CLIENT = "ca-pub-1234567890123456"


def test_expired_consent_is_no_consent(effective):
    stale = make_record(True, True, age_days=400)
    p = compute_permissions(stale, False, effective(), now=NOW_MS)
    assert (p.analytics, p.advertising, p.functional) == (False, False, True)


def test_do_not_track_overrides_granted_consent(effective):
    cfg = effective({"privacy": {"respectDoNotTrack": True}})
    p = compute_permissions(make_record(True, True), True, cfg, now=NOW_MS)
    assert (p.analytics, p.advertising, p.functional) == (False, False, True)


def test_do_not_track_ignored_when_site_does_not_respect_it(effective):
    cfg = effective({"privacy": {"respectDoNotTrack": False}})
    p = compute_permissions(make_record(True, True), True, cfg, now=NOW_MS)
    assert p.analytics and p.advertising


@pytest.mark.parametrize("signal,blocked", [(1, True), ("1", True), ("yes", True), (0, False), ("unspecified", False), (None, False)])
def test_raw_dnt_signals_are_normalized(signal, blocked, effective):
    cfg = effective({"privacy": {"respectDoNotTrack": True}})
    p = compute_permissions(make_record(True, True), signal, cfg, now=NOW_MS)
    assert p.analytics is (not blocked)
    assert p.advertising is (not blocked)


def test_granted_consent_without_dnt(effective):
    p = compute_permissions(make_record(True, False, False), False, effective(), now=NOW_MS)
    assert p.to_dict() == {
        "analytics": True,
        "advertising": False,
        "functional": False,
        "searchService": True,
        "diagramService": True,
    }


@pytest.mark.parametrize("consent", [None, {"analytics": True}, "garbage", 42])
def test_absent_or_malformed_consent_is_no_consent(consent, effective):
    p = compute_permissions(consent, False, effective(), now=NOW_MS)
    assert (p.analytics, p.advertising, p.functional) == (False, False, True)
    assert p.search_service and p.diagram_service


def test_stored_mapping_is_accepted(effective):
    stored = make_record(True, True).to_dict()
    p = compute_permissions(stored, False, effective(), now=NOW_MS)
    assert p.analytics and p.advertising


def test_compute_permissions_is_pure(effective):
    r = make_record(True, False)
    cfg = effective()
    first = compute_permissions(r, False, cfg, now=NOW_MS)
    assert compute_permissions(r, False, cfg, now=NOW_MS) == first
    assert r == make_record(True, False)


@pytest.mark.parametrize(
    "value,expected",
    [("1", True), ("yes", True), (True, True), ("0", False), ("unspecified", False), (None, False), ("", False)],
)
def test_parse_do_not_track(value, expected):
    assert parse_do_not_track(value) is expected


def test_runnable_services_need_permission_enablement_and_valid_ids(effective):
    cfg = effective({
        "analytics": {"trackingId": "G-ABCDEF1234"},
        "advertising": {"enabled": True, "clientId": AD_CLIENT},
        "socialPixel": {"enabled": True, "pixelId": "bad"},
        "search": {"engineId": "abc"},
    })
    granted = compute_permissions(make_record(True, True), False, cfg, now=NOW_MS)
    assert runnable_services(granted, cfg) == {
        "analytics": True,
        "advertising": True,
        "socialPixel": False,
        "search": True,
        "diagrams": True,
    }
    denied = compute_permissions(None, False, cfg, now=NOW_MS)
    services = runnable_services(denied, cfg)
    assert not services["analytics"] and not services["advertising"]
    assert services["search"] and services["diagrams"]


@pytest.mark.parametrize(
    "gdpr,requires,level",
    [
        ({}, False, "none"),
        ({"enabled": True, "region": "EU", "legalBasis": "legitimate_interest"}, True, "strict"),
        ({"enabled": True, "region": "eu"}, True, "strict"),
        ({"enabled": True, "legalBasis": "consent"}, True, "standard"),
        ({"enabled": True, "legalBasis": "contract"}, False, "standard"),
        ({"enabled": False, "region": "EU"}, False, "none"),
    ],
)
def test_gdpr_profile(gdpr, requires, level, effective):
    profile = gdpr_profile(effective({"privacy": {"gdpr": gdpr}}))
    assert profile.requires_consent is requires
    assert profile.compliance_level == level


def test_banner_required(effective):
    cfg = effective({"privacy": {"cookieConsent": True, "consentBanner": {"enabled": True}}})
    assert banner_required(cfg, None, now=NOW_MS)
    assert not banner_required(cfg, make_record(False, False), now=NOW_MS)
    assert banner_required(cfg, make_record(True, True, age_days=400), now=NOW_MS)
    assert not banner_required(effective(), None, now=NOW_MS)

