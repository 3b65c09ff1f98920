import pytest

from sitegate.errors import ConfigError
from sitegate.validate import (
    has_errors,
    lint_unknown_keys,
    raise_for_errors,
    resolve_config,
)

AD_CLIENT = "ca-pub-1234567890123456"
PIXEL = "123456789012345"
GA = "G-ABCDEF1234"


def _codes(raw, **kw):
    _, diags = resolve_config(raw, **kw)
    return [d.code for d in diags]


def _by_code(raw):
    _, diags = resolve_config(raw)
    return {d.code: d for d in diags}


def test_empty_config_is_clean():
    assert _codes({}) == []


def test_advertising_enabled_without_client():
    found = _by_code({"advertising": {"enabled": True}})
    assert found["AdvertisingClientIdRequired"].severity == "error"
    assert found["AdvertisingClientIdRequired"].field == "advertising.clientId"
    assert found["AdvertisingWithoutAnalytics"].severity == "warning"
    assert found["AdvertisingSlotMissing"].severity == "warning"
    assert _codes({"advertising": {"enabled": True}}).count("AdvertisingClientIdRequired") == 1


def test_advertising_invalid_client_reuses_code():
    found = _by_code({"advertising": {"enabled": True, "clientId": "pub-123"}, "analytics": {"trackingId": GA}})
    assert "invalid" in found["AdvertisingClientIdRequired"].message
    assert "AdvertisingWithoutAnalytics" not in found


def test_advertising_disabled_needs_nothing():
    assert "AdvertisingClientIdRequired" not in _codes({"advertising": {"enabled": False, "clientId": ""}})


def test_auto_ads_or_slot_silences_slot_warning():
    base = {"enabled": True, "clientId": AD_CLIENT}
    assert "AdvertisingSlotMissing" not in _codes({"advertising": {**base, "autoAds": True}})
    assert "AdvertisingSlotMissing" not in _codes({"advertising": {**base, "slots": {"inArticle": "111"}}})


@pytest.mark.parametrize("pixel_id", ["", "123", "12345678901234x"])
def test_social_pixel_requires_valid_id(pixel_id):
    found = _by_code({"socialPixel": {"enabled": True, "pixelId": pixel_id}, "privacy": {}})
    assert found["SocialPixelIdRequired"].severity == "error"


def test_invalid_analytics_id_only_when_non_empty():
    assert "InvalidAnalyticsIdFormat" in _codes({"analytics": {"trackingId": "UA-1234-1"}, "privacy": {}})
    assert "InvalidAnalyticsIdFormat" not in _codes({"analytics": {"trackingId": ""}})


def test_search_enabled_without_engine():
    assert "SearchEngineIdRequired" in _codes({"search": {"enabled": True}})
    assert "SearchEngineIdRequired" not in _codes({"search": {"enabled": True, "engineId": "x"}})


def test_tracking_without_privacy_section():
    assert "TrackingWithoutPrivacySettings" in _codes({"googleAnalyticsId": GA})
    assert "TrackingWithoutPrivacySettings" in _codes({"socialPixel": {"enabled": True, "pixelId": PIXEL}})
    assert "TrackingWithoutPrivacySettings" not in _codes({"googleAnalyticsId": GA, "privacy": {}})
    assert "TrackingWithoutPrivacySettings" not in _codes({"googleAnalyticsId": GA, "params": {"privacy": {}}})


def test_consent_without_banner():
    assert "ConsentWithoutBanner" in _codes({"privacy": {"cookieConsent": True}})
    raw = {"privacy": {"cookieConsent": True, "consentBanner": {"enabled": True}}}
    assert "ConsentWithoutBanner" not in _codes(raw)


def test_gdpr_needs_an_explicit_privacy_choice():
    assert "GdprIncompletePrivacySettings" in _codes({"privacy": {"gdpr": {"enabled": True}}})
    ok = {"privacy": {"gdpr": {"enabled": True}, "respectDoNotTrack": True}}
    assert "GdprIncompletePrivacySettings" not in _codes(ok)
    ok = {"privacy": {"gdpr": {"enabled": True}, "cookieConsent": False}}
    assert "GdprIncompletePrivacySettings" not in _codes(ok)


@pytest.mark.parametrize(
    "raw,code",
    [
        ({"diagrams": {"theme": "neon"}}, "UnknownDiagramTheme"),
        ({"diagrams": {"securityLevel": "yolo"}}, "UnknownDiagramSecurityLevel"),
        ({"privacy": {"consentBanner": {"position": "middle"}}}, "UnknownBannerPosition"),
        ({"privacy": {"consentBanner": {"theme": "neon"}}}, "UnknownBannerTheme"),
        ({"privacy": {"gdpr": {"legalBasis": "because"}}}, "UnknownLegalBasis"),
        ({"privacy": {"gdpr": {"dataRetentionMonths": 0}}}, "InvalidDataRetention"),
        ({"privacy": {"gdpr": {"dataRetentionMonths": "forever"}}}, "InvalidDataRetention"),
    ],
)
def test_out_of_range_values_warn_and_are_kept(raw, code):
    cfg, diags = resolve_config(raw)
    found = [d for d in diags if d.code == code]
    assert len(found) == 1 and found[0].severity == "warning"
    assert not has_errors(diags)


def test_unknown_theme_value_is_kept():
    cfg, _ = resolve_config({"diagrams": {"theme": "neon"}})
    assert cfg.diagrams.theme == "neon"


def test_multiple_errors_collected_in_one_pass():
    raw = {
        "advertising": {"enabled": True},
        "socialPixel": {"enabled": True},
        "analytics": {"trackingId": "bad"},
        "search": {"enabled": True},
        "privacy": {},
    }
    _, diags = resolve_config(raw)
    errors = {d.code for d in diags if d.severity == "error"}
    assert errors == {
        "AdvertisingClientIdRequired",
        "SocialPixelIdRequired",
        "InvalidAnalyticsIdFormat",
        "SearchEngineIdRequired",
    }


def test_diagnostics_deduplicated_by_code_and_field():
    _, diags = resolve_config({"advertising": {"enabled": True}})
    keys = [(d.code, d.field) for d in diags]
    assert len(keys) == len(set(keys))


def test_unknown_setting_lint_is_opt_in():
    raw = {"advertising": {"enabeld": True}, "title": "My site"}
    assert "UnknownSetting" not in _codes(raw)
    _, diags = resolve_config(raw, lint_keys=True)
    unknown = [d for d in diags if d.code == "UnknownSetting"]
    assert len(unknown) == 1
    assert unknown[0].field == "advertising.enabeld"
    assert "did you mean 'enabled'" in unknown[0].message


def test_lint_accepts_known_and_passthrough_keys():
    raw = {
        "services": {"googleAnalytics": {"id": GA}},
        "advertising": {"autoAdsConfig": {}, "slots": {"inArticle": "1"}},
        "params": {"privacy": {"gdpr": {"dataProcessing": {}}}},
    }
    assert lint_unknown_keys(raw) == []


def test_lint_walks_params_copies():
    diags = lint_unknown_keys({"params": {"privacy": {"cookieConsnet": True}}})
    assert [d.field for d in diags] == ["params.privacy.cookieConsnet"]


def test_raise_for_errors():
    _, diags = resolve_config({"advertising": {"enabled": True}})
    with pytest.raises(ConfigError) as ei:
        raise_for_errors(diags)
    assert "AdvertisingClientIdRequired" in str(ei.value)
    raise_for_errors([d for d in diags if d.severity == "warning"])


def test_validation_never_raises_on_junk():
    for junk in (None, [], "x", 42, {"advertising": "yes"}, {"privacy": {"gdpr": ["a"]}}):
        cfg, diags = resolve_config(junk)
        assert cfg.advertising.enabled is False
        assert isinstance(diags, list)
