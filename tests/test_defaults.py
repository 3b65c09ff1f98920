from sitegate.defaults import DEFAULT_BANNER_MESSAGE, DEFAULT_PRECONNECT_DOMAINS, apply_defaults
from sitegate.resolve import resolve_precedence


def _eff(raw):
    return apply_defaults(resolve_precedence(raw))


def test_empty_config_gets_documented_defaults():
    cfg = _eff({})
    assert cfg.analytics.tracking_id == ""
    assert cfg.analytics.anonymize_ip is True
    assert cfg.analytics.respect_do_not_track is True
    assert cfg.advertising.enabled is False
    assert cfg.advertising.auto_ads is False
    assert cfg.advertising.lazy_load is True
    assert cfg.advertising.placements.header and cfg.advertising.placements.in_content
    assert cfg.social_pixel.events.page_view is True
    assert cfg.social_pixel.events.lead is False
    assert cfg.search.enabled is False
    assert cfg.diagrams.enabled is True
    assert cfg.diagrams.theme == "default"
    assert cfg.diagrams.security_level == "loose"
    assert cfg.privacy.cookie_consent is False
    assert cfg.privacy.consent_banner.message == DEFAULT_BANNER_MESSAGE
    assert cfg.privacy.consent_banner.position == "bottom"
    assert cfg.privacy.gdpr.region == "global"
    assert cfg.privacy.gdpr.legal_basis == "consent"
    assert cfg.privacy.gdpr.data_retention_months == 24
    assert cfg.performance.preconnect_domains == DEFAULT_PRECONNECT_DOMAINS
    assert cfg.explicit == frozenset()


def test_explicit_false_and_empty_survive_defaults():
    cfg = _eff({
        "diagrams": {"enabled": False, "theme": ""},
        "privacy": {"anonymizeIp": False},
        "performance": {"preconnectDomains": []},
    })
    assert cfg.diagrams.enabled is False
    assert cfg.diagrams.theme == ""
    assert cfg.analytics.anonymize_ip is False
    assert cfg.performance.preconnect_domains == ()


def test_ad_lazy_load_follows_performance_switch():
    assert _eff({"performance": {"lazyLoadAds": False}}).advertising.lazy_load is False
    cfg = _eff({"performance": {"lazyLoadAds": False}, "advertising": {"lazyLoad": True}})
    assert cfg.advertising.lazy_load is True
    assert cfg.performance.lazy_load_ads is False


def test_slots_fall_back_to_in_article():
    cfg = _eff({"advertising": {"slots": {"inArticle": "111", "footer": "999"}}})
    assert cfg.advertising.slots.header == "111"
    assert cfg.advertising.slots.sidebar == "111"
    assert cfg.advertising.slots.footer == "999"


def test_search_enabled_defaults_from_engine_id():
    assert _eff({"search": {"engineId": "abc"}}).search.enabled is True
    assert _eff({"search": {"engineId": "abc", "enabled": False}}).search.enabled is False


def test_get_reads_dotted_paths():
    cfg = _eff({"privacy": {"gdpr": {"region": "EU"}}})
    assert cfg.get("privacy.gdpr.region") == "EU"
    assert cfg.get("privacy.gdpr")["legalBasis"] == "consent"
    assert cfg.is_explicit("privacy.gdpr.region")
    assert cfg.source_of("privacy.gdpr.region") == "privacy.gdpr.region"
