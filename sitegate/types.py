from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Literal, Mapping, Tuple

Severity = Literal["error", "warning"]

# Reserved top-level key carrying declaration provenance in ``to_dict()``.
DECLARED_KEY = "_declared"

# ---- Diagnostics ----


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    code: str
    message: str
    field: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "severity": self.severity,
            "code": self.code,
            "message": self.message,
            "field": self.field,
        }


# ---- Effective configuration sections ----


@dataclass(frozen=True)
class AnalyticsConfig:
    tracking_id: str
    anonymize_ip: bool
    respect_do_not_track: bool


@dataclass(frozen=True)
class AdPlacements:
    header: bool
    sidebar: bool
    footer: bool
    in_content: bool


@dataclass(frozen=True)
class AdSlots:
    in_article: str
    header: str
    sidebar: str
    footer: str


@dataclass(frozen=True)
class AdvertisingConfig:
    enabled: bool
    client_id: str
    auto_ads: bool
    lazy_load: bool
    placements: AdPlacements
    slots: AdSlots


@dataclass(frozen=True)
class PixelEvents:
    page_view: bool
    view_content: bool
    search: bool
    contact: bool
    lead: bool


@dataclass(frozen=True)
class SocialPixelConfig:
    enabled: bool
    pixel_id: str
    events: PixelEvents


@dataclass(frozen=True)
class SearchConfig:
    engine_id: str
    enabled: bool


@dataclass(frozen=True)
class DiagramsConfig:
    enabled: bool
    theme: str
    start_on_load: bool
    security_level: str


@dataclass(frozen=True)
class ConsentBannerConfig:
    enabled: bool
    message: str
    position: str
    theme: str


@dataclass(frozen=True)
class GdprConfig:
    enabled: bool
    region: str
    legal_basis: str
    data_retention_months: int


@dataclass(frozen=True)
class PrivacyConfig:
    respect_do_not_track: bool
    anonymize_ip: bool
    cookie_consent: bool
    consent_banner: ConsentBannerConfig
    gdpr: GdprConfig


@dataclass(frozen=True)
class PerformanceConfig:
    lazy_load_ads: bool
    async_scripts: bool
    preconnect_domains: Tuple[str, ...]


@dataclass(frozen=True)
class EffectiveConfig:
    """Fully resolved, fully defaulted settings record.

    ``explicit`` holds the canonical dotted paths (``privacy.cookieConsent``,
    and bare section names such as ``privacy``) that were declared in the raw
    input; ``sources`` maps each declared setting to the raw path it was read
    from. Presence-based validation rules read these; rendering code can
    ignore them.
    """

    analytics: AnalyticsConfig
    advertising: AdvertisingConfig
    social_pixel: SocialPixelConfig
    search: SearchConfig
    diagrams: DiagramsConfig
    privacy: PrivacyConfig
    performance: PerformanceConfig
    explicit: FrozenSet[str] = field(default_factory=frozenset)
    sources: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def from_flat(
        cls,
        values: Mapping[str, Any],
        explicit: FrozenSet[str] = frozenset(),
        sources: Mapping[str, str] | None = None,
    ) -> "EffectiveConfig":
        """Build from a total mapping of canonical dotted path -> value."""
        v = values
        return cls(
            analytics=AnalyticsConfig(
                tracking_id=v["analytics.trackingId"],
                anonymize_ip=v["analytics.anonymizeIp"],
                respect_do_not_track=v["analytics.respectDoNotTrack"],
            ),
            advertising=AdvertisingConfig(
                enabled=v["advertising.enabled"],
                client_id=v["advertising.clientId"],
                auto_ads=v["advertising.autoAds"],
                lazy_load=v["advertising.lazyLoad"],
                placements=AdPlacements(
                    header=v["advertising.placements.header"],
                    sidebar=v["advertising.placements.sidebar"],
                    footer=v["advertising.placements.footer"],
                    in_content=v["advertising.placements.inContent"],
                ),
                slots=AdSlots(
                    in_article=v["advertising.slots.inArticle"],
                    header=v["advertising.slots.header"],
                    sidebar=v["advertising.slots.sidebar"],
                    footer=v["advertising.slots.footer"],
                ),
            ),
            social_pixel=SocialPixelConfig(
                enabled=v["socialPixel.enabled"],
                pixel_id=v["socialPixel.pixelId"],
                events=PixelEvents(
                    page_view=v["socialPixel.events.pageView"],
                    view_content=v["socialPixel.events.viewContent"],
                    search=v["socialPixel.events.search"],
                    contact=v["socialPixel.events.contact"],
                    lead=v["socialPixel.events.lead"],
                ),
            ),
            search=SearchConfig(
                engine_id=v["search.engineId"],
                enabled=v["search.enabled"],
            ),
            diagrams=DiagramsConfig(
                enabled=v["diagrams.enabled"],
                theme=v["diagrams.theme"],
                start_on_load=v["diagrams.startOnLoad"],
                security_level=v["diagrams.securityLevel"],
            ),
            privacy=PrivacyConfig(
                respect_do_not_track=v["privacy.respectDoNotTrack"],
                anonymize_ip=v["privacy.anonymizeIp"],
                cookie_consent=v["privacy.cookieConsent"],
                consent_banner=ConsentBannerConfig(
                    enabled=v["privacy.consentBanner.enabled"],
                    message=v["privacy.consentBanner.message"],
                    position=v["privacy.consentBanner.position"],
                    theme=v["privacy.consentBanner.theme"],
                ),
                gdpr=GdprConfig(
                    enabled=v["privacy.gdpr.enabled"],
                    region=v["privacy.gdpr.region"],
                    legal_basis=v["privacy.gdpr.legalBasis"],
                    data_retention_months=v["privacy.gdpr.dataRetentionMonths"],
                ),
            ),
            performance=PerformanceConfig(
                lazy_load_ads=v["performance.lazyLoadAds"],
                async_scripts=v["performance.asyncScripts"],
                preconnect_domains=tuple(v["performance.preconnectDomains"]),
            ),
            explicit=frozenset(explicit),
            sources=tuple(sorted((sources or {}).items())),
        )

    def to_flat(self) -> Dict[str, Any]:
        a, ad, px, pr = self.analytics, self.advertising, self.social_pixel, self.privacy
        return {
            "analytics.trackingId": a.tracking_id,
            "analytics.anonymizeIp": a.anonymize_ip,
            "analytics.respectDoNotTrack": a.respect_do_not_track,
            "advertising.enabled": ad.enabled,
            "advertising.clientId": ad.client_id,
            "advertising.autoAds": ad.auto_ads,
            "advertising.lazyLoad": ad.lazy_load,
            "advertising.placements.header": ad.placements.header,
            "advertising.placements.sidebar": ad.placements.sidebar,
            "advertising.placements.footer": ad.placements.footer,
            "advertising.placements.inContent": ad.placements.in_content,
            "advertising.slots.inArticle": ad.slots.in_article,
            "advertising.slots.header": ad.slots.header,
            "advertising.slots.sidebar": ad.slots.sidebar,
            "advertising.slots.footer": ad.slots.footer,
            "socialPixel.enabled": px.enabled,
            "socialPixel.pixelId": px.pixel_id,
            "socialPixel.events.pageView": px.events.page_view,
            "socialPixel.events.viewContent": px.events.view_content,
            "socialPixel.events.search": px.events.search,
            "socialPixel.events.contact": px.events.contact,
            "socialPixel.events.lead": px.events.lead,
            "search.engineId": self.search.engine_id,
            "search.enabled": self.search.enabled,
            "diagrams.enabled": self.diagrams.enabled,
            "diagrams.theme": self.diagrams.theme,
            "diagrams.startOnLoad": self.diagrams.start_on_load,
            "diagrams.securityLevel": self.diagrams.security_level,
            "privacy.respectDoNotTrack": pr.respect_do_not_track,
            "privacy.anonymizeIp": pr.anonymize_ip,
            "privacy.cookieConsent": pr.cookie_consent,
            "privacy.consentBanner.enabled": pr.consent_banner.enabled,
            "privacy.consentBanner.message": pr.consent_banner.message,
            "privacy.consentBanner.position": pr.consent_banner.position,
            "privacy.consentBanner.theme": pr.consent_banner.theme,
            "privacy.gdpr.enabled": pr.gdpr.enabled,
            "privacy.gdpr.region": pr.gdpr.region,
            "privacy.gdpr.legalBasis": pr.gdpr.legal_basis,
            "privacy.gdpr.dataRetentionMonths": pr.gdpr.data_retention_months,
            "performance.lazyLoadAds": self.performance.lazy_load_ads,
            "performance.asyncScripts": self.performance.async_scripts,
            "performance.preconnectDomains": list(self.performance.preconnect_domains),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Full nested camelCase mapping, the shape template code consumes.

        Provenance rides along under ``DECLARED_KEY`` so the mapping can be fed
        back through ``resolve_config`` with the same diagnostics.
        """
        out = _nest(self.to_flat())
        out[DECLARED_KEY] = {
            "explicit": sorted(self.explicit),
            "sources": dict(self.sources),
        }
        return out

    def to_raw(self) -> Dict[str, Any]:
        """Nested mapping of only the declared settings, at the sites they came from.

        Declared-but-empty sections are kept as empty mappings. Feeding this
        back through ``resolve_config`` reproduces this config and its
        diagnostics.
        """
        flat = self.to_flat()
        out: Dict[str, Any] = {}
        for path in sorted(p for p in self.explicit if p not in flat):
            _put_section(out, path)
        for path, site in self.sources:
            _put(out, site, flat[path])
        return out

    def source_of(self, path: str) -> str | None:
        """Raw dotted path the value of ``path`` was taken from, if declared."""
        for p, site in self.sources:
            if p == path:
                return site
        return None

    def get(self, path: str) -> Any:
        flat = self.to_flat()
        if path in flat:
            return flat[path]
        node: Any = self.to_dict()
        for part in path.split("."):
            if not isinstance(node, dict) or part not in node:
                raise KeyError(path)
            node = node[part]
        return node

    def is_explicit(self, path: str) -> bool:
        return path in self.explicit


def _put(out: Dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    node = out
    for p in parts[:-1]:
        nxt = node.get(p)
        if not isinstance(nxt, dict):
            nxt = {}
            node[p] = nxt
        node = nxt
    node[parts[-1]] = value


def _put_section(out: Dict[str, Any], path: str) -> None:
    node = out
    for p in path.split("."):
        nxt = node.get(p)
        if not isinstance(nxt, dict):
            nxt = {}
            node[p] = nxt
        node = nxt


def _nest(flat: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for path, value in flat.items():
        _put(out, path, value)
    return out
