"""Precedence resolution: one effective value per logical setting.

The same setting can be declared in several places (a top-level analytics ID
and a nested ``services`` override, a theme-era ``params.adsense`` block and
the canonical ``advertising`` block, ...). Every setting has a named ``Rule``
listing its declaration sites, highest precedence first; the table below is
the whole story, there is no implicit merging.

A present key is a declaration even when it holds ``false``, ``""`` or null.
Only an absent key falls through to the next site; a setting with no
declared site stays unset for the default applicator.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Literal, Mapping, Optional, Tuple

from .coerce import coerce_boolean, coerce_int, coerce_string, coerce_string_list
from .types import DECLARED_KEY, EffectiveConfig

__all__ = [
    "PARAMS_NAMESPACE",
    "UNSET",
    "Rule",
    "RULES",
    "SECTIONS",
    "ResolvedConfig",
    "lookup",
    "resolve_precedence",
]

_logger = logging.getLogger(__name__)

Kind = Literal["bool", "str", "int", "list"]
Combine = Literal["first", "any_false"]

# Theme-era configs keep custom settings under ``params``; every site is also
# accepted there, directly below the same site outside ``params``. A
# service-specific site under ``params`` still beats a global one.
PARAMS_NAMESPACE = "params"


class _Unset:
    _instance: Optional["_Unset"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass(frozen=True)
class Rule:
    """Precedence rule for one logical setting.

    ``targets`` are the canonical fields that receive the value (more than one
    when a setting is mirrored into two service groups). ``sites`` are raw
    dotted paths, highest precedence first.
    """

    targets: Tuple[str, ...]
    kind: Kind
    sites: Tuple[str, ...]
    combine: Combine = "first"

    @property
    def name(self) -> str:
        return self.targets[0]


def _rule(targets, kind: Kind, *sites: str, combine: Combine = "first") -> Rule:
    if isinstance(targets, str):
        targets = (targets,)
    ordered = []
    for s in sites:
        ordered.append(s)
        if not s.startswith(PARAMS_NAMESPACE + "."):
            ordered.append(f"{PARAMS_NAMESPACE}.{s}")
    return Rule(targets=tuple(targets), kind=kind, sites=tuple(ordered), combine=combine)


def _events_rule(event: str) -> Rule:
    return _rule(
        f"socialPixel.events.{event}",
        "bool",
        f"socialPixel.events.{event}",
        f"params.facebookPixel.events.{event}",
    )


def _placement_rule(slot: str) -> Rule:
    return _rule(
        f"advertising.placements.{slot}",
        "bool",
        f"advertising.placements.{slot}",
        f"params.adsense.placements.{slot}",
    )


def _slot_rule(slot: str, legacy_key: str) -> Rule:
    return _rule(
        f"advertising.slots.{slot}",
        "str",
        f"advertising.slots.{slot}",
        f"advertising.{legacy_key}",
        f"params.adsense.{legacy_key}",
    )


RULES: Tuple[Rule, ...] = (
    # --- analytics
    _rule(
        "analytics.trackingId",
        "str",
        "services.googleAnalytics.id",
        "analytics.trackingId",
        "googleAnalyticsId",
    ),
    _rule(
        ("analytics.anonymizeIp", "privacy.anonymizeIp"),
        "bool",
        "privacy.googleAnalytics.anonymizeIp",
        "services.googleAnalytics.anonymizeIp",
        "privacy.anonymizeIp",
        "analytics.anonymizeIp",
    ),
    # Explicit false anywhere wins; any other declaration means true.
    _rule(
        ("analytics.respectDoNotTrack", "privacy.respectDoNotTrack"),
        "bool",
        "privacy.respectDoNotTrack",
        "privacy.googleAnalytics.respectDoNotTrack",
        "services.googleAnalytics.respectDoNotTrack",
        "analytics.respectDoNotTrack",
        combine="any_false",
    ),
    # --- advertising
    _rule("advertising.enabled", "bool", "advertising.enabled", "params.adsense.enabled"),
    _rule(
        "advertising.clientId",
        "str",
        "advertising.clientId",
        "advertising.client",
        "params.adsense.client",
    ),
    _rule("advertising.autoAds", "bool", "advertising.autoAds", "params.adsense.autoAds"),
    # Service-specific lazy-load beats the global performance switch.
    _rule(
        "advertising.lazyLoad",
        "bool",
        "advertising.lazyLoad",
        "params.adsense.lazyLoad",
        "performance.lazyLoadAds",
    ),
    _placement_rule("header"),
    _placement_rule("sidebar"),
    _placement_rule("footer"),
    _placement_rule("inContent"),
    _slot_rule("inArticle", "inArticleSlot"),
    _slot_rule("header", "headerSlot"),
    _slot_rule("sidebar", "sidebarSlot"),
    _slot_rule("footer", "footerSlot"),
    # --- social pixel
    _rule("socialPixel.enabled", "bool", "socialPixel.enabled", "params.facebookPixel.enabled"),
    _rule("socialPixel.pixelId", "str", "socialPixel.pixelId", "params.facebookPixel.pixelId"),
    _events_rule("pageView"),
    _events_rule("viewContent"),
    _events_rule("search"),
    _events_rule("contact"),
    _events_rule("lead"),
    # --- search
    _rule("search.engineId", "str", "search.engineId", "params.gcs_engine_id.value"),
    _rule("search.enabled", "bool", "search.enabled"),
    # --- diagrams
    _rule("diagrams.enabled", "bool", "diagrams.enabled", "params.mermaid.enabled"),
    _rule("diagrams.theme", "str", "diagrams.theme", "params.mermaid.theme"),
    _rule(
        "diagrams.startOnLoad",
        "bool",
        "diagrams.startOnLoad",
        "params.mermaid.startOnLoad",
        "params.mermaid.config.startOnLoad",
    ),
    _rule(
        "diagrams.securityLevel",
        "str",
        "diagrams.securityLevel",
        "params.mermaid.securityLevel",
        "params.mermaid.config.securityLevel",
    ),
    # --- privacy
    _rule("privacy.cookieConsent", "bool", "privacy.cookieConsent"),
    _rule("privacy.consentBanner.enabled", "bool", "privacy.consentBanner.enabled"),
    _rule("privacy.consentBanner.message", "str", "privacy.consentBanner.message"),
    _rule("privacy.consentBanner.position", "str", "privacy.consentBanner.position"),
    _rule("privacy.consentBanner.theme", "str", "privacy.consentBanner.theme"),
    _rule("privacy.gdpr.enabled", "bool", "privacy.gdpr.enabled"),
    _rule("privacy.gdpr.region", "str", "privacy.gdpr.region"),
    _rule("privacy.gdpr.legalBasis", "str", "privacy.gdpr.legalBasis"),
    _rule(
        "privacy.gdpr.dataRetentionMonths",
        "int",
        "privacy.gdpr.dataRetentionMonths",
        "privacy.gdpr.dataRetention",
    ),
    # --- performance
    _rule("performance.lazyLoadAds", "bool", "performance.lazyLoadAds"),
    _rule("performance.asyncScripts", "bool", "performance.asyncScripts"),
    _rule(
        "performance.preconnectDomains",
        "list",
        "performance.preconnectDomains",
        "performance.preconnect",
    ),
)

# Canonical sections; a section counts as declared when a mapping sits at its
# path (or under ``params``), even if empty.
SECTIONS: Tuple[str, ...] = (
    "analytics",
    "advertising",
    "advertising.placements",
    "advertising.slots",
    "socialPixel",
    "socialPixel.events",
    "search",
    "diagrams",
    "privacy",
    "privacy.consentBanner",
    "privacy.gdpr",
    "performance",
)


@dataclass(frozen=True)
class ResolvedConfig:
    """Partially resolved settings: declared values only, plus provenance.

    ``declared`` overrides the computed explicit set when the input carried
    its own provenance.
    """

    values: Dict[str, Any] = field(default_factory=dict)
    sources: Dict[str, str] = field(default_factory=dict)
    sections: FrozenSet[str] = frozenset()
    declared: Optional[FrozenSet[str]] = None

    def get(self, path: str, default: Any = UNSET) -> Any:
        return self.values.get(path, default)

    def is_set(self, path: str) -> bool:
        return path in self.values

    @property
    def explicit(self) -> FrozenSet[str]:
        if self.declared is not None:
            return self.declared
        return frozenset(self.values) | self.sections


# ------------------------------
# Lookup
# ------------------------------

_MISSING = object()


def _child(node: Any, key: str) -> Any:
    if not isinstance(node, Mapping):
        return _MISSING
    if key in node:
        return node[key]
    low = key.lower()
    for k, v in node.items():
        if isinstance(k, str) and k.lower() == low:
            return v
    return _MISSING


def lookup(raw: Mapping[str, Any], path: str) -> Tuple[bool, Any]:
    """Walk a dotted path, matching keys case-insensitively (exact case first).

    Returns ``(found, value)``; ``found`` is False only when a key is absent.
    """
    node: Any = raw
    for part in path.split("."):
        node = _child(node, part)
        if node is _MISSING:
            return False, None
    return True, node


def _coerce(kind: Kind, value: Any) -> Any:
    if kind == "bool":
        return coerce_boolean(value)
    if kind == "str":
        return coerce_string(value)
    if kind == "int":
        return coerce_int(value, default=0)
    return tuple(coerce_string_list(value))


def _resolve_rule(raw: Mapping[str, Any], rule: Rule) -> Tuple[Any, Optional[str]]:
    if rule.combine == "any_false":
        first_site: Optional[str] = None
        for site in rule.sites:
            found, value = lookup(raw, site)
            if not found:
                continue
            if not coerce_boolean(value):
                return False, site
            if first_site is None:
                first_site = site
        if first_site is None:
            return UNSET, None
        return True, first_site

    for site in rule.sites:
        found, value = lookup(raw, site)
        if found:
            return _coerce(rule.kind, value), site
    return UNSET, None


def _carried_provenance(raw: Mapping[str, Any]) -> Optional[Tuple[FrozenSet[str], Dict[str, str]]]:
    """Provenance stored by ``EffectiveConfig.to_dict()``, if ``raw`` is such a dict."""
    meta = _child(raw, DECLARED_KEY)
    if meta is _MISSING:
        return None
    explicit = meta.get("explicit") if isinstance(meta, Mapping) else None
    sources = meta.get("sources") if isinstance(meta, Mapping) else None
    if not isinstance(explicit, (list, tuple)) or not isinstance(sources, Mapping):
        _logger.warning("ignoring malformed %r block in raw config", DECLARED_KEY)
        return None
    return (
        frozenset(p for p in explicit if isinstance(p, str)),
        {str(k): str(v) for k, v in sources.items()},
    )


def resolve_precedence(raw: Mapping[str, Any] | EffectiveConfig | None) -> ResolvedConfig:
    """Apply RULES to a raw config. The input is never mutated.

    An EffectiveConfig, or the mapping its ``to_dict()`` returns, resolves to
    the same values with the same declaration provenance.
    """
    if isinstance(raw, EffectiveConfig):
        raw = raw.to_raw()
    if not isinstance(raw, Mapping):
        if raw is not None:
            _logger.warning("raw config is %s, not a mapping; treating as empty", type(raw).__name__)
        raw = {}

    values: Dict[str, Any] = {}
    sources: Dict[str, str] = {}
    for rule in RULES:
        value, site = _resolve_rule(raw, rule)
        if value is UNSET:
            continue
        for target in rule.targets:
            values[target] = value
            sources[target] = site
        _logger.debug("resolved %s from %s", rule.name, site)

    carried = _carried_provenance(raw)
    if carried is not None:
        declared, carried_sources = carried
        return ResolvedConfig(
            values=values,
            sources={p: s for p, s in carried_sources.items() if p in values},
            sections=frozenset(p for p in declared if p not in carried_sources),
            declared=declared,
        )

    sections = set()
    for section in SECTIONS:
        for path in (section, f"{PARAMS_NAMESPACE}.{section}"):
            found, value = lookup(raw, path)
            if found and isinstance(value, Mapping):
                sections.add(section)
                break

    return ResolvedConfig(values=values, sources=sources, sections=frozenset(sections))
