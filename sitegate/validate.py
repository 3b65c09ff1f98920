"""
Dependency and format validation over the effective configuration.

Public API:
    resolve_config(raw) -> (EffectiveConfig, [Diagnostic, ...])
    validate_effective(cfg) -> [Diagnostic, ...]

- Never raises for malformed input; every finding becomes a Diagnostic.
- Collects all findings in one pass, at most one per (code, field).
- Whether an error-severity diagnostic fails a build is the caller's call;
  ``raise_for_errors`` is there for callers that want that policy.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Set, Tuple

from .defaults import apply_defaults
from .errors import ConfigError
from .formats import (
    is_valid_advertising_client_id,
    is_valid_analytics_id,
    is_valid_social_pixel_id,
)
from .resolve import PARAMS_NAMESPACE, RULES, SECTIONS, resolve_precedence
from .types import Diagnostic, EffectiveConfig, Severity

__all__ = [
    "resolve_config",
    "validate_effective",
    "lint_unknown_keys",
    "has_errors",
    "raise_for_errors",
    "DIAGRAM_THEMES",
    "DIAGRAM_SECURITY_LEVELS",
    "BANNER_POSITIONS",
    "BANNER_THEMES",
    "LEGAL_BASES",
]

_logger = logging.getLogger(__name__)

DIAGRAM_THEMES = frozenset({"default", "dark", "forest", "neutral", "base"})
DIAGRAM_SECURITY_LEVELS = frozenset({"strict", "loose", "antiscript", "sandbox"})
BANNER_POSITIONS = frozenset({"top", "bottom", "bottom-left", "bottom-right"})
BANNER_THEMES = frozenset({"light", "dark"})
# GDPR Art. 6 lawful bases
LEGAL_BASES = frozenset({
    "consent", "contract", "legal_obligation", "vital_interests",
    "public_task", "legitimate_interest",
})


class _Collector:
    def __init__(self) -> None:
        self.items: List[Diagnostic] = []
        self._seen: Set[Tuple[str, str]] = set()

    def add(self, severity: Severity, code: str, field: str, message: str) -> None:
        key = (code, field)
        if key in self._seen:
            return
        self._seen.add(key)
        self.items.append(Diagnostic(severity=severity, code=code, message=message, field=field))

    def error(self, code: str, field: str, message: str) -> None:
        self.add("error", code, field, message)

    def warning(self, code: str, field: str, message: str) -> None:
        self.add("warning", code, field, message)


def _check_choice(out: _Collector, code: str, field: str, value: str, allowed: Iterable[str]) -> None:
    allowed = sorted(allowed)
    if value not in allowed:
        out.warning(code, field, f"{field}={value!r} is not supported; expected one of {allowed}.")


# ------------------------------
# Effective-config rules
# ------------------------------

def validate_effective(cfg: EffectiveConfig) -> List[Diagnostic]:
    out = _Collector()
    analytics, ads, pixel, privacy = cfg.analytics, cfg.advertising, cfg.social_pixel, cfg.privacy

    # Required IDs and formats
    if ads.enabled and not is_valid_advertising_client_id(ads.client_id):
        if ads.client_id:
            msg = (f"advertising client ID {ads.client_id!r} is invalid; expected 'ca-pub-' "
                   "followed by 13-16 digits.")
        else:
            msg = "advertising client ID is required when advertising is enabled."
        out.error("AdvertisingClientIdRequired", "advertising.clientId", msg)

    if pixel.enabled and not is_valid_social_pixel_id(pixel.pixel_id):
        if pixel.pixel_id:
            msg = f"social pixel ID {pixel.pixel_id!r} is invalid; expected exactly 15 digits."
        else:
            msg = "social pixel ID is required when the social pixel is enabled."
        out.error("SocialPixelIdRequired", "socialPixel.pixelId", msg)

    if analytics.tracking_id and not is_valid_analytics_id(analytics.tracking_id):
        out.error(
            "InvalidAnalyticsIdFormat",
            "analytics.trackingId",
            f"analytics tracking ID {analytics.tracking_id!r} must be a GA4 measurement ID "
            "('G-' followed by at least 6 letters or digits); UA-/GTM- IDs are not supported.",
        )

    if cfg.search.enabled and not cfg.search.engine_id:
        out.error("SearchEngineIdRequired", "search.engineId",
                  "search engine ID is required when search is enabled.")

    # Cross-service dependencies
    if ads.enabled and not analytics.tracking_id:
        out.warning(
            "AdvertisingWithoutAnalytics",
            "advertising.enabled",
            "advertising is enabled but analytics is not configured; ad performance tracking may be limited.",
        )

    if ads.enabled and not ads.auto_ads and not ads.slots.in_article:
        out.warning(
            "AdvertisingSlotMissing",
            "advertising.slots.inArticle",
            "advertising is enabled without auto ads or an in-article slot; ads may not display in content.",
        )

    if (analytics.tracking_id or pixel.enabled) and not cfg.is_explicit("privacy"):
        out.warning(
            "TrackingWithoutPrivacySettings",
            "privacy",
            "tracking services are enabled but no privacy settings are declared; consider GDPR compliance.",
        )

    if privacy.cookie_consent and not privacy.consent_banner.enabled:
        out.warning(
            "ConsentWithoutBanner",
            "privacy.consentBanner.enabled",
            "cookie consent is required but the consent banner is disabled; visitors cannot grant consent.",
        )

    if privacy.gdpr.enabled and not (
        cfg.is_explicit("privacy.respectDoNotTrack") or cfg.is_explicit("privacy.cookieConsent")
    ):
        out.warning(
            "GdprIncompletePrivacySettings",
            "privacy.gdpr",
            "GDPR mode is enabled but neither respectDoNotTrack nor cookieConsent is configured.",
        )

    # Enumerations and ranges; the declared value is kept either way
    _check_choice(out, "UnknownDiagramTheme", "diagrams.theme", cfg.diagrams.theme, DIAGRAM_THEMES)
    _check_choice(out, "UnknownDiagramSecurityLevel", "diagrams.securityLevel",
                  cfg.diagrams.security_level, DIAGRAM_SECURITY_LEVELS)
    _check_choice(out, "UnknownBannerPosition", "privacy.consentBanner.position",
                  privacy.consent_banner.position, BANNER_POSITIONS)
    _check_choice(out, "UnknownBannerTheme", "privacy.consentBanner.theme",
                  privacy.consent_banner.theme, BANNER_THEMES)
    _check_choice(out, "UnknownLegalBasis", "privacy.gdpr.legalBasis",
                  privacy.gdpr.legal_basis, LEGAL_BASES)

    if privacy.gdpr.data_retention_months < 1:
        out.warning(
            "InvalidDataRetention",
            "privacy.gdpr.dataRetentionMonths",
            f"privacy.gdpr.dataRetentionMonths must be a positive number of months "
            f"(got {privacy.gdpr.data_retention_months}).",
        )

    return out.items


# ------------------------------
# Unknown keys (did-you-mean)
# ------------------------------

# Keys the engine does not resolve but downstream templates read.
_PASSTHROUGH_KEYS = {
    "advertising": {"autoAdsConfig"},
    "privacy.consentBanner": {"buttons"},
    "privacy.gdpr": {"dataProcessing"},
    "performance": {"resourceHints"},
}

_LINTED_EXTRA = ("services", "services.googleAnalytics", "privacy.googleAnalytics")


def _allowed_keys() -> Dict[str, Set[str]]:
    linted = set(SECTIONS) | set(_LINTED_EXTRA)
    allowed: Dict[str, Set[str]] = {s: set() for s in linted}
    for rule in RULES:
        for site in rule.sites:
            if site.startswith(PARAMS_NAMESPACE + "."):
                site = site[len(PARAMS_NAMESPACE) + 1:]
            parts = site.split(".")
            for i in range(1, len(parts)):
                parent = ".".join(parts[:i])
                if parent in allowed:
                    allowed[parent].add(parts[i])
    for section in linted:
        parent, _, child = section.rpartition(".")
        if parent in allowed:
            allowed[parent].add(child)
    for section, keys in _PASSTHROUGH_KEYS.items():
        allowed[section] |= keys
    return allowed


_ALLOWED = _allowed_keys()


def _lev(a: str, b: str) -> int:
    """Tiny Levenshtein distance (edit distance) for did-you-mean suggestions."""
    la, lb = len(a), len(b)
    dp = list(range(lb + 1))
    for i, ca in enumerate(a, 1):
        prev = dp[0]
        dp[0] = i
        for j, cb in enumerate(b, 1):
            ins = dp[j] + 1
            dele = dp[j - 1] + 1
            sub = prev + (0 if ca == cb else 1)
            prev, dp[j] = dp[j], min(ins, dele, sub)
    return dp[-1]


def _suggest_key(bad: str, allowed: Iterable[str]) -> str | None:
    """Return closest allowed key within distance <=2, else None."""
    best_key, best_dist = None, 99
    for k in sorted(allowed):
        d = _lev(bad.lower(), k.lower())
        if d < best_dist:
            best_key, best_dist = k, d
    return best_key if best_dist <= 2 else None


def _walk_sections(node: Any, prefix: str, shown: str, out: _Collector) -> None:
    if not isinstance(node, Mapping):
        return
    allowed = _ALLOWED[prefix]
    lowered = {k.lower(): k for k in allowed}
    for key, value in node.items():
        if not isinstance(key, str):
            continue
        canonical = lowered.get(key.lower())
        path = f"{shown}.{key}"
        if canonical is None:
            hint = _suggest_key(key, allowed)
            msg = f"unknown setting '{path}'"
            msg += f" (did you mean '{hint}'?)" if hint else "."
            out.warning("UnknownSetting", path, msg)
            continue
        child = f"{prefix}.{canonical}"
        if child in _ALLOWED:
            _walk_sections(value, child, path, out)


def lint_unknown_keys(raw: Mapping[str, Any] | None) -> List[Diagnostic]:
    """Warn about unrecognized keys inside the known service sections.

    Keys outside those sections (site title, menus, ...) belong to the site
    generator and are ignored.
    """
    out = _Collector()
    if not isinstance(raw, Mapping):
        return out.items
    roots = {s for s in _ALLOWED if "." not in s}
    for base, shown_base in ((raw, ""), (raw.get(PARAMS_NAMESPACE), PARAMS_NAMESPACE)):
        if not isinstance(base, Mapping):
            continue
        for key, value in base.items():
            if not isinstance(key, str):
                continue
            for root in roots:
                if key.lower() == root.lower():
                    shown = f"{shown_base}.{key}" if shown_base else key
                    _walk_sections(value, root, shown, out)
    return out.items


# ------------------------------
# Pipeline
# ------------------------------

def resolve_config(
    raw: Mapping[str, Any] | EffectiveConfig | None, *, lint_keys: bool = False
) -> Tuple[EffectiveConfig, List[Diagnostic]]:
    """Raw config -> precedence -> defaults -> validation.

    ``raw`` may also be a previous result: the EffectiveConfig itself, its
    ``to_raw()`` or its ``to_dict()``. Each yields the same config and the
    same diagnostics again.

    ``lint_keys`` adds UnknownSetting warnings for typos inside service
    sections. Those depend on the raw document, so they are not reproduced
    when a config is re-fed.
    """
    resolved = resolve_precedence(raw)
    effective = apply_defaults(resolved)
    diagnostics = validate_effective(effective)
    if lint_keys:
        diagnostics.extend(lint_unknown_keys(raw))
    _logger.debug(
        "config resolved: %d declared setting(s), %d error(s), %d warning(s)",
        len(resolved.values),
        sum(1 for d in diagnostics if d.severity == "error"),
        sum(1 for d in diagnostics if d.severity == "warning"),
    )
    return effective, diagnostics


def has_errors(diagnostics: Iterable[Diagnostic]) -> bool:
    return any(d.severity == "error" for d in diagnostics)


def raise_for_errors(diagnostics: Iterable[Diagnostic]) -> None:
    """Raise ConfigError listing every error-severity diagnostic, if any."""
    errors = [d for d in diagnostics if d.severity == "error"]
    if errors:
        raise ConfigError("\n".join(f"{d.code} [{d.field}]: {d.message}" for d in errors))
