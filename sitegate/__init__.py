"""sitegate: resolve, validate and gate the third-party services of a static site.

Public import roots are `sitegate`, `sitegate.errors` and `sitegate.consent`.
This module also resolves `__version__` from installed package metadata.
"""
from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version
from typing import Any as _Any

from . import errors as errors  # re-export for star-import; noqa: F401


def _version_from_metadata() -> str | None:
    try:
        return _pkg_version("sitegate")
    except PackageNotFoundError:
        return None


__version__ = _version_from_metadata() or "0+unknown"

# Lazy exports: name -> (module, attribute)
_LAZY = {
    "resolve_config": (".validate", "resolve_config"),
    "validate_effective": (".validate", "validate_effective"),
    "has_errors": (".validate", "has_errors"),
    "raise_for_errors": (".validate", "raise_for_errors"),
    "EffectiveConfig": (".types", "EffectiveConfig"),
    "Diagnostic": (".types", "Diagnostic"),
    "load_raw_config": (".io.config", "load_raw_config"),
}


def __getattr__(name: str) -> _Any:  # PEP 562 lazy exports keep `import sitegate` light
    target = _LAZY.get(name)
    if target is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    from importlib import import_module

    value = getattr(import_module(target[0], __name__), target[1])
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return list(__all__)


# Star-export surface, kept lexicographically sorted.
__all__ = [
    "Diagnostic",
    "EffectiveConfig",
    "__version__",
    "errors",
    "has_errors",
    "load_raw_config",
    "raise_for_errors",
    "resolve_config",
    "validate_effective",
]
