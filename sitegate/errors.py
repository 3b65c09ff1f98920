from __future__ import annotations

"""Typed error taxonomy.

The engine itself is fail-soft: malformed configuration degrades to defaults
and Diagnostic entries. These classes cover the edges where a caller asked for
strictness (strict coercion, fail-the-build policy) or where I/O is involved.
"""

__all__ = [
    "SitegateError",
    "ConfigError",
    "CoercionAmbiguous",
    "StorageError",
    "CLIError",
    "format_error",
]


class SitegateError(Exception):
    """Base class for all typed, operator-facing errors in sitegate."""
    pass


class ConfigError(SitegateError):
    """Configuration unreadable, unparsable, or rejected by build policy."""
    pass


class CoercionAmbiguous(SitegateError):
    """A boolean-like string outside the recognized true/false spellings."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"ambiguous boolean value: {value!r}")


class StorageError(SitegateError):
    """Consent storage unavailable or holding corrupt data."""
    pass


class CLIError(SitegateError):
    """Generic CLI failure wrapper for unexpected errors in CLI code paths."""
    pass


def format_error(e: BaseException) -> str:
    """Return a short, uniform operator-facing message like 'ConfigError: detail'."""
    name = e.__class__.__name__
    msg = str(e).strip()
    return f"{name}: {msg}" if msg else name


# Keep star-export order deterministic for tests and tooling
__all__ = sorted(__all__)
