from __future__ import annotations

import json
import sys
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

import yaml

from ..errors import ConfigError

__all__ = ["load_raw_config", "parse_raw_config"]


# ---- small helpers --------------------------------------------------------

def _format_for(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix == ".toml":
        return "toml"
    if suffix == ".json":
        return "json"
    return "yaml"


def _mapping(data: Any, origin: str) -> Dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{origin}: top-level config must be a mapping, got {type(data).__name__}")
    return data


# ---- loader ---------------------------------------------------------------

def parse_raw_config(text: str, fmt: str = "yaml", *, origin: str = "<string>") -> Dict[str, Any]:
    """Parse config text in ``fmt`` (yaml | json | toml) into a RawConfig mapping.

    YAML is the default since it also accepts JSON documents. Blank input is an
    empty config.
    """
    if not text.strip():
        return {}
    try:
        if fmt == "toml":
            data = tomllib.loads(text)
        elif fmt == "json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (yaml.YAMLError, json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"{origin}: failed to parse {fmt.upper()}: {e}") from e
    return _mapping(data, origin)


def load_raw_config(path: str | Path, *, stdin: Optional[TextIO] = None) -> Dict[str, Any]:
    """
    Load a site configuration file.
    Behavior:
      * ``.toml`` is read with tomllib, ``.json`` with json, everything else with yaml.safe_load.
      * ``-`` reads YAML/JSON from stdin.
      * Missing or unreadable files, parse failures and non-mapping documents raise ConfigError.
    """
    if str(path) == "-":
        stream = stdin if stdin is not None else sys.stdin
        return parse_raw_config(stream.read(), "yaml", origin="<stdin>")

    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigError(f"config file not found: {p}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"failed to read config {p}: {e}") from e
    return parse_raw_config(text, _format_for(p), origin=str(p))
