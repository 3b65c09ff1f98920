from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Mapping, Optional, TextIO, Tuple

ENV_VAR = "SITEGATE_CONFIG"
# Searched in order under the current working directory
CWD_CANDIDATES = (
    Path("sitegate.yaml"),
    Path("config.yaml"),
    Path("config.toml"),
    Path("hugo.toml"),
)
# XDG subpath under $XDG_CONFIG_HOME (or ~/.config if unset)
XDG_SUBPATH = Path("sitegate") / "config.yaml"


def _coerce_candidate(p: Path) -> Optional[Path]:
    """Return a concrete config file path if the candidate exists.

    Accepts a file path *or* a directory; directories are searched for the
    cwd candidate names. Returns the resolved file path if found, else None.
    """
    if p.is_dir():
        for name in CWD_CANDIDATES:
            if (p / name).is_file():
                return (p / name).resolve()
        return None
    if p.is_file():
        return p.resolve()
    return None


def discover_config_path(
    explicit: Optional[str],
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Tuple[Optional[Path], str]:
    """Deterministic config discovery.

    Order (only when `explicit` is not provided):
      1) $SITEGATE_CONFIG (file or dir)
      2) CWD: ./sitegate.yaml, ./config.yaml, ./config.toml, ./hugo.toml
      3) XDG: ${XDG_CONFIG_HOME:-$HOME/.config}/sitegate/config.yaml

    Returns a tuple: (selected_path or None, source_tag).
    Source tags: 'explicit', 'explicit-missing', 'env:SITEGATE_CONFIG',
    'cwd:<name>', 'xdg', 'none'.
    """
    cwd = cwd or Path.cwd()
    env = dict(os.environ if env is None else env)

    # explicit path always wins; report it even if missing
    if explicit:
        expanded = Path(os.path.expandvars(explicit)).expanduser()
        sel = _coerce_candidate(expanded)
        if sel is not None:
            return sel, "explicit"
        return expanded, "explicit-missing"

    cenv = env.get(ENV_VAR)
    if cenv:
        sel = _coerce_candidate(Path(os.path.expandvars(cenv)).expanduser())
        if sel is not None:
            return sel, f"env:{ENV_VAR}"

    for rel in CWD_CANDIDATES:
        sel = _coerce_candidate(cwd / rel)
        if sel is not None:
            return sel, f"cwd:{rel.as_posix()}"

    xdg_base = env.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    sel = _coerce_candidate(Path(xdg_base).expanduser() / XDG_SUBPATH)
    if sel is not None:
        return sel, "xdg"

    return None, "none"


def maybe_log_selected(
    path: Optional[Path], source: str, *, verbose: bool = False, stream: Optional[TextIO] = None
) -> None:
    """Emit a one-line message about the selected config when verbose.

    Written to stderr by default to avoid mixing with command outputs.
    """
    if not verbose:
        return
    if stream is None:
        stream = sys.stderr
    stream.write(f"[sitegate] config: selected={path if path else 'none'} (source={source})\n")
    stream.flush()


__all__ = [
    "CWD_CANDIDATES",
    "ENV_VAR",
    "XDG_SUBPATH",
    "discover_config_path",
    "maybe_log_selected",
]
