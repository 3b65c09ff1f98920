from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

__all__ = ["CONSENT_ENV", "DEFAULT_CONSENT_REL", "consent_path"]

CONSENT_ENV = "SITEGATE_CONSENT_PATH"
DEFAULT_CONSENT_REL = Path(".sitegate") / "consent.json"


def consent_path(
    explicit: Optional[str] = None,
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Path:
    """
    Resolve the consent store file with the following precedence:
    1) explicit path (``--store``)
    2) SITEGATE_CONSENT_PATH
    3) ./.sitegate/consent.json under the current working directory

    The file itself may not exist yet; its parent is created on first save.
    """
    if explicit:
        return Path(os.path.expandvars(explicit)).expanduser()
    env = os.environ if env is None else env
    v = env.get(CONSENT_ENV)
    if v:
        return Path(os.path.expandvars(v)).expanduser()
    return (cwd or Path.cwd()) / DEFAULT_CONSENT_REL
