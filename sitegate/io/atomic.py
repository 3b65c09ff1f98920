from __future__ import annotations

import errno
import json
import os
import random
import tempfile
import time
from pathlib import Path
from typing import Any, Optional

__all__ = [
    "atomic_write_text",
    "atomic_write_json",
    "atomic_replace",
]

# Consent files carry no secrets but are per-user; keep them private.
_DEFAULT_PERMS = 0o600
_RETRYABLE = {errno.EACCES, errno.EPERM, errno.EBUSY}


def _fsync_dir(path: Path) -> None:
    """Best-effort directory fsync; some platforms refuse it on directories."""
    try:
        fd = os.open(str(path), os.O_RDONLY)
    except OSError:
        return
    try:
        os.fsync(fd)
    except OSError:
        pass
    finally:
        os.close(fd)


def atomic_replace(tmp_path: Path, final_path: Path, *, retries: int = 20, backoff_ms: int = 10) -> None:
    """Move *tmp_path* over *final_path*, retrying on sharing violations.

    The temp file is removed if the replace never succeeds and the last
    error is re-raised.
    """
    final_path.parent.mkdir(parents=True, exist_ok=True)
    last_err: Optional[OSError] = None
    delay = backoff_ms / 1000.0

    for _ in range(retries):
        try:
            os.replace(str(tmp_path), str(final_path))
            _fsync_dir(final_path.parent)
            return
        except OSError as e:
            last_err = e
            if not isinstance(e, PermissionError) and e.errno not in _RETRYABLE:
                break
        time.sleep(delay + random.uniform(0, delay * 0.25))
        delay = min(delay * 1.5, 0.25)

    try:
        if tmp_path.exists():
            tmp_path.unlink()
    finally:
        if last_err is not None:
            raise last_err


def _make_tmp(final_path: Path) -> Path:
    final_path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        prefix=final_path.name + ".",
        dir=str(final_path.parent),
        delete=False,
    ) as tf:
        return Path(tf.name)


def atomic_write_text(final_path: Path | str, text: str, *, encoding: str = "utf-8") -> None:
    """Write *text* to a sibling temp file, fsync it, then replace the target.

    Existing permissions are kept; new files get owner-only access.
    """
    final = Path(final_path)
    tmp = _make_tmp(final)
    try:
        with open(tmp, "wb", buffering=0) as f:
            f.write(text.replace("\r\n", "\n").encode(encoding))
            f.flush()
            os.fsync(f.fileno())
        try:
            mode = final.stat().st_mode
        except FileNotFoundError:
            mode = _DEFAULT_PERMS
        os.chmod(tmp, mode)
        atomic_replace(tmp, final)
    except BaseException:
        try:
            if tmp.exists():
                tmp.unlink()
        finally:
            raise


def atomic_write_json(final_path: Path | str, obj: Any, *, indent: int | None = 2) -> None:
    """Atomically write *obj* as JSON with sorted keys and a trailing newline."""
    payload = json.dumps(obj, sort_keys=True, indent=indent, ensure_ascii=False)
    atomic_write_text(final_path, payload + "\n")
