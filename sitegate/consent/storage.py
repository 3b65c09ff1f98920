"""Where consent decisions live between visits.

The engine only needs ``load`` and ``save``; backends decide how and where.
Both are allowed to fail: ``load`` reports absence as None, ``save`` raises
StorageError and leaves handling to the caller.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from ..errors import StorageError
from ..io.atomic import atomic_write_json
from .record import ConsentRecord

__all__ = ["STORAGE_KEY", "ConsentStorage", "MemoryStorage", "JsonFileStorage"]

_logger = logging.getLogger(__name__)

STORAGE_KEY = "theme-consent"


@runtime_checkable
class ConsentStorage(Protocol):
    def load(self) -> Optional[ConsentRecord]: ...

    def save(self, record: ConsentRecord) -> None: ...


class MemoryStorage:
    """In-process store, handy for tests and server-side evaluation."""

    def __init__(self, record: Optional[ConsentRecord] = None):
        self.record = record
        self.saves = 0

    def load(self) -> Optional[ConsentRecord]:
        return self.record

    def save(self, record: ConsentRecord) -> None:
        self.record = record
        self.saves += 1


class JsonFileStorage:
    """JSON file holding ``{key: record}``, so several keys can share a file.

    Other keys already present in the file are preserved on save.
    """

    def __init__(self, path: Path | str, key: str = STORAGE_KEY):
        self.path = Path(path)
        self.key = key

    def _read_document(self) -> Dict[str, Any]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"cannot read consent store {self.path}: {e}") from e
        try:
            doc = json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as e:
            raise StorageError(f"consent store {self.path} is not valid JSON: {e}") from e
        if not isinstance(doc, dict):
            raise StorageError(f"consent store {self.path} must hold a JSON object")
        return doc

    def load(self) -> Optional[ConsentRecord]:
        try:
            doc = self._read_document()
        except StorageError as e:
            _logger.warning("Ignoring stored consent: %s", e)
            return None
        if self.key not in doc:
            return None
        record = ConsentRecord.from_dict(doc[self.key])
        if record is None:
            _logger.warning("Ignoring malformed consent record under %r in %s", self.key, self.path)
        return record

    def save(self, record: ConsentRecord) -> None:
        try:
            doc = self._read_document()
        except StorageError as e:
            _logger.warning("Overwriting unreadable consent store: %s", e)
            doc = {}
        doc[self.key] = record.to_dict()
        try:
            atomic_write_json(self.path, doc)
        except OSError as e:
            raise StorageError(f"cannot write consent store {self.path}: {e}") from e
