"""
Roll-keyed record store.

═══════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════

Responsibility: get / set / delete one SnowbridgeRecord per roll.

Two implementations share the same three-method surface:
- InMemoryRecordStore: dict-backed, for tests and headless runs
- JsonRecordStore: a single JSON object on disk, guarded by a filelock so
  several processes (e.g. two operator sessions) never interleave
  read-modify-write cycles

Fail-soft rules:
- Missing, empty or corrupt JSON reads as {} (logged as a warning)
- Lock timeout on read falls back to an unlocked read
- Lock timeout on write raises RecordStoreError (the caller reports it)

Rolls are always coerced to str.
═══════════════════════════════════════════════════════════════════════════
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

import filelock

from SnowBridge_Core.models import SnowbridgeRecord

logger = logging.getLogger(__name__)


class RecordStoreError(RuntimeError):
    """Raised when a record cannot be written."""


class RecordStore(Protocol):
    def get(self, roll: Any) -> Optional[SnowbridgeRecord]: ...

    def set(self, roll: Any, record: SnowbridgeRecord) -> None: ...

    def delete(self, roll: Any) -> None: ...


# ═══════════════════════════════════════════════════════════════════════════
# 📊 STORE STATISTICS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass
class RecordStoreStats:
    """Counters for store health."""

    reads: int = 0
    writes: int = 0
    corrupt_resets: int = 0
    lock_timeouts: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reads": self.reads,
            "writes": self.writes,
            "corrupt_resets": self.corrupt_resets,
            "lock_timeouts": self.lock_timeouts,
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🧠 IN-MEMORY STORE
# ═══════════════════════════════════════════════════════════════════════════


class InMemoryRecordStore:
    """Dict-backed store."""

    def __init__(self, initial: Optional[Dict[str, SnowbridgeRecord]] = None) -> None:
        self._records: Dict[str, SnowbridgeRecord] = {
            str(k): v for k, v in (initial or {}).items()
        }

    def get(self, roll: Any) -> Optional[SnowbridgeRecord]:
        if roll is None:
            return None
        return self._records.get(str(roll))

    def set(self, roll: Any, record: SnowbridgeRecord) -> None:
        self._records[str(roll)] = record

    def delete(self, roll: Any) -> None:
        self._records.pop(str(roll), None)

    def __len__(self) -> int:
        return len(self._records)


# ═══════════════════════════════════════════════════════════════════════════
# 💾 JSON FILE STORE
# ═══════════════════════════════════════════════════════════════════════════


class JsonRecordStore:
    """
    JSON-file store guarded by filelock.

    Example:
        store = JsonRecordStore("Output/snowbridge_records.json")
        store.set("123", SnowbridgeRecord(drawing="data:image/png;base64,..."))
        store.get("123").drawing
    """

    def __init__(self, path: Any, lock_timeout_s: float = 10.0) -> None:
        self.path = Path(path)
        self.lock_path = self.path.with_suffix(self.path.suffix + ".lock")
        self.lock_timeout_s = lock_timeout_s
        self.stats = RecordStoreStats()
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _lock(self) -> filelock.FileLock:
        return filelock.FileLock(str(self.lock_path), timeout=self.lock_timeout_s)

    def _read_db(self) -> Dict[str, Any]:
        """Load the whole object; {} on missing, empty or corrupt content."""
        self.stats.reads += 1
        if not self.path.exists():
            return {}
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"⚠️ Cannot read record store {self.path}: {e}")
            return {}
        if not raw.strip():
            return {}
        try:
            db = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"⚠️ Corrupt record store {self.path}, resetting: {e}")
            self.stats.corrupt_resets += 1
            return {}
        if not isinstance(db, dict):
            logger.warning(f"⚠️ Record store {self.path} is not an object, resetting")
            self.stats.corrupt_resets += 1
            return {}
        return db

    def _write_db(self, db: Dict[str, Any]) -> None:
        fd, tmp_name = tempfile.mkstemp(
            prefix=self.path.name, suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(db, f, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        finally:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
        self.stats.writes += 1

    def load_all(self) -> Dict[str, SnowbridgeRecord]:
        """All records keyed by roll (unreadable entries skipped)."""
        try:
            with self._lock():
                db = self._read_db()
        except filelock.Timeout:
            self.stats.lock_timeouts += 1
            logger.warning(f"⏱️ Record store lock timeout, reading unlocked: {self.path}")
            db = self._read_db()
        records: Dict[str, SnowbridgeRecord] = {}
        for roll, raw in db.items():
            record = SnowbridgeRecord.from_dict(raw)
            if record is not None:
                records[str(roll)] = record
        return records

    def get(self, roll: Any) -> Optional[SnowbridgeRecord]:
        if roll is None:
            return None
        return self.load_all().get(str(roll))

    def _update(self, roll: Any, record: Optional[SnowbridgeRecord]) -> None:
        try:
            with self._lock():
                db = self._read_db()
                if record is None:
                    db.pop(str(roll), None)
                else:
                    db[str(roll)] = record.to_dict()
                self._write_db(db)
        except filelock.Timeout as e:
            self.stats.lock_timeouts += 1
            raise RecordStoreError(
                f"record store locked for more than {self.lock_timeout_s}s: {self.path}"
            ) from e
        except OSError as e:
            raise RecordStoreError(f"cannot write record store {self.path}: {e}") from e

    def set(self, roll: Any, record: SnowbridgeRecord) -> None:
        self._update(roll, record)

    def delete(self, roll: Any) -> None:
        self._update(roll, None)
