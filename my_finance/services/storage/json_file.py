"""
Local JSON Storage Implementation

DESIGN DECISION: The ledger is kept in one JSON file on the user's machine:
1. No database setup required
2. The file is human-readable and doubles as a backup
3. Same document shape as the export, so moving data is trivial

TRADEOFFS:
- The whole snapshot is rewritten on every change (fine for personal use)
- No concurrent writers (there is only one user)

Writes go to a temporary file which then replaces the real one, so a crash
mid-write leaves the previous snapshot intact.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from my_finance.ledger.store import LedgerStore
from my_finance.models.audit import AuditEvent
from my_finance.services.storage.interface import (
    AuditStorageInterface,
    CorruptSnapshotError,
    SnapshotStorageInterface,
    StorageError,
)
from my_finance.services.storage.snapshot import dump_snapshot, dumps, load_snapshot, loads


logger = structlog.get_logger(__name__)


@retry(
    retry=retry_if_exception_type(OSError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
    reraise=True,
)
def _atomic_write(path: Path, text: str) -> None:
    """Write `text` to `path` through a temporary file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class JsonFileSnapshotStorage(SnapshotStorageInterface):
    """
    Snapshot storage backed by a single JSON file.
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[LedgerStore]:
        """Load the ledger from disk. None if the file does not exist yet."""
        if not self._path.exists():
            return None
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read snapshot {self._path}: {e}") from e
        except UnicodeDecodeError as e:
            raise CorruptSnapshotError(f"Snapshot {self._path} is not UTF-8 text: {e}") from e

        store = load_snapshot(loads(text))
        logger.info("snapshot_loaded", path=str(self._path), **store.counts())
        return store

    def save(self, store: LedgerStore) -> bool:
        """Overwrite the file with the full snapshot."""
        try:
            _atomic_write(self._path, dumps(dump_snapshot(store)))
        except OSError as e:
            raise StorageError(f"Failed to save snapshot {self._path}: {e}") from e
        logger.debug("snapshot_saved", path=str(self._path))
        return True

    def clear(self) -> bool:
        try:
            if self._path.exists():
                self._path.unlink()
                return True
            return False
        except OSError as e:
            raise StorageError(f"Failed to remove snapshot {self._path}: {e}") from e


class InMemorySnapshotStorage(SnapshotStorageInterface):
    """
    Snapshot storage that keeps the serialized document in memory.

    Goes through the same codec as the file storage, so it catches
    anything that would not survive a save/load cycle.
    """

    def __init__(self, text: Optional[str] = None):
        self.text = text
        self.save_count = 0

    def load(self) -> Optional[LedgerStore]:
        if self.text is None:
            return None
        return load_snapshot(loads(self.text))

    def save(self, store: LedgerStore) -> bool:
        self.text = dumps(dump_snapshot(store))
        self.save_count += 1
        return True

    def clear(self) -> bool:
        existed = self.text is not None
        self.text = None
        return existed


class JsonLinesAuditStorage(AuditStorageInterface):
    """
    Append-only audit log, one JSON event per line.
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as handle:
                handle.write(event.model_dump_json() + "\n")
            return True
        except OSError as e:
            # Don't raise - audit logging should not break the main flow
            logger.warning("audit_write_failed", error=str(e), path=str(self._path))
            return False

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Get recent events, newest first."""
        if not self._path.exists():
            return []
        try:
            lines = self._path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            raise StorageError(f"Failed to read audit log: {e}") from e

        events = []
        for line in lines:
            if not line.strip():
                continue
            try:
                events.append(AuditEvent.model_validate_json(line))
            except (ValidationError, json.JSONDecodeError):
                continue  # Skip malformed lines

        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
