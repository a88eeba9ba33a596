"""Record store interface and implementations.

The store owns the canonical, insertion-ordered collection of user records
and the persistent copy of it. Every mutation rewrites the whole collection;
read and write failures are downgraded to :class:`PersistenceWarning` so
the in-memory collection stays authoritative for the life of the process.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import ValidationError

from src.roster.core.exceptions import PersistenceWarning
from src.roster.entities import RecordId, User

WarningListener = Callable[[PersistenceWarning], None]


class RecordStore(ABC):
    """Abstract record store with single-writer access.

    Callers hold :attr:`lock` around any read or mutation of :attr:`records`.
    The lock is re-entrant so a service method may call :meth:`persist`
    while already holding it.
    """

    def __init__(self, max_recent_warnings: int = 20):
        self._records: list[User] = []
        self._unreadable: list[tuple[int, Any]] = []
        self._lock = threading.RLock()
        self._warnings: deque[PersistenceWarning] = deque(maxlen=max_recent_warnings)
        self._failure_count = 0
        self._listeners: list[WarningListener] = []
        self._degraded = False

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def records(self) -> list[User]:
        """The canonical collection. Mutate only while holding :attr:`lock`."""
        return self._records

    @property
    def unreadable(self) -> list[Any]:
        """Persisted entries that are not valid user records.

        They are never served, and are written back verbatim at their
        original positions.
        """
        return [entry for _, entry in self._unreadable]

    @property
    def location(self) -> str:
        """Human readable location of the persistent copy."""
        return "memory"

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def degraded(self) -> bool:
        """True while the most recent write of the persistent copy failed."""
        return self._degraded

    @property
    def recent_warnings(self) -> list[PersistenceWarning]:
        return list(self._warnings)

    def add_warning_listener(self, listener: WarningListener) -> None:
        """Register a callback invoked with every persistence warning."""
        self._listeners.append(listener)

    def new_id(self) -> RecordId:
        """Return an identifier not used by any record in the collection."""
        with self._lock:
            taken = {record.record_id for record in self._records}
            taken.update(_raw_id(entry) for _, entry in self._unreadable)
            record_id = RecordId.generate()
            while record_id.oid in taken:
                record_id = RecordId.generate()
            return record_id

    def load(self) -> int:
        """Replace the collection with the persisted copy.

        Any read or parse failure leaves the store empty and records a
        warning. Returns the number of records loaded.
        """
        with self._lock:
            try:
                raw = self._read()
            except Exception as e:
                self._records = []
                self._unreadable = []
                self._warn("load", e)
                return 0

            self._unreadable = []
            self._records = list(self._parse(raw))
            if self._unreadable:
                logger.warning(
                    "Keeping {} unreadable roster entries unchanged", len(self._unreadable)
                )
            logger.info("Loaded {} users from {}", len(self._records), self.location)
            return len(self._records)

    def persist(self) -> bool:
        """Overwrite the persisted copy with the whole collection.

        Returns False when the write failed; the failure is logged and kept
        as a warning but never raised.
        """
        with self._lock:
            documents: list[Any] = [record.to_document() for record in self._records]
            # positions stay valid because records are only ever appended
            for position, entry in self._unreadable:
                documents.insert(position, entry)
            try:
                self._write(documents)
            except Exception as e:
                self._degraded = True
                self._warn("persist", e)
                return False

            self._degraded = False
            logger.debug("Saved {} users to {}", len(documents), self.location)
            return True

    def _parse(self, raw: Any) -> Iterable[User]:
        if not isinstance(raw, list):
            self._warn("load", ValueError("roster file must contain a JSON array"))
            return

        seen: set[str] = set()
        for position, entry in enumerate(raw):
            if not isinstance(entry, dict):
                logger.warning("Roster entry {} is not an object", position)
                self._unreadable.append((position, entry))
                continue
            try:
                record = User.model_validate(entry)
            except ValidationError as e:
                logger.warning("Roster entry {} is not a valid user: {}", position, e)
                self._unreadable.append((position, entry))
                continue

            if "id" not in entry or record.record_id in seen:
                record.id = RecordId.generate()
                while record.record_id in seen:
                    record.id = RecordId.generate()
                logger.warning(
                    "Roster entry {} had a missing or duplicate id; assigned {}",
                    position,
                    record.record_id,
                )
            seen.add(record.record_id)
            yield record

    def _warn(self, operation: str, error: Exception) -> None:
        warning = PersistenceWarning(
            operation=operation, path=self.location, error=str(error)
        )
        self._failure_count += 1
        self._warnings.append(warning)
        logger.bind(operation=operation, path=self.location).warning(
            "Roster {} failed: {}", operation, error
        )
        for listener in self._listeners:
            try:
                listener(warning)
            except Exception:
                logger.exception("Persistence warning listener failed")

    @abstractmethod
    def _read(self) -> Any:
        """Return the decoded persistent copy."""

    @abstractmethod
    def _write(self, documents: list[dict[str, Any]]) -> None:
        """Replace the persistent copy with ``documents``."""


def _raw_id(entry: Any) -> str | None:
    raw = entry.get("id") if isinstance(entry, dict) else None
    if isinstance(raw, dict):
        raw = raw.get("$oid")
    return raw if isinstance(raw, str) else None


class InMemoryRecordStore(RecordStore):
    """Record store without a persistent copy, seeded from a list of documents."""

    def __init__(
        self,
        documents: list[dict[str, Any]] | None = None,
        max_recent_warnings: int = 20,
    ):
        super().__init__(max_recent_warnings=max_recent_warnings)
        self._documents: list[dict[str, Any]] = list(documents or [])

    @property
    def documents(self) -> list[dict[str, Any]]:
        """The last snapshot handed to :meth:`persist`."""
        return self._documents

    def _read(self) -> Any:
        return json.loads(json.dumps(self._documents))

    def _write(self, documents: list[dict[str, Any]]) -> None:
        self._documents = documents


class JsonFileRecordStore(RecordStore):
    """Record store backed by a single JSON array file.

    Writes go to a temporary file in the same directory which is then
    renamed over the target, so a crash mid-write never truncates it.
    """

    def __init__(
        self, path: str | Path, indent: int | None = 2, max_recent_warnings: int = 20
    ):
        super().__init__(max_recent_warnings=max_recent_warnings)
        self._path = Path(path)
        self._indent = indent

    @property
    def path(self) -> Path:
        return self._path

    @property
    def location(self) -> str:
        return str(self._path)

    def _read(self) -> Any:
        with open(self._path, encoding="utf-8") as f:
            return json.load(f)

    def _write(self, documents: list[dict[str, Any]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(documents, f, indent=self._indent, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def build_record_store(
    path: str, indent: int = 2, max_recent_warnings: int = 20
) -> RecordStore:
    """Create the store for a configured path; ``:memory:`` keeps nothing on disk."""
    if path == ":memory:":
        return InMemoryRecordStore(max_recent_warnings=max_recent_warnings)
    return JsonFileRecordStore(path, indent=indent, max_recent_warnings=max_recent_warnings)
