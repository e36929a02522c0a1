"""Storage for staking records."""
import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Tuple
from filelock import FileLock
from loguru import logger

from .errors import RecordExistsError, RecordNotFoundError, StorageConflictError
from .record import StakingRecord


class RecordStore(ABC):
    """Versioned record storage.

    Every committed change bumps the record version. A commit made against a
    version that is no longer current is rejected, so at most one mutation of
    a record can win from any given load.
    """

    @abstractmethod
    def create(self, record: StakingRecord) -> int:
        """Store a new record and return its version.

        Raises:
            RecordExistsError: If the owner already has a record
        """

    @abstractmethod
    def load(self, owner: str) -> Tuple[StakingRecord, int]:
        """Get a private copy of the owner's record and its version.

        Raises:
            RecordNotFoundError: If the owner has no record
        """

    @abstractmethod
    def commit(self, record: StakingRecord, expected_version: int) -> int:
        """Replace the stored record and return the new version.

        Raises:
            RecordNotFoundError: If the owner has no record
            StorageConflictError: If the stored version is not ``expected_version``
        """

    @abstractmethod
    def owners(self) -> List[str]:
        """Get all owners with a record."""


class MemoryRecordStore(RecordStore):
    """Records kept in process memory."""

    def __init__(self):
        self._records: Dict[str, Tuple[StakingRecord, int]] = {}
        self._lock = threading.Lock()

    def create(self, record: StakingRecord) -> int:
        with self._lock:
            if record.owner in self._records:
                raise RecordExistsError(record.owner)
            self._records[record.owner] = (record.model_copy(), 1)
            return 1

    def load(self, owner: str) -> Tuple[StakingRecord, int]:
        with self._lock:
            if owner not in self._records:
                raise RecordNotFoundError(owner)
            record, version = self._records[owner]
            return record.model_copy(), version

    def commit(self, record: StakingRecord, expected_version: int) -> int:
        with self._lock:
            if record.owner not in self._records:
                raise RecordNotFoundError(record.owner)
            _, version = self._records[record.owner]
            if version != expected_version:
                raise StorageConflictError(record.owner, expected_version, version)
            self._records[record.owner] = (record.model_copy(), version + 1)
            return version + 1

    def owners(self) -> List[str]:
        with self._lock:
            return sorted(self._records)


class JsonRecordStore(RecordStore):
    """One JSON file per owner inside a directory.

    Reads and writes hold an exclusive lock on ``<records_dir>/.lock``, so
    the version check and the write of a commit are atomic across processes.
    """

    def __init__(self, records_dir: Path):
        """Initialize the store.

        Args:
            records_dir: Directory holding the record files, created if missing
        """
        self.records_dir = Path(records_dir)
        self.records_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._file_lock = FileLock(str(self.records_dir / ".lock"))

    @contextmanager
    def _locked(self) -> Iterator[None]:
        with self._lock, self._file_lock:
            yield

    def _path(self, owner: str) -> Path:
        # Owner ids are opaque, so file names use their hex encoding.
        return self.records_dir / f"{owner.encode('utf-8').hex()}.json"

    def _read(self, owner: str) -> Tuple[StakingRecord, int]:
        path = self._path(owner)
        if not path.exists():
            raise RecordNotFoundError(owner)
        with open(path) as f:
            data = json.load(f)
        return StakingRecord(**data["record"]), int(data["version"])

    def _write(self, record: StakingRecord, version: int) -> None:
        with tempfile.NamedTemporaryFile('w', dir=self.records_dir, suffix=".tmp",
                                         delete=False) as f:
            json.dump({"version": version, "record": record.model_dump()}, f, indent=2)
        os.replace(f.name, self._path(record.owner))

    def create(self, record: StakingRecord) -> int:
        with self._locked():
            if self._path(record.owner).exists():
                raise RecordExistsError(record.owner)
            self._write(record, 1)
            logger.debug(f"Created record file for {record.owner}")
            return 1

    def load(self, owner: str) -> Tuple[StakingRecord, int]:
        with self._locked():
            return self._read(owner)

    def commit(self, record: StakingRecord, expected_version: int) -> int:
        with self._locked():
            _, version = self._read(record.owner)
            if version != expected_version:
                raise StorageConflictError(record.owner, expected_version, version)
            self._write(record, version + 1)
            return version + 1

    def owners(self) -> List[str]:
        owners = []
        with self._locked():
            for path in self.records_dir.glob('*.json'):
                try:
                    owners.append(bytes.fromhex(path.stem).decode('utf-8'))
                except ValueError as e:
                    logger.warning(f"Skipping unexpected file {path.name}: {e}")
        return sorted(owners)
