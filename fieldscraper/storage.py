from __future__ import annotations

import asyncio
import json
import logging
import os
import queue
import threading
import time
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from .errors import PersistenceFailure
from .models import ExtractionRecord, TargetOutcome
from .runlog import RunLog

logger = logging.getLogger(__name__)


class StorageBase(ABC):
    """Abstract base class for all storage backends."""

    @abstractmethod
    def write(self, item: Any) -> None:
        """Persist a single item."""

    @abstractmethod
    def close(self) -> None:
        """Flush pending writes and release resources."""


class JsonFileStorage(StorageBase):
    """Writes each successful ExtractionRecord to its own JSON file.

    File names embed the epoch milliseconds plus a short random suffix so
    two records written in the same millisecond do not collide. Writes are
    best-effort: persist() logs a failure and returns None, it never raises.
    """

    def __init__(self, data_dir: str, prefix: str = "application_data") -> None:
        self._data_dir = data_dir
        self._prefix = prefix

    @property
    def data_dir(self) -> str:
        return self._data_dir

    async def persist(self, record: ExtractionRecord, run_log: Optional[RunLog] = None) -> Optional[str]:
        """Write the record off the event loop; return the path or None."""
        try:
            path = await asyncio.to_thread(self.write, record)
        except PersistenceFailure as exc:
            logger.error("persistence failed: %s", exc)
            if run_log is not None:
                run_log.warning(f"Could not save data: {exc}")
            return None
        except Exception as exc:  # noqa: BLE001
            logger.exception("unexpected error while saving a record")
            if run_log is not None:
                run_log.warning(f"Could not save data: {exc}")
            return None
        if run_log is not None:
            run_log.info(f"Data saved: {os.path.basename(path)}")
        return path

    def write(self, record: ExtractionRecord) -> str:
        filename = f"{self._prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}.json"
        path = os.path.join(self._data_dir, filename)
        try:
            os.makedirs(self._data_dir, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(record.to_dict(), f, ensure_ascii=False, indent=2)
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceFailure(f"{path}: {exc}") from exc
        return path

    def close(self) -> None:
        pass


class JsonlStorage(StorageBase):
    """Appends target outcomes as JSON Lines using a background writer thread."""

    def __init__(self, path: str) -> None:
        self._path = path
        self._queue: queue.Queue[Optional[TargetOutcome]] = queue.Queue()
        self._thread = threading.Thread(target=self._writer, daemon=True)
        self._thread.start()

    def write(self, outcome: TargetOutcome) -> None:
        """Enqueue an outcome for background writing."""
        self._queue.put(outcome)

    def close(self) -> None:
        """Signal the writer thread to flush and stop."""
        self._queue.put(None)
        self._thread.join(timeout=5)

    def _writer(self) -> None:
        with open(self._path, "a", encoding="utf-8") as f:
            while True:
                item = self._queue.get()
                if item is None:
                    break
                row: Dict[str, Any] = {"written_at": time.time(), **item.to_dict()}
                f.write(json.dumps(row, ensure_ascii=False) + "\n")
                f.flush()
