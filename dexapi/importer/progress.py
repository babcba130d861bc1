import asyncio
import threading
from collections import deque
from datetime import datetime
from typing import Optional

from dexapi.models import ImportStatus, utcnow

MAX_RECENT_LOGS = 50


class ImportProgress:
    """Live status of one in-flight import.

    Written by the import worker and read by status pollers, possibly from
    another thread, so every mutation goes through one lock. The rolling log
    keeps the newest MAX_RECENT_LOGS messages.
    """

    def __init__(self, import_id: str, source: str, total_count: int):
        self.import_id = import_id
        self.source = source
        self.total_count = total_count
        self.start_time: datetime = utcnow()
        self.last_update: datetime = self.start_time
        self._status = ImportStatus.PENDING
        self._processed = 0
        self._succeeded = 0
        self._errors = 0
        self._current_operation: Optional[str] = None
        self._recent_logs: deque[str] = deque(maxlen=MAX_RECENT_LOGS)
        self._lock = threading.Lock()

    def _touch(self):
        self.last_update = utcnow()

    def set_status(self, status: ImportStatus):
        with self._lock:
            self._status = status
            self._touch()

    def set_operation(self, operation: str):
        with self._lock:
            self._current_operation = operation
            self._touch()

    def add_log(self, message: str):
        with self._lock:
            self._recent_logs.append(f"{utcnow().isoformat()}: {message}")
            self._touch()

    def record_success(self, message: Optional[str] = None):
        with self._lock:
            self._processed += 1
            self._succeeded += 1
            if message:
                self._recent_logs.append(f"{utcnow().isoformat()}: {message}")
            self._touch()

    def record_skip(self, message: Optional[str] = None):
        with self._lock:
            self._processed += 1
            if message:
                self._recent_logs.append(f"{utcnow().isoformat()}: {message}")
            self._touch()

    def record_error(self, message: str):
        with self._lock:
            self._processed += 1
            self._errors += 1
            self._recent_logs.append(f"{utcnow().isoformat()}: {message}")
            self._touch()

    @property
    def status(self) -> ImportStatus:
        return self._status

    @property
    def processed_count(self) -> int:
        return self._processed

    @property
    def success_count(self) -> int:
        return self._succeeded

    @property
    def error_count(self) -> int:
        return self._errors

    @property
    def recent_logs(self) -> list[str]:
        with self._lock:
            return list(self._recent_logs)

    @property
    def progress_percentage(self) -> float:
        if self.total_count == 0:
            return 0.0
        return self._processed / self.total_count * 100

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "importId": self.import_id,
                "status": self._status.value,
                "source": self.source,
                "totalCount": self.total_count,
                "processedCount": self._processed,
                "successCount": self._succeeded,
                "errorCount": self._errors,
                "progressPercentage": round(self.progress_percentage, 1),
                "currentOperation": self._current_operation,
                "startTime": self.start_time.isoformat(),
                "lastUpdate": self.last_update.isoformat(),
                "recentLogs": list(self._recent_logs),
            }


class Interrupt:
    """Cooperative interruption signal observed by the rate-limit waits."""

    def __init__(self):
        self._event = asyncio.Event()

    def set(self):
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    async def pause(self, seconds: float) -> bool:
        """Waits `seconds`. Returns False if interrupted before or during the wait."""
        if self._event.is_set():
            return False
        if seconds <= 0:
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return True
        return False
