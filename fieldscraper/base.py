from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Any, Optional

from .errors import SessionFailure
from .metrics import MetricsCollector
from .models import AttemptResult, ExtractionRecord, Target


class BaseScraper(ABC):
    """Abstract base class defining one scrape attempt against an open page.

    - fetch() loads the target and returns something parse() can read.
    - parse() turns it into an ExtractionRecord.
    - Any failure becomes a failed AttemptResult carrying the exception
      class name; only SessionFailure escapes, since it ends the batch.
    """

    def __init__(self, metrics: Optional[MetricsCollector] = None) -> None:
        self._metrics = metrics

    async def run(self, page: Any, target: Target, attempt: int) -> AttemptResult:
        start_ms = self._now_ms()

        try:
            self.validate(target)
            loaded = await self.fetch(page, target)
            record = await self.parse(loaded)
        except SessionFailure:
            raise
        except Exception as exc:  # noqa: BLE001
            result = AttemptResult(
                target_id=target.target_id,
                url=target.url,
                attempt=attempt,
                success=False,
                latency_ms=self._now_ms() - start_ms,
                record=None,
                error_type=type(exc).__name__,
                reason=str(exc) or type(exc).__name__,
            )
            if self._metrics:
                self._metrics.record_result(result)
            return result

        result = AttemptResult(
            target_id=target.target_id,
            url=target.url,
            attempt=attempt,
            success=True,
            latency_ms=self._now_ms() - start_ms,
            record=record,
            error_type=None,
        )
        if self._metrics:
            self._metrics.record_result(result)
        return result

    def validate(self, target: Target) -> None:
        if not target.url:
            raise ValueError("target.url is required")

    @abstractmethod
    async def fetch(self, page: Any, target: Target) -> Any:
        ...

    @abstractmethod
    async def parse(self, loaded: Any) -> ExtractionRecord:
        ...

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)
