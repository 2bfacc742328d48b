from __future__ import annotations

import logging
from typing import Optional, Sequence

from .base import BaseScraper
from .errors import SessionFailure
from .models import AttemptResult, RunResult, Target, TargetOutcome
from .pacing import RequestPacer
from .runlog import RunLog
from .session import Session, SessionManager
from .storage import JsonFileStorage

logger = logging.getLogger(__name__)


class RetryOrchestrator:
    """Drives the attempt loop for each target of a batch, one at a time.

    Every target gets its own page, at most ``max_retries`` attempts, and a
    fixed pause between attempts and between targets. A SessionFailure
    stops the batch; targets that never started are left out of the result.
    ``stop()`` only prevents new attempts and targets from being scheduled.
    """

    def __init__(
        self,
        scraper: BaseScraper,
        session_manager: SessionManager,
        sink: JsonFileStorage,
        pacer: RequestPacer,
        max_retries: int,
        run_log: Optional[RunLog] = None,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self._scraper = scraper
        self._sessions = session_manager
        self._sink = sink
        self._pacer = pacer
        self._max_retries = max_retries
        self._log = run_log or RunLog()
        self._stopped = False

    @property
    def run_log(self) -> RunLog:
        return self._log

    def stop(self) -> None:
        if not self._stopped:
            self._stopped = True
            self._log.warning("Stop requested; no further attempts will be scheduled")

    async def run(self, targets: Sequence[Target]) -> RunResult:
        result = RunResult()
        self._log.info("Initializing scraper...")
        try:
            async with self._sessions.session() as session:
                self._log.success("Browser started")
                for index, target in enumerate(targets):
                    if self._stopped:
                        break
                    outcome = await self.scrape_target(session, target)
                    if outcome is not None:
                        result.outcomes.append(outcome)
                    if index < len(targets) - 1 and not self._stopped:
                        self._log.info(f"Waiting {self._pacer.delay_seconds:g} seconds before the next target...")
                        await self._pacer.wait()
            self._log.info("Browser closed")
        except SessionFailure as exc:
            result.aborted = str(exc)
            self._log.error(f"Browser session failed, aborting run: {exc}")
        except Exception as exc:  # noqa: BLE001
            logger.exception("run aborted by unexpected error")
            result.aborted = f"{type(exc).__name__}: {exc}"
            self._log.error(f"Unexpected error, aborting run: {exc}")

        done = len(result.succeeded)
        self._log.info(f"Run finished: {done} succeeded, {len(result.outcomes) - done} failed")
        result.logs = self._log.lines
        return result

    async def scrape_target(self, session: Session, target: Target) -> Optional[TargetOutcome]:
        """Attempt one target until success or the retry budget runs out.

        Returns None if a stop arrived before the first attempt."""
        self._log.info(f"Starting scrape of {target.url}")
        page = await self._sessions.new_page(session)
        try:
            attempts = 0
            last: Optional[AttemptResult] = None
            while attempts < self._max_retries and not self._stopped:
                self._log.info(f"Attempt {attempts + 1}/{self._max_retries} for {target.url}")
                last = await self._scraper.run(page, target, attempts + 1)
                if last.success and last.record is not None:
                    await self._sink.persist(last.record, run_log=self._log)
                    self._log.success(
                        f"Scraped {target.url} on attempt {last.attempt} ({len(last.record.fields)} fields)"
                    )
                    if not last.record.fields:
                        self._log.warning(f"No fields found on {target.url}")
                    return TargetOutcome(
                        target_id=target.target_id,
                        url=target.url,
                        success=True,
                        attempts=last.attempt,
                        record=last.record,
                    )

                attempts += 1
                self._log.error(f"Attempt {attempts}/{self._max_retries} failed: {last.reason}")
                if attempts < self._max_retries and not self._stopped:
                    self._log.info(f"Waiting {self._pacer.delay_seconds:g} seconds before the next attempt...")
                    await self._pacer.wait()
        finally:
            await self._sessions.release_page(session, page)

        if last is None:
            return None
        self._log.error(f"Failed to scrape {target.url} after {attempts} attempts")
        return TargetOutcome(
            target_id=target.target_id,
            url=target.url,
            success=False,
            attempts=attempts,
            error=last.reason,
        )
