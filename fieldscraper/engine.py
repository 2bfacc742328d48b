from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional, Sequence

from .challenge import ChallengeHandler
from .config import ScrapeConfig
from .document import DocumentView, PlaywrightDocument
from .extractor import Extractor
from .metrics import MetricsCollector
from .models import RunResult, Target
from .navigator import Navigator
from .orchestrator import RetryOrchestrator
from .pacing import RequestPacer
from .runlog import RunLog
from .scrapers import PageScraper
from .session import SessionManager
from .storage import JsonFileStorage


class ScrapeEngine:
    """Builds the scraping pipeline from a ScrapeConfig and runs batches.

    A fresh RunLog and orchestrator are created per run; the metrics
    collector lives as long as the engine."""

    def __init__(
        self,
        config: ScrapeConfig,
        metrics: Optional[MetricsCollector] = None,
        session_manager: Optional[SessionManager] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        document_factory: Optional[Callable[[Any], DocumentView]] = None,
    ) -> None:
        self._config = config
        self._metrics = metrics or MetricsCollector()
        self._sessions = session_manager or SessionManager(
            interactive=config.interactive,
            user_agent=config.user_agent,
            viewport=config.viewport,
            executable_path=config.executable_path,
        )
        self._sleep = sleep
        self._document_factory = document_factory
        self._orchestrator: Optional[RetryOrchestrator] = None
        self._stop_requested = False

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    def build(self, run_log: RunLog) -> RetryOrchestrator:
        cfg = self._config
        challenge = ChallengeHandler(
            interactive=cfg.interactive,
            poll_interval=cfg.challenge_poll_interval,
            max_wait=cfg.challenge_max_wait,
            sleep=self._sleep,
            run_log=run_log,
        )
        scraper = PageScraper(
            navigator=Navigator(timeout_ms=cfg.navigation_timeout_ms),
            challenge_handler=challenge,
            extractor=Extractor(),
            metrics=self._metrics,
            document_factory=self._document_factory or PlaywrightDocument,
        )
        return RetryOrchestrator(
            scraper=scraper,
            session_manager=self._sessions,
            sink=JsonFileStorage(cfg.data_dir, prefix=cfg.file_prefix),
            pacer=RequestPacer(cfg.request_delay_ms, sleep=self._sleep),
            max_retries=cfg.max_retries,
            run_log=run_log,
        )

    async def run(self, targets: Sequence[Target]) -> RunResult:
        if not targets:
            raise ValueError("At least one target is required")
        self._orchestrator = self.build(RunLog())
        if self._stop_requested:
            self._orchestrator.stop()
        try:
            return await self._orchestrator.run(targets)
        finally:
            self._orchestrator = None
            self._stop_requested = False

    def stop(self) -> None:
        """Stop scheduling new targets and attempts for the current run."""
        self._stop_requested = True
        if self._orchestrator is not None:
            self._orchestrator.stop()


async def scrape_batch(targets: Sequence[Target], config: ScrapeConfig) -> RunResult:
    return await ScrapeEngine(config).run(targets)
