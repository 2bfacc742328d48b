from __future__ import annotations

from typing import Any, Callable, Optional

from .base import BaseScraper
from .challenge import ChallengeHandler
from .document import DocumentView, PlaywrightDocument
from .extractor import Extractor
from .metrics import MetricsCollector
from .models import ExtractionRecord, Target
from .navigator import Navigator


class PageScraper(BaseScraper):
    """Navigate, clear any challenge, then extract fields from the page.

    The challenge check runs once per navigation, right after the load.
    A challenge that appears later surfaces as an ExtractionFailure."""

    def __init__(
        self,
        navigator: Navigator,
        challenge_handler: ChallengeHandler,
        extractor: Extractor,
        metrics: Optional[MetricsCollector] = None,
        document_factory: Callable[[Any], DocumentView] = PlaywrightDocument,
    ) -> None:
        super().__init__(metrics=metrics)
        self._navigator = navigator
        self._challenge = challenge_handler
        self._extractor = extractor
        self._document_factory = document_factory

    async def fetch(self, page: Any, target: Target) -> DocumentView:
        await self._navigator.navigate(page, target.url)
        doc = self._document_factory(page)
        await self._challenge.handle(doc)
        return doc

    async def parse(self, loaded: DocumentView) -> ExtractionRecord:
        return await self._extractor.extract(loaded)
