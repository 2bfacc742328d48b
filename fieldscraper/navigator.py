from __future__ import annotations

import logging
from typing import Any

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .errors import NavigationFailure

logger = logging.getLogger(__name__)


class Navigator:
    """Loads an address and waits until the network has gone quiet."""

    def __init__(self, timeout_ms: int = 30_000, wait_until: str = "networkidle") -> None:
        self._timeout_ms = timeout_ms
        self._wait_until = wait_until

    async def navigate(self, page: Any, url: str) -> Any:
        try:
            response = await page.goto(url, wait_until=self._wait_until, timeout=self._timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise NavigationFailure(f"Timed out after {self._timeout_ms} ms loading {url}") from exc
        except PlaywrightError as exc:
            raise NavigationFailure(f"Failed to load {url}: {exc.message}") from exc

        status = getattr(response, "status", None)
        logger.info("loaded %s (status=%s)", url, status)
        return response
