from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, List, Optional, Tuple

from playwright.async_api import async_playwright

from .config import DEFAULT_USER_AGENT, DEFAULT_VIEWPORT
from .errors import SessionFailure

logger = logging.getLogger(__name__)

LAUNCH_ARGS = ("--hide-scrollbars", "--disable-web-security")
INTERACTIVE_SLOW_MO_MS = 100

# Hide navigator.webdriver before any page script runs.
WEBDRIVER_OVERRIDE = """
Object.defineProperty(navigator, 'webdriver', {
  get: () => undefined,
});
"""


@dataclass
class Session:
    driver: Any
    browser: Any
    user_agent: str
    viewport: Tuple[int, int]
    pages: List[Any] = field(default_factory=list)
    closed: bool = False


class SessionManager:
    """Owns the browser process for one batch and the pages opened in it.

    Each page lives in its own browser context so cookies and storage do
    not leak between targets. ``close`` is safe to call more than once;
    prefer ``session()`` which guarantees it runs on every exit path.
    """

    def __init__(
        self,
        interactive: bool,
        user_agent: str = DEFAULT_USER_AGENT,
        viewport: Tuple[int, int] = DEFAULT_VIEWPORT,
        executable_path: Optional[str] = None,
        driver_factory: Callable[[], Any] = async_playwright,
    ) -> None:
        self._interactive = interactive
        self._user_agent = user_agent
        self._viewport = viewport
        self._executable_path = executable_path
        self._driver_factory = driver_factory

    async def open(self) -> Session:
        driver = None
        try:
            driver = await self._driver_factory().start()
            browser = await driver.chromium.launch(
                headless=not self._interactive,
                args=list(LAUNCH_ARGS),
                executable_path=self._executable_path,
                slow_mo=INTERACTIVE_SLOW_MO_MS if self._interactive else 0,
            )
        except Exception as exc:  # noqa: BLE001
            if driver is not None:
                await _quietly(driver.stop)
            raise SessionFailure(f"Browser failed to start: {exc}") from exc

        logger.info("browser started (headless=%s)", not self._interactive)
        return Session(
            driver=driver,
            browser=browser,
            user_agent=self._user_agent,
            viewport=self._viewport,
        )

    async def new_page(self, session: Session) -> Any:
        if session.closed:
            raise SessionFailure("Session is already closed")
        width, height = session.viewport
        try:
            context = await session.browser.new_context(
                user_agent=session.user_agent,
                viewport={"width": width, "height": height},
                ignore_https_errors=True,
            )
            await context.add_init_script(WEBDRIVER_OVERRIDE)
            page = await context.new_page()
        except Exception as exc:  # noqa: BLE001
            raise SessionFailure(f"Could not open a new page: {exc}") from exc
        session.pages.append(page)
        return page

    async def release_page(self, session: Session, page: Any) -> None:
        if page in session.pages:
            session.pages.remove(page)
        if session.closed:
            return
        try:
            await page.context.close()
        except Exception as exc:  # noqa: BLE001
            logger.warning("failed to close page: %s", exc)

    async def close(self, session: Session) -> None:
        if session.closed:
            return
        session.closed = True
        session.pages.clear()
        await _quietly(session.browser.close)
        await _quietly(session.driver.stop)
        logger.info("browser closed")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[Session]:
        session = await self.open()
        try:
            yield session
        finally:
            await self.close(session)


async def _quietly(close: Callable[[], Any]) -> None:
    try:
        await close()
    except Exception as exc:  # noqa: BLE001
        logger.warning("error during browser shutdown: %s", exc)
