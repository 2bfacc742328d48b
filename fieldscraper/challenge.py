from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional, Tuple

from .document import DocumentView
from .errors import ChallengeTimeout, ChallengeUnsolvable
from .runlog import RunLog

logger = logging.getLogger(__name__)

CHALLENGE_SELECTORS: Tuple[str, ...] = (
    'iframe[src*="recaptcha"]',
    ".g-recaptcha",
    "#captcha",
    ".captcha",
    'img[alt*="captcha"]',
    'img[src*="captcha"]',
)

COUNTDOWN_EVERY = 10


class ChallengeState(str, Enum):
    NO_CHALLENGE = "no_challenge"
    DETECTED = "challenge_detected"
    AWAITING = "awaiting_resolution"
    RESOLVED = "resolved"
    UNRESOLVED = "unresolved"


class ChallengeHandler:
    """Detects a bot-verification challenge and waits for a human to clear it.

    The wait is a bounded poll: ``max_wait / poll_interval`` iterations, each
    sleeping ``poll_interval`` seconds and re-running detection. Nothing is
    solved automatically; when the environment is not interactive a
    detected challenge fails the attempt straight away.
    """

    def __init__(
        self,
        interactive: bool,
        poll_interval: float = 1.0,
        max_wait: float = 60.0,
        selectors: Tuple[str, ...] = CHALLENGE_SELECTORS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        run_log: Optional[RunLog] = None,
    ) -> None:
        self._interactive = interactive
        self._poll_interval = poll_interval
        self._max_polls = max(1, int(round(max_wait / poll_interval)))
        self._selectors = selectors
        self._sleep = sleep
        self._log = run_log
        self.state = ChallengeState.NO_CHALLENGE
        self.polls = 0

    @property
    def max_polls(self) -> int:
        return self._max_polls

    async def detect(self, doc: DocumentView) -> bool:
        """Return True if any challenge signature is on the page.

        Errors while probing (the page navigated away, the context died)
        count as "no challenge"."""
        try:
            for selector in self._selectors:
                if await doc.query(selector):
                    logger.info("challenge signature matched: %s", selector)
                    return True
        except Exception as exc:  # noqa: BLE001
            logger.warning("challenge detection failed, assuming none: %s", exc)
        return False

    async def handle(self, doc: DocumentView) -> ChallengeState:
        self.polls = 0
        self.state = ChallengeState.NO_CHALLENGE
        if not await self.detect(doc):
            return self.state

        self.state = ChallengeState.DETECTED
        if not self._interactive:
            self._emit("error", "Challenge detected and manual solving is not possible in this environment")
            raise ChallengeUnsolvable("Challenge detected; interactive resolution is disabled")

        self.state = ChallengeState.AWAITING
        total = self._max_polls * self._poll_interval
        self._emit("warning", f"Challenge detected, please solve it in the browser window (waiting up to {total:g} seconds)")
        while self.polls < self._max_polls:
            await self._sleep(self._poll_interval)
            self.polls += 1
            if not await self.detect(doc):
                self.state = ChallengeState.RESOLVED
                self._emit("success", "Challenge resolved")
                return self.state
            if self.polls % COUNTDOWN_EVERY == 0:
                remaining = (self._max_polls - self.polls) * self._poll_interval
                self._emit("info", f"Waiting for challenge... {remaining:g} seconds remaining")

        self.state = ChallengeState.UNRESOLVED
        self._emit("error", "Timed out waiting for the challenge to be solved")
        raise ChallengeTimeout(f"Challenge not resolved within {total:g} seconds")

    def _emit(self, level: str, message: str) -> None:
        if self._log is not None:
            self._log.add(message, level)
        else:
            logger.log(logging.WARNING if level in ("warning", "error") else logging.INFO, message)
