from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_VIEWPORT: Tuple[int, int] = (1366, 768)
DEFAULT_DATA_DIR = "data"
DEFAULT_NAVIGATION_TIMEOUT_MS = 30_000
DEFAULT_CHALLENGE_POLL_INTERVAL = 1.0
DEFAULT_CHALLENGE_MAX_WAIT = 60.0

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class ScrapeConfig:
    """Run-wide settings supplied by the calling layer.

    ``interactive`` is the environment descriptor: True when a human can
    watch the browser window and solve a challenge by hand."""

    request_delay_ms: int
    max_retries: int
    interactive: bool = False
    data_dir: str = DEFAULT_DATA_DIR
    navigation_timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS
    challenge_poll_interval: float = DEFAULT_CHALLENGE_POLL_INTERVAL
    challenge_max_wait: float = DEFAULT_CHALLENGE_MAX_WAIT
    user_agent: str = DEFAULT_USER_AGENT
    viewport: Tuple[int, int] = field(default=DEFAULT_VIEWPORT)
    executable_path: Optional[str] = None
    file_prefix: str = "application_data"

    def __post_init__(self) -> None:
        if self.request_delay_ms <= 0:
            raise ValueError("request_delay_ms must be positive")
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.navigation_timeout_ms <= 0:
            raise ValueError("navigation_timeout_ms must be positive")
        if self.challenge_poll_interval <= 0 or self.challenge_max_wait <= 0:
            raise ValueError("challenge wait settings must be positive")

    @property
    def headless(self) -> bool:
        return not self.interactive


def interactive_from_env(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Decide whether a human may resolve challenges in this environment.

    FIELDSCRAPER_INTERACTIVE overrides everything. Otherwise a production
    deployment (VERCEL_ENV=production) runs headless with no one watching."""
    env = os.environ if environ is None else environ
    explicit = env.get("FIELDSCRAPER_INTERACTIVE", "").strip().lower()
    if explicit in _TRUTHY:
        return True
    if explicit in _FALSY:
        return False
    return env.get("VERCEL_ENV", "").strip().lower() != "production"
