from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

_LEVELS = {
    "INFO": logging.INFO,
    "SUCCESS": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


class RunLog:
    """Append-only, human-readable progress log for one batch run.

    Every line reads ``[<local time>] LEVEL: message`` and is also passed
    on to the standard logging module so it shows up in process logs."""

    def __init__(
        self,
        logger_: Optional[logging.Logger] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._logger = logger_ or logger
        self._clock = clock
        self._lines: List[str] = []

    def add(self, message: str, level: str = "info") -> str:
        name = level.upper()
        if name not in _LEVELS:
            raise ValueError(f"Unknown log level: {level}")
        line = f"[{self._clock().strftime('%X')}] {name}: {message}"
        self._lines.append(line)
        self._logger.log(_LEVELS[name], message)
        return line

    def info(self, message: str) -> str:
        return self.add(message, "info")

    def success(self, message: str) -> str:
        return self.add(message, "success")

    def warning(self, message: str) -> str:
        return self.add(message, "warning")

    def error(self, message: str) -> str:
        return self.add(message, "error")

    @property
    def lines(self) -> List[str]:
        return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)
