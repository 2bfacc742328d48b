from __future__ import annotations


class ScrapeError(Exception):
    """Base class for every failure raised by the scraping engine."""


class AttemptFailure(ScrapeError):
    """A failure that ends one attempt and feeds the retry decision."""


class NavigationFailure(AttemptFailure):
    """The page failed to load or did not settle within the timeout."""


class ChallengeUnsolvable(AttemptFailure):
    """A challenge is present and nobody is allowed to solve it."""


class ChallengeTimeout(AttemptFailure):
    """A challenge is present and was not solved within the wait bound."""


class ExtractionFailure(AttemptFailure):
    """Evaluating the loaded document raised."""


class PersistenceFailure(ScrapeError):
    """Writing a record to disk failed. Never affects the run outcome."""


class SessionFailure(ScrapeError):
    """The browser could not be started or stopped serving pages.

    Fatal for the whole batch."""
