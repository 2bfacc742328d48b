"""Browser-driven field scraper.

Loads a target page in a real browser, waits out bot-verification
challenges when a human is around to solve them, and pulls key/value
fields out of the page with structural heuristics.

Key modules:
    session      -- SessionManager owning the browser process and pages
    navigator    -- Navigator loading an address with a timeout
    challenge    -- ChallengeHandler detection and bounded wait
    document     -- DocumentView interface, Playwright and BeautifulSoup bindings
    extractor    -- Extractor strategies, merge and cleanup
    base         -- BaseScraper attempt pipeline
    scrapers     -- PageScraper (navigate, challenge, extract)
    orchestrator -- RetryOrchestrator attempt/target loop
    engine       -- ScrapeEngine wiring everything from a ScrapeConfig
    storage      -- JsonFileStorage record sink, JsonlStorage outcome log
    pacing       -- RequestPacer fixed inter-attempt delay
    metrics      -- MetricsCollector attempt statistics
    runlog       -- RunLog human-readable progress lines
    targets      -- target list loading and address resolution
    config       -- ScrapeConfig and environment detection
    models       -- Target, ExtractionRecord, AttemptResult, RunResult ...
    errors       -- exception taxonomy
"""
from .config import ScrapeConfig, interactive_from_env
from .engine import ScrapeEngine, scrape_batch
from .models import ExtractionRecord, RunResult, Target, TargetOutcome

__all__ = [
    "ExtractionRecord",
    "RunResult",
    "ScrapeConfig",
    "ScrapeEngine",
    "Target",
    "TargetOutcome",
    "interactive_from_env",
    "scrape_batch",
]
