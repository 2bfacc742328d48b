"""Tests for the RetryOrchestrator attempt and batch loop."""

import os
import tempfile
import unittest
from typing import Dict, List

from fakes import FakeDriverFactory, SleepRecorder

from fieldscraper.base import BaseScraper
from fieldscraper.errors import NavigationFailure, SessionFailure
from fieldscraper.metrics import MetricsCollector
from fieldscraper.models import ExtractionRecord, Target
from fieldscraper.orchestrator import RetryOrchestrator
from fieldscraper.pacing import RequestPacer
from fieldscraper.runlog import RunLog
from fieldscraper.session import SessionManager
from fieldscraper.storage import JsonFileStorage


class ScriptedScraper(BaseScraper):
    """Plays back a per-URL script; a dict succeeds, an exception fails.

    The last script entry repeats once the script runs out."""

    def __init__(self, script: Dict[str, list], events: List, **kwargs) -> None:
        super().__init__(**kwargs)
        self._script = {url: list(steps) for url, steps in script.items()}
        self._events = events
        self.on_fetch = None

    async def fetch(self, page, target):
        self._events.append(("attempt", target.target_id))
        if self.on_fetch is not None:
            self.on_fetch()
        steps = self._script[target.url]
        step = steps.pop(0) if len(steps) > 1 else steps[0]
        if isinstance(step, BaseException):
            raise step
        return step

    async def parse(self, loaded):
        return ExtractionRecord(fields=loaded)


def _target(name: str) -> Target:
    return Target(target_id=name, url=f"https://example.com/{name}")


class OrchestratorTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.data_dir = os.path.join(self._tmp.name, "data")
        self.events: List = []
        self.sleep = SleepRecorder(self.events)
        self.factory = FakeDriverFactory()
        self.metrics = MetricsCollector()

    def tearDown(self):
        self._tmp.cleanup()

    def build(self, script, max_retries=3, delay_ms=1000, data_dir=None, factory=None):
        self.scraper = ScriptedScraper(script, self.events, metrics=self.metrics)
        self.pacer = RequestPacer(delay_ms, sleep=self.sleep)
        return RetryOrchestrator(
            scraper=self.scraper,
            session_manager=SessionManager(interactive=False, driver_factory=factory or self.factory),
            sink=JsonFileStorage(data_dir or self.data_dir),
            pacer=self.pacer,
            max_retries=max_retries,
            run_log=RunLog(),
        )

    def saved_files(self):
        if not os.path.isdir(self.data_dir):
            return []
        return os.listdir(self.data_dir)


class TestRetries(OrchestratorTestCase):
    """Verify the per-target retry budget."""

    async def test_always_failing_target_uses_every_attempt(self):
        """maxRetries=N means exactly N attempts for a hopeless target."""
        target = _target("a")
        orchestrator = self.build({target.url: [NavigationFailure("Timed out")]}, max_retries=4)
        result = await orchestrator.run([target])

        self.assertEqual(len(result.outcomes), 1)
        outcome = result.outcomes[0]
        self.assertFalse(outcome.success)
        self.assertEqual(outcome.attempts, 4)
        self.assertEqual(outcome.error, "Timed out")
        self.assertEqual(self.events.count(("attempt", "a")), 4)
        self.assertEqual(self.sleep.calls, [1.0, 1.0, 1.0])
        self.assertEqual(self.saved_files(), [])

    async def test_success_stops_retrying(self):
        """A success on attempt 2 leaves the remaining budget unused."""
        target = _target("a")
        orchestrator = self.build({target.url: [NavigationFailure("flaky"), {"Name": "John"}]})
        result = await orchestrator.run([target])

        outcome = result.outcomes[0]
        self.assertTrue(outcome.success)
        self.assertEqual(outcome.attempts, 2)
        self.assertEqual(dict(outcome.record.fields), {"Name": "John"})
        self.assertEqual(len(self.saved_files()), 1)

    async def test_persistence_failure_keeps_success(self):
        """A failed write is logged but the target still succeeds."""
        target = _target("a")
        blocker = os.path.join(self._tmp.name, "not-a-dir")
        with open(blocker, "w", encoding="utf-8") as f:
            f.write("x")
        orchestrator = self.build({target.url: [{"Name": "John"}]}, data_dir=blocker)
        result = await orchestrator.run([target])

        self.assertTrue(result.outcomes[0].success)
        self.assertTrue(any("Could not save data" in line for line in result.logs))


class TestBatch(OrchestratorTestCase):
    """Verify sequential batch processing and pacing."""

    async def test_success_then_failure_batch(self):
        """A succeeds at once, B fails 3 times, one inter-target delay between them."""
        a, b = _target("A"), _target("B")
        orchestrator = self.build(
            {a.url: [{"Name": "John"}], b.url: [NavigationFailure("Timed out")]},
            max_retries=3,
            delay_ms=1000,
        )
        result = await orchestrator.run([a, b])

        self.assertEqual([o.target_id for o in result.outcomes], ["A", "B"])
        self.assertTrue(result.outcomes[0].success)
        self.assertFalse(result.outcomes[1].success)
        self.assertEqual(
            self.events,
            [
                ("attempt", "A"),
                ("sleep", 1.0),
                ("attempt", "B"),
                ("sleep", 1.0),
                ("attempt", "B"),
                ("sleep", 1.0),
                ("attempt", "B"),
            ],
        )
        self.assertEqual(self.metrics.snapshot().total_attempts, 4)
        failed_lines = [line for line in result.logs if "ERROR: Attempt" in line]
        self.assertEqual(len(failed_lines), 3)
        attempt_lines = [line for line in result.logs if "INFO: Attempt " in line]
        self.assertEqual(len(attempt_lines), 4)
        self.assertIn("Attempt 1/3 for https://example.com/A", attempt_lines[0])
        self.assertIn("Attempt 3/3 for https://example.com/B", attempt_lines[-1])
        self.assertTrue(any("Scraped https://example.com/A on attempt 1" in line for line in result.logs))
        target_waits = [line for line in result.logs if "before the next target" in line]
        self.assertEqual(len(target_waits), 1)
        self.assertIsNone(result.aborted)

    async def test_pages_released_and_browser_closed(self):
        """Each target's page is released and the browser shut down at the end."""
        a, b = _target("A"), _target("B")
        orchestrator = self.build({a.url: [{"K": "V"}], b.url: [{"K": "W"}]})
        await orchestrator.run([a, b])

        browser = self.factory.driver.chromium.browser
        self.assertEqual(len(browser.contexts), 2)
        self.assertTrue(all(c.closed for c in browser.contexts))
        self.assertEqual(browser.close_calls, 1)

    async def test_browser_start_failure_aborts_batch(self):
        """If the browser cannot start, no targets are reported but logs are."""
        factory = FakeDriverFactory(launch_error=RuntimeError("no chromium"))
        orchestrator = self.build({_target("A").url: [{"K": "V"}]}, factory=factory)
        result = await orchestrator.run([_target("A")])

        self.assertEqual(result.outcomes, [])
        self.assertIn("no chromium", result.aborted)
        self.assertTrue(any("ERROR: Browser session failed" in line for line in result.logs))

    async def test_session_failure_mid_batch_drops_remaining_targets(self):
        """Targets after a SessionFailure are absent, earlier ones are kept."""
        a, b, c = _target("A"), _target("B"), _target("C")
        orchestrator = self.build({
            a.url: [{"K": "V"}],
            b.url: [SessionFailure("browser crashed")],
            c.url: [{"K": "V"}],
        })
        result = await orchestrator.run([a, b, c])

        self.assertEqual([o.target_id for o in result.outcomes], ["A"])
        self.assertEqual(result.aborted, "browser crashed")
        self.assertEqual(self.factory.driver.chromium.browser.close_calls, 1)

    async def test_stop_prevents_new_work(self):
        """A stop request lets the current attempt finish and schedules nothing else."""
        a, b = _target("A"), _target("B")
        orchestrator = self.build({a.url: [NavigationFailure("Timed out")], b.url: [{"K": "V"}]})
        self.scraper.on_fetch = orchestrator.stop
        result = await orchestrator.run([a, b])

        self.assertEqual(self.events, [("attempt", "A")])
        self.assertEqual(len(result.outcomes), 1)
        self.assertFalse(result.outcomes[0].success)
        self.assertEqual(result.outcomes[0].attempts, 1)


if __name__ == "__main__":
    unittest.main()
