from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
from typing import Optional

from fieldscraper.config import DEFAULT_DATA_DIR, ScrapeConfig, interactive_from_env
from fieldscraper.document import SoupDocument
from fieldscraper.engine import ScrapeEngine
from fieldscraper.extractor import Extractor
from fieldscraper.models import RunResult
from fieldscraper.storage import JsonlStorage
from fieldscraper.targets import fetch_target_list, load_targets, resolve_targets


DEFAULT_TARGET_LIST_PATH = "targets.txt"
DEFAULT_DELAY_MS = 60_000
DEFAULT_MAX_RETRIES = 3


def _collect_identifiers(args: argparse.Namespace) -> list[str]:
    if args.url:
        return list(args.url)
    if args.targets_url:
        return fetch_target_list(args.targets_url, limit=args.limit)
    return load_targets(args.targets, limit=args.limit)


def _resolve_interactive(args: argparse.Namespace) -> bool:
    if args.headless:
        return False
    if args.interactive:
        return True
    return interactive_from_env()


async def _run(engine: ScrapeEngine, targets) -> RunResult:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, engine.stop)
    except (NotImplementedError, RuntimeError):
        pass
    return await engine.run(targets)


def run_batch(args: argparse.Namespace) -> int:
    targets = resolve_targets(_collect_identifiers(args), url_template=args.url_template)
    config = ScrapeConfig(
        request_delay_ms=args.delay_ms,
        max_retries=args.max_retries,
        interactive=_resolve_interactive(args),
        data_dir=args.data_dir,
        executable_path=args.executable_path,
    )
    engine = ScrapeEngine(config)
    result = asyncio.run(_run(engine, targets))

    for line in result.logs:
        print(line)

    storage: Optional[JsonlStorage] = JsonlStorage(args.results) if args.results else None
    ok = 0
    fail = 0
    for outcome in result.outcomes:
        if storage:
            storage.write(outcome)
        if outcome.success:
            ok += 1
        else:
            fail += 1
        print(
            f"target={outcome.target_id} success={outcome.success} attempts={outcome.attempts} "
            f"fields={len(outcome.record.fields) if outcome.record else 0} error={outcome.error}"
        )
    if storage:
        storage.close()

    stats = engine.metrics.snapshot()
    print(
        f"\nDONE: success={ok} fail={fail} skipped={len(targets) - ok - fail} "
        f"attempts={stats.total_attempts} avg_latency_ms={stats.avg_latency_ms:.0f}"
    )
    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    return 1 if result.aborted else 0


def extract_file(path: str) -> int:
    record = asyncio.run(Extractor().extract(SoupDocument.from_file(path)))
    print(json.dumps(record.to_dict(), ensure_ascii=False, indent=2))
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Scrape fielded data from pages behind an optional challenge")

    parser.add_argument("--url", action="append", help="Target address or identifier (repeatable)")
    parser.add_argument("--targets", default=DEFAULT_TARGET_LIST_PATH, help="Path to a target list, one per line")
    parser.add_argument("--targets-url", help="Fetch the target list from this URL instead")
    parser.add_argument("--url-template", help="Address template for identifiers, e.g. https://host/app/{id}")
    parser.add_argument("--limit", type=int, default=100, help="Max number of targets to load")

    parser.add_argument("--delay-ms", type=int, default=DEFAULT_DELAY_MS, help="Fixed delay between attempts/targets")
    parser.add_argument("--max-retries", type=int, default=DEFAULT_MAX_RETRIES, help="Attempts per target")

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--headless", action="store_true", help="Never wait for a human to solve challenges")
    mode.add_argument("--interactive", action="store_true", help="Show the browser and wait for manual solving")

    parser.add_argument("--executable-path", help="Browser binary to launch instead of the bundled one")
    parser.add_argument("--data-dir", default=DEFAULT_DATA_DIR, help="Directory for per-record JSON files")
    parser.add_argument("--results", help="Append per-target outcomes to this JSONL file")
    parser.add_argument("--json", action="store_true", help="Also print the full run result as JSON")

    parser.add_argument("--html-file", help="Extract fields from a saved HTML page and exit")
    parser.add_argument("--log-level", default="WARNING", help="Python logging level")

    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.html_file:
        raise SystemExit(extract_file(args.html_file))
    raise SystemExit(run_batch(args))


if __name__ == "__main__":
    main()
