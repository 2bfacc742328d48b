"""Heuristic field extraction from a loaded document.

The target page's markup is not under our control, so instead of a fixed
schema the extractor runs a few structural strategies in priority order
and merges whatever key/value pairs they find.
"""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, Dict, List, Sequence, Tuple

from .document import FORM_CONTROL_TAGS, DocumentView
from .errors import ExtractionFailure
from .models import ExtractionRecord

logger = logging.getLogger(__name__)

Pair = Tuple[str, str]
Strategy = Callable[[DocumentView], Awaitable[List[Pair]]]

PLACEHOLDER_VALUES = frozenset({"n/a", "undefined"})

CONTAINER_SELECTOR = ".form-group, .row, .field, .data-item"
CONTAINER_KEY_SELECTOR = ".label, .key, .col-label, h3, h4, strong"
CONTAINER_VALUE_SELECTOR = ".value, .data, .col-value, p, span"


async def label_sibling_pairs(doc: DocumentView) -> List[Pair]:
    """``<label>`` followed by the control or element holding its value."""
    pairs: List[Pair] = []
    for label in await doc.query("label"):
        key = (await doc.read_text(label)).strip()
        sibling = await doc.next_sibling(label)
        if not key or sibling is None:
            continue
        if await doc.tag_name(sibling) in FORM_CONTROL_TAGS:
            value = await doc.read_value(sibling)
        else:
            value = await doc.read_text(sibling)
        pairs.append((key, value.strip()))
    return pairs


async def definition_pairs(doc: DocumentView) -> List[Pair]:
    pairs: List[Pair] = []
    for term in await doc.query("dt"):
        sibling = await doc.next_sibling(term)
        if sibling is None or await doc.tag_name(sibling) != "DD":
            continue
        key = (await doc.read_text(term)).strip()
        pairs.append((key, (await doc.read_text(sibling)).strip()))
    return pairs


async def container_pairs(doc: DocumentView) -> List[Pair]:
    """Field-group containers holding a key-like and a value-like child."""
    pairs: List[Pair] = []
    for container in await doc.query(CONTAINER_SELECTOR):
        keys = await doc.query(CONTAINER_KEY_SELECTOR, within=container)
        values = await doc.query(CONTAINER_VALUE_SELECTOR, within=container)
        if not keys or not values:
            continue
        key = (await doc.read_text(keys[0])).strip()
        value = (await doc.read_text(values[0])).strip()
        pairs.append((key, value))
    return pairs


async def table_row_pairs(doc: DocumentView) -> List[Pair]:
    pairs: List[Pair] = []
    for row in await doc.query("table tr"):
        cells = await doc.query("th, td", within=row)
        if len(cells) < 2:
            continue
        key = (await doc.read_text(cells[0])).strip()
        value = (await doc.read_text(cells[1])).strip()
        pairs.append((key, value))
    return pairs


DEFAULT_STRATEGIES: Tuple[Strategy, ...] = (
    label_sibling_pairs,
    definition_pairs,
    container_pairs,
    table_row_pairs,
)


def merge_pairs(batches: Sequence[List[Pair]]) -> Dict[str, str]:
    """Merge candidate pairs, earliest non-empty value wins per key.

    Batches are in priority order. A key holding an empty value is not
    considered populated, so a later candidate may still fill it."""
    merged: Dict[str, str] = {}
    for pairs in batches:
        for key, value in pairs:
            key = key.strip()
            if merged.get(key, "").strip():
                continue
            merged[key] = value
    return merged


def clean_fields(fields: Dict[str, str]) -> Dict[str, str]:
    """Drop blank keys, blank values and placeholder values like ``N/A``."""
    cleaned: Dict[str, str] = {}
    for key, value in fields.items():
        key = key.strip()
        value = value.strip()
        if not key or not value:
            continue
        if value.lower() in PLACEHOLDER_VALUES:
            continue
        cleaned[key] = value
    return cleaned


class Extractor:
    def __init__(self, strategies: Sequence[Strategy] = DEFAULT_STRATEGIES) -> None:
        self._strategies = tuple(strategies)

    async def extract(self, doc: DocumentView) -> ExtractionRecord:
        batches: List[List[Pair]] = []
        try:
            for strategy in self._strategies:
                batches.append(await strategy(doc))
        except Exception as exc:  # noqa: BLE001
            raise ExtractionFailure(f"In-page evaluation failed: {exc}") from exc

        fields = clean_fields(merge_pairs(batches))
        logger.debug("extracted %d fields from %d strategies", len(fields), len(batches))
        return ExtractionRecord(fields=fields)
