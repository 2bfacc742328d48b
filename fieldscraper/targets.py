from __future__ import annotations

from typing import Iterable, List, Optional

import requests

from .models import Target

ID_PLACEHOLDER = "{id}"


def _parse_lines(lines: Iterable[str], limit: int) -> List[str]:
    identifiers: List[str] = []
    for line in lines:
        ident = line.strip()
        if not ident or ident.startswith("#"):
            continue
        identifiers.append(ident)
        if len(identifiers) >= limit:
            break
    return identifiers


def load_targets(path: str, limit: int = 100) -> List[str]:
    """Read one target identifier or address per non-blank line."""
    with open(path, "r", encoding="utf-8") as f:
        identifiers = _parse_lines(f, limit)
    if not identifiers:
        raise ValueError(f"No targets found in {path}")
    return identifiers


def fetch_target_list(url: str, limit: int = 100, timeout: int = 20) -> List[str]:
    """Download a newline-separated target list."""
    resp = requests.get(url, timeout=timeout)
    resp.raise_for_status()
    identifiers = _parse_lines(resp.text.splitlines(), limit)
    if not identifiers:
        raise ValueError(f"No targets found at {url}")
    return identifiers


def resolve_targets(identifiers: Iterable[str], url_template: Optional[str] = None) -> List[Target]:
    """Turn identifiers into Targets.

    Identifiers that are already http(s) addresses pass through; anything
    else is substituted into ``url_template`` at ``{id}``."""
    if url_template is not None and ID_PLACEHOLDER not in url_template:
        raise ValueError(f"url_template must contain {ID_PLACEHOLDER}")

    targets: List[Target] = []
    for ident in identifiers:
        if ident.startswith(("http://", "https://")):
            targets.append(Target(target_id=ident, url=ident))
        elif url_template is not None:
            targets.append(Target(target_id=ident, url=url_template.replace(ID_PLACEHOLDER, ident)))
        else:
            raise ValueError(f"Cannot resolve {ident!r} to an address without a url_template")
    if not targets:
        raise ValueError("No targets given")
    return targets
