"""Country code to article title resolution."""

from __future__ import annotations

import logging
from typing import Callable, Mapping, Sequence

from .models import PageResolution
from .util import chunked, unique


_LOGGER = logging.getLogger("qualitymap.pages")

RedirectLookup = Callable[[Sequence[str]], Mapping[str, str]]


def lookup_title(code: str, prefix: str) -> str:
    return f"{prefix}{code.upper()}"


def resolve_country_pages(
    codes: Sequence[str],
    *,
    overrides: Mapping[str, str],
    lookup: RedirectLookup,
    batch_size: int,
    lookup_prefix: str,
) -> PageResolution:
    """Map every country code on the map to its article title.

    Overrides seed the mapping and are never replaced. Remaining titles are
    found by following the redirect from ``{lookup_prefix}{CODE}``, queried in
    sequential batches of at most `batch_size` codes. Override codes present on
    the map are still sent in the batch queries; their results are ignored.
    """
    result = PageResolution(pages=dict(overrides))
    total = len(codes)

    on_map = set(codes)
    result.overridden = [code for code in overrides if code in on_map]
    if result.overridden:
        lines = [f"{code} ({overrides[code]})" for code in result.overridden]
        msg = f"Overrides applied for {len(lines)} countries found in the map: " + ", ".join(lines)
        result.add_warning(msg)
        _LOGGER.warning(msg)

    done = 0
    for batch_no, batch in enumerate(chunked(codes, batch_size), start=1):
        done += len(batch)
        result.batches = batch_no
        _LOGGER.info("Running batch %d (%d/%d)...", batch_no, done, total)
        redirects = lookup([lookup_title(code, lookup_prefix) for code in batch])

        missing: list[str] = []
        for code in batch:
            target = redirects.get(lookup_title(code, lookup_prefix))
            if target and code not in overrides:
                result.pages[code] = target
            elif not target and code not in result.pages:
                missing.append(code)
        if missing:
            result.missing.extend(missing)
            msg = f"Batch {batch_no} missing: " + ", ".join(missing)
            result.add_error(msg)
            _LOGGER.error(msg)

    result.unresolved = unique([code for code in codes if code not in result.pages])
    if result.unresolved:
        msg = (
            f"{len(result.unresolved)} countries were not found: "
            + ", ".join(result.unresolved)
        )
        result.add_error(msg)
        _LOGGER.error(msg)

    _index_pages(result)
    return result


def _index_pages(result: PageResolution) -> None:
    for code, title in result.pages.items():
        first = result.code_by_page.get(title)
        if first is None:
            result.code_by_page[title] = code
            continue
        claimed = result.duplicated.setdefault(title, [first])
        claimed.append(code)

    if result.duplicated:
        _LOGGER.warning(
            "%d pages have multiple country codes associated with them:",
            len(result.duplicated),
        )
        for title, claimed_codes in result.duplicated.items():
            msg = f"Duplicate page {title}: " + ", ".join(claimed_codes)
            result.add_warning(msg)
            _LOGGER.warning(msg)
