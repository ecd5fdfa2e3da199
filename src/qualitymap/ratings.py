"""Quality class extraction from exported talk pages."""

from __future__ import annotations

import logging
import re
from typing import Mapping

from lxml import etree

from .models import ColorKey, PageResolution, RatingExtraction
from .util import format_code_list, unique


_LOGGER = logging.getLogger("qualitymap.ratings")

# `| class = B` inside a WikiProject banner.
_CLASS_RE = re.compile(r"\|\s*class\s*=\s*(\w+)")


def talk_titles(pages: Mapping[str, str], talk_prefix: str) -> list[str]:
    return unique([f"{talk_prefix}{title}" for title in pages.values()])


def find_rating(text: str) -> str | None:
    match = _CLASS_RE.search(text)
    if match is None:
        return None
    return match.group(1).lower()


def parse_export(export_xml: str | bytes) -> list[tuple[str, str]]:
    """Return `(title, wikitext)` for each page in a Special:Export dump."""
    if isinstance(export_xml, str):
        export_xml = export_xml.encode("utf-8")
    parser = etree.XMLParser(huge_tree=True, resolve_entities=False, no_network=True)
    root = etree.fromstring(export_xml, parser=parser)
    out: list[tuple[str, str]] = []
    for page in root.xpath("//*[local-name()='page']"):
        title = page.xpath("string(*[local-name()='title'])")
        text = page.xpath("string(.//*[local-name()='text'])")
        out.append((str(title).strip(), str(text)))
    return out


def extract_ratings(
    export_xml: str | bytes,
    resolution: PageResolution,
    *,
    talk_prefix: str,
    color_key: ColorKey,
) -> RatingExtraction:
    result = RatingExtraction()
    seen: set[str] = set()

    for title, text in parse_export(export_xml):
        result.pages_seen += 1
        seen.add(title)
        plain_title = title.removeprefix(talk_prefix)
        codes = resolution.codes_for_page(plain_title)
        if not codes:
            msg = f"Exported page {title} does not match any country"
            result.add_warning(msg)
            _LOGGER.warning(msg)
            continue

        rating = find_rating(text)
        if rating is None:
            result.unrated.extend(codes)
            msg = f"No rating detected for {title} ({', '.join(codes)})"
            result.add_warning(msg)
            _LOGGER.warning(msg)
            continue
        for code in codes:
            result.ratings[code] = rating

    absent = [title for title in talk_titles(resolution.pages, talk_prefix) if title not in seen]
    if absent:
        msg = f"{len(absent)} talk pages missing from export: " + format_code_list(absent)
        result.add_warning(msg)
        _LOGGER.warning(msg)

    for rating in unique(list(result.ratings.values())):
        if rating not in color_key:
            result.unknown_ratings.append(rating)
            msg = f"Unknown rating detected: {rating}"
            result.add_warning(msg)
            _LOGGER.warning(msg)
    return result
