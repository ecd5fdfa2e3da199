"""End-to-end build of the article quality world map."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from . import __version__
from .config import AppConfig
from .models import BuildReport
from .pages import resolve_country_pages
from .ratings import extract_ratings, talk_titles
from .svgmap import (
    annotate_links,
    attach_metadata,
    color_countries,
    extract_nested_links,
    identify_country_codes,
    parse_map,
    write_map,
)
from .wiki import WikimediaClient


_LOGGER = logging.getLogger("qualitymap.pipeline")


class _Steps:
    def __init__(self) -> None:
        self._n = 0

    def start(self, title: str) -> None:
        self._n += 1
        _LOGGER.info("%d. %s", self._n, title)


def run_build(
    cfg: AppConfig,
    *,
    client: WikimediaClient | None = None,
    output_path: Path | None = None,
) -> BuildReport:
    """Download, annotate, and write the map.

    Request, parse, and write failures propagate. Countries without a page are
    reported as errors, other anomalies as warnings, and the build carries on
    with defaults.
    """
    owns_client = client is None
    if client is None:
        client = WikimediaClient(cfg.project)
    try:
        return _build(cfg, client, output_path or cfg.output.path)
    finally:
        if owns_client:
            client.close()


def _build(cfg: AppConfig, client: WikimediaClient, output_path: Path) -> BuildReport:
    _LOGGER.info("qualitymap v%s", __version__)
    report = BuildReport()
    steps = _Steps()

    steps.start("Downloading base map...")
    _LOGGER.info("   - %s", cfg.project.base_map_url)
    map_bytes = client.fetch_bytes(cfg.project.base_map_url)

    steps.start("Parsing base map...")
    tree = parse_map(map_bytes)

    steps.start("Identifying countries by code...")
    codes = identify_country_codes(tree)
    _LOGGER.info("   - Found %d potential countries", len(codes))

    steps.start("Getting pages for all countries...")
    resolution = resolve_country_pages(
        codes,
        overrides=cfg.resolver.overrides,
        lookup=client.query_redirects,
        batch_size=cfg.resolver.batch_size,
        lookup_prefix=cfg.resolver.lookup_prefix,
    )
    report.absorb(resolution)

    steps.start("Downloading talk pages for all countries...")
    export_xml = client.export_pages(talk_titles(resolution.pages, cfg.ratings.talk_prefix))

    steps.start("Parsing talk pages...")
    extraction = extract_ratings(
        export_xml,
        resolution,
        talk_prefix=cfg.ratings.talk_prefix,
        color_key=cfg.ratings.color_key,
    )
    report.absorb(extraction)

    steps.start("Coloring countries...")
    color_countries(
        tree,
        codes,
        extraction.ratings,
        cfg.ratings.color_key,
        exclude_class=cfg.map.exclude_class,
    )

    steps.start("Making map clickable...")
    linked = annotate_links(tree, resolution.pages, host=cfg.project.host)

    steps.start("Cleanup for SVG validity...")
    extracted = extract_nested_links(tree)
    _LOGGER.info("   - Extracted %d nested links", extracted)

    steps.start("Attaching metadata...")
    attach_metadata(tree, docname=output_path.name, title=cfg.output.title)

    steps.start("Saving map...")
    report.output_path = write_map(tree, output_path)
    _LOGGER.info("   - Written to %s", report.output_path)

    report.summary = {
        "countries_found": len(codes),
        "pages_resolved": len(resolution.pages),
        "pages_unresolved": len(resolution.unresolved),
        "pages_duplicated": len(resolution.duplicated),
        "lookup_batches": resolution.batches,
        "talk_pages_exported": extraction.pages_seen,
        "ratings_found": len(extraction.ratings),
        "ratings_unknown": len(extraction.unknown_ratings),
        "links_created": linked,
        "nested_links_extracted": extracted,
    }
    return report


def format_build_lines(report: BuildReport) -> Sequence[str]:
    lines = [f"[ERROR] {msg}" for msg in report.errors]
    lines.append(
        "[INFO] Build summary: "
        + ", ".join(f"{key}={value}" for key, value in report.summary.items())
    )
    if not report.ok:
        lines.append(
            f"[WARN] Map built with {len(report.errors)} errors; "
            "affected countries use the default color."
        )
    elif report.warnings:
        lines.append(f"[WARN] {len(report.warnings)} warnings; review the log above.")
    else:
        lines.append("[OK] Map built with no warnings.")
    return lines
