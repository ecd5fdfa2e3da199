"""Utility helpers for logging, escaping, and batching."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Sequence, TypeVar


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_T = TypeVar("_T")

_XML_ESCAPES = (
    ("&", "&amp;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
    ("<", "&lt;"),
    (">", "&gt;"),
)


def setup_logging(log_file: Path | None = None, verbose: bool = False) -> None:
    """Configure root logging to console and optionally a file."""
    level = logging.DEBUG if verbose else logging.INFO
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


def xml_escape(value: str) -> str:
    """Escape the five reserved XML characters for use in text or attribute values."""
    # `&` first, otherwise the other entities get double-escaped.
    for char, entity in _XML_ESCAPES:
        value = value.replace(char, entity)
    return value


def chunked(items: Sequence[_T], size: int) -> Iterator[Sequence[_T]]:
    if size < 1:
        raise ValueError("chunk size must be >= 1")
    for start in range(0, len(items), size):
        yield items[start : start + size]


def unique(items: Sequence[str]) -> list[str]:
    """Drop repeated values while keeping first-seen order."""
    return list(dict.fromkeys(items))


def format_code_list(values: Sequence[str], limit: int = 12) -> str:
    if len(values) <= limit:
        return ", ".join(values)
    shown = ", ".join(values[:limit])
    return f"{shown}, ... (+{len(values) - limit} more)"
