"""CLI entrypoint for qualitymap."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

import requests
import yaml
from lxml import etree

from . import __version__
from .config import AppConfig, load_config
from .pipeline import format_build_lines, run_build
from .util import setup_logging

LOGGER = logging.getLogger("qualitymap.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qualitymap",
        description="World map colored by encyclopedia article quality.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_p = subparsers.add_parser("build", help="Download, annotate, and write the map.")
    build_p.add_argument("--config", default="config.yaml", help="Path to YAML config.")
    build_p.add_argument("--verbose", action="store_true", help="Enable debug logs.")
    build_p.add_argument(
        "--output",
        default=None,
        help="Output SVG path. Overrides output.path from the config.",
    )
    return parser


def _load_config(path: str) -> tuple[AppConfig, bool]:
    """Config from `path`, or the built-in defaults when the file is absent.

    The flag is true when the defaults were used.
    """
    cfg_path = Path(path)
    if cfg_path.exists():
        return load_config(cfg_path), False
    return AppConfig.defaults(), True


def _run_build(cfg: AppConfig, *, output: str | None) -> int:
    output_path = Path(output).resolve() if output is not None else None
    try:
        report = run_build(cfg, output_path=output_path)
    except (requests.RequestException, etree.XMLSyntaxError, RuntimeError, OSError) as exc:
        LOGGER.error("Build aborted: %s", exc)
        return 1
    for line in format_build_lines(report):
        LOGGER.info(line)
    return 0


def _dispatch(args: argparse.Namespace) -> int:
    command = str(args.command)
    if command == "build":
        try:
            cfg, used_defaults = _load_config(args.config)
        except (OSError, ValueError, yaml.YAMLError) as exc:
            setup_logging(verbose=args.verbose)
            LOGGER.error("Invalid config '%s': %s", args.config, exc)
            return 1
        setup_logging(cfg.logging.log_file, verbose=args.verbose)
        if used_defaults:
            LOGGER.info("Config file %s not found; using built-in defaults.", args.config)
        return _run_build(cfg, output=args.output)
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    return _dispatch(args)


if __name__ == "__main__":
    raise SystemExit(main())
