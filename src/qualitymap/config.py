"""Typed configuration loader for `config.yaml`."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, cast

import yaml

from . import __version__
from .models import ColorKey


DEFAULT_HOST = "en.wikipedia.org"
DEFAULT_BASE_MAP_URL = (
    "https://upload.wikimedia.org/wikipedia/commons/8/81/Detailed_Blank_World_Map.svg"
)
DEFAULT_USER_AGENT = (
    f"qualitymap/{__version__} "
    "(world map by article quality; https://github.com/qualitymap/qualitymap)"
)
DEFAULT_REQUEST_TIMEOUT_S = 120.0
MAX_BATCH_SIZE = 50
DEFAULT_LOOKUP_PREFIX = "ISO 3166-1:"
DEFAULT_OVERRIDES: Mapping[str, str] = MappingProxyType(
    {
        "xc": "Northern Cyprus",
        "xk": "Kosovo",
        "xs": "Somaliland",
    }
)
DEFAULT_TALK_PREFIX = "Talk:"
DEFAULT_COLORS: Mapping[str, str] = MappingProxyType(
    {
        "fa": "#9cbdff",
        "ga": "#66ff66",
        "b": "#b2ff66",
        "c": "#ffff66",
        "start": "#ffaa66",
        "stub": "#ffa4a4",
        ColorKey.DEFAULT_KEY: "#cccccc",
    }
)
DEFAULT_EXCLUDE_CLASS = "limitxx"
DEFAULT_OUTPUT_TITLE = "Detailed world map by English Wikipedia article quality"
DEFAULT_OUTPUT_PATH = f"{DEFAULT_OUTPUT_TITLE}.svg"

_COUNTRY_CODE_RE = re.compile(r"[a-z]{2}")


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _int(value: Any, field_name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"Expected integer for '{field_name}'")
    return value


def _float(value: Any, field_name: str) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise ValueError(f"Expected float for '{field_name}'")


def _str_mapping(value: Any, field_name: str) -> dict[str, str]:
    raw = _mapping(value, field_name)
    out: dict[str, str] = {}
    for key, item in raw.items():
        out[_str(key, f"{field_name} key")] = _str(item, f"{field_name}.{key}")
    return out


def _path_from_cfg(value: Any, field_name: str, root_dir: Path) -> Path:
    raw = _str(value, field_name)
    p = Path(raw)
    return p if p.is_absolute() else root_dir / p


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    host: str
    base_map_url: str
    user_agent: str
    request_timeout_s: float | None

    @property
    def api_url(self) -> str:
        return f"https://{self.host}/w/api.php"

    @property
    def export_url(self) -> str:
        return f"https://{self.host}/wiki/Special:Export"

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ProjectConfig:
        host = _str(raw.get("host", DEFAULT_HOST), "project.host")
        if "/" in host or ":" in host:
            raise ValueError("project.host must be a bare hostname such as 'en.wikipedia.org'")
        timeout_raw = raw.get("request_timeout_s", DEFAULT_REQUEST_TIMEOUT_S)
        timeout = None if timeout_raw is None else _float(timeout_raw, "project.request_timeout_s")
        if timeout is not None and timeout <= 0:
            raise ValueError("project.request_timeout_s must be > 0")
        return cls(
            host=host,
            base_map_url=_str(raw.get("base_map_url", DEFAULT_BASE_MAP_URL), "project.base_map_url"),
            user_agent=_str(raw.get("user_agent", DEFAULT_USER_AGENT), "project.user_agent"),
            request_timeout_s=timeout,
        )


@dataclass(frozen=True, slots=True)
class ResolverConfig:
    batch_size: int
    lookup_prefix: str
    overrides: Mapping[str, str]

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ResolverConfig:
        batch_size = _int(raw.get("batch_size", MAX_BATCH_SIZE), "resolver.batch_size")
        if batch_size < 1 or batch_size > MAX_BATCH_SIZE:
            raise ValueError(f"resolver.batch_size must be between 1 and {MAX_BATCH_SIZE}")

        overrides_raw = raw.get("overrides")
        overrides = (
            dict(DEFAULT_OVERRIDES)
            if overrides_raw is None
            else _str_mapping(overrides_raw, "resolver.overrides")
        )
        for code in overrides:
            if not _COUNTRY_CODE_RE.fullmatch(code):
                raise ValueError(f"Invalid country code override key: '{code}'")

        lookup_prefix = raw.get("lookup_prefix", DEFAULT_LOOKUP_PREFIX)
        if not isinstance(lookup_prefix, str):
            raise ValueError("Expected string for 'resolver.lookup_prefix'")
        return cls(
            batch_size=batch_size,
            lookup_prefix=lookup_prefix,
            overrides=MappingProxyType(overrides),
        )


@dataclass(frozen=True, slots=True)
class RatingsConfig:
    talk_prefix: str
    color_key: ColorKey

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> RatingsConfig:
        colors_raw = raw.get("colors")
        colors = (
            dict(DEFAULT_COLORS)
            if colors_raw is None
            else _str_mapping(colors_raw, "ratings.colors")
        )
        return cls(
            talk_prefix=_str(raw.get("talk_prefix", DEFAULT_TALK_PREFIX), "ratings.talk_prefix"),
            color_key=ColorKey.from_mapping(colors),
        )


@dataclass(frozen=True, slots=True)
class MapConfig:
    exclude_class: str

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> MapConfig:
        return cls(
            exclude_class=_str(raw.get("exclude_class", DEFAULT_EXCLUDE_CLASS), "map.exclude_class"),
        )


@dataclass(frozen=True, slots=True)
class OutputConfig:
    path: Path
    title: str

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> OutputConfig:
        return cls(
            path=_path_from_cfg(raw.get("path", DEFAULT_OUTPUT_PATH), "output.path", root_dir),
            title=_str(raw.get("title", DEFAULT_OUTPUT_TITLE), "output.title"),
        )


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    log_file: Path | None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> LoggingConfig:
        log_file_raw = raw.get("log_file")
        log_file = (
            None
            if log_file_raw is None
            else _path_from_cfg(log_file_raw, "logging.log_file", root_dir)
        )
        return cls(log_file=log_file)


@dataclass(frozen=True, slots=True)
class AppConfig:
    project: ProjectConfig
    resolver: ResolverConfig
    ratings: RatingsConfig
    map: MapConfig
    output: OutputConfig
    logging: LoggingConfig

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path) -> AppConfig:
        root_dir = source_path.parent.resolve()
        return cls(
            project=ProjectConfig.from_mapping(_mapping(raw.get("project"), "project")),
            resolver=ResolverConfig.from_mapping(_mapping(raw.get("resolver"), "resolver")),
            ratings=RatingsConfig.from_mapping(_mapping(raw.get("ratings"), "ratings")),
            map=MapConfig.from_mapping(_mapping(raw.get("map"), "map")),
            output=OutputConfig.from_mapping(_mapping(raw.get("output"), "output"), root_dir),
            logging=LoggingConfig.from_mapping(_mapping(raw.get("logging"), "logging"), root_dir),
        )

    @classmethod
    def defaults(cls, root_dir: Path | None = None) -> AppConfig:
        """Built-in configuration, with relative paths anchored at `root_dir` (default: cwd)."""
        base = (root_dir or Path.cwd()).resolve()
        return cls.from_mapping({}, base / "config.yaml")


def load_config(path: str | Path) -> AppConfig:
    """Load and validate the YAML config file into typed settings."""
    cfg_path = Path(path).resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level config must be a YAML mapping")
    return AppConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path)
