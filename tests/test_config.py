from __future__ import annotations

from pathlib import Path

import pytest

from qualitymap.config import (
    DEFAULT_COLORS,
    DEFAULT_OUTPUT_TITLE,
    DEFAULT_OVERRIDES,
    AppConfig,
    load_config,
)
from qualitymap.models import ColorKey


REPO_ROOT = Path(__file__).resolve().parents[1]


def test_defaults_apply_when_sections_are_absent(tmp_path: Path) -> None:
    cfg = AppConfig.from_mapping({}, tmp_path / "config.yaml")

    assert cfg.project.host == "en.wikipedia.org"
    assert cfg.project.api_url == "https://en.wikipedia.org/w/api.php"
    assert cfg.project.export_url == "https://en.wikipedia.org/wiki/Special:Export"
    assert cfg.resolver.batch_size == 50
    assert cfg.resolver.lookup_prefix == "ISO 3166-1:"
    assert dict(cfg.resolver.overrides) == dict(DEFAULT_OVERRIDES)
    assert cfg.ratings.talk_prefix == "Talk:"
    assert cfg.map.exclude_class == "limitxx"
    assert cfg.output.title == DEFAULT_OUTPUT_TITLE
    assert cfg.output.path == tmp_path.resolve() / f"{DEFAULT_OUTPUT_TITLE}.svg"
    assert cfg.logging.log_file is None


@pytest.mark.parametrize("batch_size", [0, 51, -3])
def test_batch_size_must_stay_within_upstream_limit(tmp_path: Path, batch_size: int) -> None:
    with pytest.raises(ValueError, match="batch_size"):
        AppConfig.from_mapping({"resolver": {"batch_size": batch_size}}, tmp_path / "config.yaml")


def test_colors_require_default_entry(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="#default"):
        AppConfig.from_mapping({"ratings": {"colors": {"fa": "#9cbdff"}}}, tmp_path / "c.yaml")


def test_override_keys_must_be_country_codes(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="XK"):
        AppConfig.from_mapping({"resolver": {"overrides": {"XK": "Kosovo"}}}, tmp_path / "c.yaml")


def test_host_must_be_bare_hostname(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="project.host"):
        AppConfig.from_mapping({"project": {"host": "https://en.wikipedia.org"}}, tmp_path / "c.yaml")


def test_load_config_reads_yaml(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "\n".join(
            [
                "project:",
                "  host: fr.wikipedia.org",
                "  request_timeout_s: null",
                "resolver:",
                "  batch_size: 10",
                "  overrides:",
                "    xk: Kosovo (pays)",
                "output:",
                "  path: out/carte.svg",
                "  title: Carte",
            ]
        ),
        encoding="utf-8",
    )
    cfg = load_config(path)

    assert cfg.project.host == "fr.wikipedia.org"
    assert cfg.project.request_timeout_s is None
    assert cfg.resolver.batch_size == 10
    assert dict(cfg.resolver.overrides) == {"xk": "Kosovo (pays)"}
    assert cfg.output.path == tmp_path.resolve() / "out" / "carte.svg"


def test_load_config_empty_file_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    cfg = load_config(path)
    assert cfg.resolver.batch_size == 50


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_load_config_rejects_non_mapping(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError, match="mapping"):
        load_config(path)


def test_shipped_config_matches_built_in_defaults() -> None:
    cfg = load_config(REPO_ROOT / "config.yaml")
    defaults = AppConfig.defaults(REPO_ROOT)

    assert cfg.ratings.color_key == ColorKey.from_mapping(DEFAULT_COLORS)
    assert dict(cfg.resolver.overrides) == dict(defaults.resolver.overrides)
    assert cfg.project.base_map_url == defaults.project.base_map_url
    assert cfg.output == defaults.output


def test_color_key_lookup() -> None:
    key = ColorKey.from_mapping(DEFAULT_COLORS)

    assert key.color_for("fa") == "#9cbdff"
    assert key.color_for(None) == "#cccccc"
    assert key.color_for("unassessed") == "#cccccc"
    assert "stub" in key
    assert "unassessed" not in key
