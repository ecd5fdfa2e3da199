"""Domain models shared across pipeline modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, ClassVar, Mapping


def _require_color(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty color string for '{field_name}'")
    return value.strip()


@dataclass(frozen=True, slots=True)
class ColorKey:
    """Rating token to fill color table with a fallback color."""

    DEFAULT_KEY: ClassVar[str] = "#default"

    colors: Mapping[str, str]
    default: str

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ColorKey:
        if cls.DEFAULT_KEY not in data:
            raise ValueError(f"Color key must define a '{cls.DEFAULT_KEY}' entry")
        colors: dict[str, str] = {}
        for rating, color in data.items():
            if rating == cls.DEFAULT_KEY:
                continue
            if not isinstance(rating, str) or not rating.strip():
                raise ValueError("Color key ratings must be non-empty strings")
            colors[rating.strip().lower()] = _require_color(color, f"colors.{rating}")
        return cls(
            colors=MappingProxyType(colors),
            default=_require_color(data[cls.DEFAULT_KEY], f"colors.{cls.DEFAULT_KEY}"),
        )

    def __contains__(self, rating: object) -> bool:
        return rating in self.colors

    def color_for(self, rating: str | None) -> str:
        if rating is None:
            return self.default
        return self.colors.get(rating, self.default)


@dataclass(slots=True)
class StepReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


@dataclass(slots=True)
class PageResolution(StepReport):
    """Outcome of resolving map country codes to article titles."""

    pages: dict[str, str] = field(default_factory=dict)
    code_by_page: dict[str, str] = field(default_factory=dict)
    duplicated: dict[str, list[str]] = field(default_factory=dict)
    overridden: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)
    batches: int = 0

    def codes_for_page(self, title: str) -> list[str]:
        """Every code whose resolved title is `title`, in mapping order."""
        if title in self.duplicated:
            return list(self.duplicated[title])
        code = self.code_by_page.get(title)
        return [] if code is None else [code]


@dataclass(slots=True)
class RatingExtraction(StepReport):
    """Quality ratings read from exported talk pages."""

    ratings: dict[str, str] = field(default_factory=dict)
    unrated: list[str] = field(default_factory=list)
    unknown_ratings: list[str] = field(default_factory=list)
    pages_seen: int = 0


@dataclass(slots=True)
class BuildReport(StepReport):
    output_path: Path | None = None
    summary: dict[str, int] = field(default_factory=dict)

    def absorb(self, step: StepReport) -> None:
        self.errors.extend(step.errors)
        self.warnings.extend(step.warnings)
