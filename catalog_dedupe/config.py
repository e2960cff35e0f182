from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .core.matching.resolver import DEFAULT_SERIAL_MARKERS

DistanceMethod = Literal["jaro", "jaro_winkler", "levenshtein", "osa", "damerau_levenshtein", "indel"]


class MatchSettings(BaseModel):
    max_distance: float = Field(default=0.1, ge=0.0, le=1.0)
    min_length: Optional[int] = Field(default=None, ge=0)
    skip_numeric: bool = False
    assume_unique: bool = False
    match_cap: int = Field(default=10, ge=0)
    shrink_population: bool = False
    method: DistanceMethod = "jaro"
    prefix_weight: float = Field(default=0.0, ge=0.0, le=0.25)
    report_overflow: bool = True


class ResolveSettings(BaseModel):
    serial_markers: List[str] = Field(default_factory=lambda: list(DEFAULT_SERIAL_MARKERS))
    workers: int = Field(default=1, ge=1)


class FieldSettings(BaseModel):
    name: str
    clean: str
    flat: str


def _default_fields() -> List[FieldSettings]:
    return [
        FieldSettings(name="title", clean="title_clean", flat="title_flat"),
        FieldSettings(name="platform", clean="platform_clean", flat="platform_flat"),
    ]


class TableSettings(BaseModel):
    delimiter: str = "----"
    absent_marker: str = "NA"
    fields: List[FieldSettings] = Field(default_factory=_default_fields)

    @field_validator("delimiter")
    @classmethod
    def _require_delimiter(cls, value: str) -> str:
        if not value:
            raise ValueError("delimiter must not be empty")
        return value

    def get_field(self, name: str) -> FieldSettings:
        for candidate in self.fields:
            if candidate.name == name:
                return candidate
        known = ", ".join(f.name for f in self.fields) or "none"
        raise ValueError(f"Unknown field '{name}' (configured: {known})")

    def composite_columns(self) -> list[str]:
        columns: list[str] = []
        for item in self.fields:
            columns.extend([item.clean, item.flat])
        return columns


class StoreSettings(BaseModel):
    path: Path = Path("./cache/dedupe.sqlite3")

    @field_validator("path", mode="before")
    @classmethod
    def _expand_path(cls, value: str | Path) -> Path:
        return Path(value).expanduser().resolve()


class Settings(BaseModel):
    matching: MatchSettings = MatchSettings()
    resolve: ResolveSettings = ResolveSettings()
    table: TableSettings = TableSettings()
    store: StoreSettings = StoreSettings()

    @classmethod
    def load(cls, path: Path) -> "Settings":
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
        return cls.model_validate(raw or {})


def find_config(explicit_path: Optional[Path]) -> Optional[Path]:
    if explicit_path:
        if not explicit_path.exists():
            raise FileNotFoundError(f"Config file not found: {explicit_path}")
        return explicit_path
    cwd = Path.cwd()
    for candidate in (cwd / "config.yaml", cwd / "config.yml"):
        if candidate.exists():
            return candidate
    return None


def load_settings(explicit_path: Optional[Path]) -> Settings:
    path = find_config(explicit_path)
    if path is None:
        return Settings()
    return Settings.load(path)
