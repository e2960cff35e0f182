"""
Record table I/O.

Composite columns are decoded into token lists when a table is loaded and
encoded back into delimiter-joined strings when it is saved; in between,
nothing touches the joined form.
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .core.matching.codec import FieldCodec

logger = logging.getLogger(__name__)


@dataclass
class RecordTable:
    rows: list[dict[str, Any]] = field(default_factory=list)
    columns: list[str] = field(default_factory=list)
    composite_columns: list[str] = field(default_factory=list)
    codec: FieldCodec = field(default_factory=FieldCodec)

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[dict[str, Any]],
        composite_columns: Iterable[str],
        codec: Optional[FieldCodec] = None,
    ) -> "RecordTable":
        codec = codec or FieldCodec()
        composite = list(composite_columns)
        decoded: list[dict[str, Any]] = []
        columns: list[str] = []
        for raw in rows:
            row = dict(raw)
            for column in row:
                if column not in columns:
                    columns.append(column)
            for column in composite:
                if column in row:
                    row[column] = cls._decode(codec, row[column])
            decoded.append(row)
        return cls(rows=decoded, columns=columns, composite_columns=composite, codec=codec)

    @classmethod
    def load_csv(
        cls,
        path: Path,
        composite_columns: Iterable[str],
        codec: Optional[FieldCodec] = None,
    ) -> "RecordTable":
        if not path.exists():
            raise FileNotFoundError(f"Record table not found: {path}")
        with path.open("r", encoding="utf-8", newline="") as fh:
            reader = csv.DictReader(fh)
            table = cls.from_rows(reader, composite_columns, codec)
            table.columns = list(reader.fieldnames or table.columns)
        logger.info("Loaded %d records from %s", len(table.rows), path)
        return table

    def save_csv(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="") as fh:
            writer = csv.DictWriter(fh, fieldnames=self.columns)
            writer.writeheader()
            for row in self.rows:
                writer.writerow(self.encode_row(row))
        logger.info("Wrote %d records to %s", len(self.rows), path)

    def encode_row(self, row: dict[str, Any]) -> dict[str, Any]:
        encoded = dict(row)
        for column in self.composite_columns:
            if column in encoded:
                joined = self.codec.join(encoded[column] or [])
                encoded[column] = self.codec.absent_marker if joined is None else joined
        return encoded

    def require_columns(self, *names: str) -> None:
        missing = [name for name in names if name not in self.columns]
        if missing:
            raise ValueError(f"Record table is missing column(s): {', '.join(missing)}")

    def unique_terms(self, flat_column: str) -> list[str]:
        """Distinct flat tokens in first-seen order (the matching population)."""
        if flat_column not in self.columns:
            raise ValueError(f"Unknown column '{flat_column}'")
        seen: dict[str, None] = {}
        for row in self.rows:
            for token in row.get(flat_column) or []:
                seen.setdefault(token, None)
        return list(seen)

    @staticmethod
    def _decode(codec: FieldCodec, value: Any) -> list[str]:
        if value is None:
            return []
        text = str(value)
        if not text.strip() or text == codec.absent_marker:
            return []
        return codec.split(text)

    def __len__(self) -> int:
        return len(self.rows)
