"""
End-to-end deduplication of one composite field.

Stages:
1. match   - cluster the field's unique flat terms
2. resolve - turn each cluster into an accepted/review/unmatched verdict
3. apply   - rewrite the records with the accepted verdicts

Each stage can run on its own (the CLI persists the intermediate results
between them) or all at once through `run`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Callable, Optional

from .config import FieldSettings, Settings
from .core.matching import (
    ClusterResolver,
    ClusterVerdict,
    DedupeResult,
    FieldCodec,
    PairResolver,
    PopulationDeduplicator,
    RecordRewriter,
    RewriteReport,
    StringDistance,
    VerdictStatus,
    apply_all,
    build_distance,
    resolve_all,
)
from .table import RecordTable

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    field: str
    dedupe: DedupeResult
    verdicts: list[ClusterVerdict] = field(default_factory=list)
    rewrite: RewriteReport = field(default_factory=RewriteReport)

    def accepted(self) -> list[ClusterVerdict]:
        return [v for v in self.verdicts if v.status is VerdictStatus.ACCEPTED]

    def needs_review(self) -> list[ClusterVerdict]:
        return [v for v in self.verdicts if v.status is VerdictStatus.REVIEW]

    def accepted_mapping(self) -> dict[str, list[str]]:
        """Retained source terms and their accepted matches."""
        return {v.source: list(v.matches) for v in self.accepted()}


class DedupePipeline:
    def __init__(self, settings: Settings, distance: Optional[StringDistance] = None) -> None:
        self.settings = settings
        matching = settings.matching
        self.distance = distance or build_distance(matching.method, matching.prefix_weight)
        self.codec = FieldCodec(settings.table.delimiter, settings.table.absent_marker)
        self.deduplicator = PopulationDeduplicator(self.distance)
        self.resolver = ClusterResolver(PairResolver(settings.resolve.serial_markers))
        self.rewriter = RecordRewriter(self.codec)

    def field_settings(self, name: str) -> FieldSettings:
        return self.settings.table.get_field(name)

    def load_table(self, rows: Iterable[dict]) -> RecordTable:
        return RecordTable.from_rows(rows, self.settings.table.composite_columns(), self.codec)

    def match(
        self,
        terms: Iterable[str],
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> DedupeResult:
        matching = self.settings.matching
        return self.deduplicator.dedupe(
            terms,
            max_distance=matching.max_distance,
            min_length=matching.min_length,
            skip_numeric=matching.skip_numeric,
            unique_mode=matching.assume_unique,
            match_cap=matching.match_cap,
            shrink_population=matching.shrink_population,
            report_overflow=matching.report_overflow,
            progress_callback=progress_callback,
        )

    def resolve(self, result: DedupeResult) -> list[ClusterVerdict]:
        return resolve_all(result.match_sets, self.resolver, workers=self.settings.resolve.workers)

    def apply(self, verdicts: Iterable[ClusterVerdict], table: RecordTable, field_name: str) -> RewriteReport:
        columns = self.field_settings(field_name)
        return apply_all(verdicts, table.rows, columns.clean, columns.flat, self.rewriter)

    def run(
        self,
        table: RecordTable,
        field_name: str,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> PipelineResult:
        columns = self.field_settings(field_name)
        terms = table.unique_terms(columns.flat)
        logger.info("Matching %d unique '%s' terms", len(terms), field_name)

        dedupe = self.match(terms, progress_callback)
        verdicts = self.resolve(dedupe)
        rewrite = self.apply(verdicts, table, field_name)

        result = PipelineResult(field=field_name, dedupe=dedupe, verdicts=verdicts, rewrite=rewrite)
        logger.info(
            "Field '%s': %d accepted, %d awaiting review, %d replacements",
            field_name,
            len(result.accepted()),
            len(result.needs_review()),
            len(rewrite.applied),
        )
        return result
