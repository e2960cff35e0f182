from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..core.matching import ClusterVerdict, DedupeResult, RewriteReport, VerdictStatus


class LineStatus(str, Enum):
    OK = "OK"
    WARNING = "WARNING"
    REVIEW = "REVIEW"
    SKIPPED = "SKIPPED"


@dataclass(frozen=True, slots=True)
class SummaryLine:
    field: str
    label: str
    status: LineStatus
    detail: Optional[str] = None

    def render(self) -> str:
        text = f"{self.field} {self.label}: {self.status.value}"
        if self.detail:
            text += f" ({self.detail})"
        return text


def match_lines(field: str, result: DedupeResult) -> list[str]:
    lines = [
        SummaryLine(field, "terms", LineStatus.OK, f"{result.terms} unique"),
        SummaryLine(field, "clusters", LineStatus.OK, f"{len(result.clusters())} with candidates"),
    ]
    if result.overflow:
        lines.append(
            SummaryLine(
                field,
                "capped sources",
                LineStatus.WARNING,
                f"{len(result.overflow)} discarded as too promiscuous",
            )
        )
    return [line.render() for line in lines]


def verdict_lines(field: str, verdicts: list[ClusterVerdict]) -> list[str]:
    counts = {status: 0 for status in VerdictStatus}
    for verdict in verdicts:
        counts[verdict.status] += 1
    lines = [SummaryLine(field, "accepted", LineStatus.OK, str(counts[VerdictStatus.ACCEPTED]))]
    if counts[VerdictStatus.REVIEW]:
        lines.append(SummaryLine(field, "manual review", LineStatus.REVIEW, str(counts[VerdictStatus.REVIEW])))
    lines.append(SummaryLine(field, "unmatched", LineStatus.OK, str(counts[VerdictStatus.UNMATCHED])))
    return [line.render() for line in lines]


def rewrite_lines(field: str, report: RewriteReport) -> list[str]:
    lines = [
        SummaryLine(
            field,
            "rewrites",
            LineStatus.OK,
            f"{len(report.applied)} replacements in {report.records_touched} records",
        )
    ]
    for item in report.skipped:
        lines.append(SummaryLine(field, f"'{item.match}' -> '{item.source}'", LineStatus.SKIPPED, item.reason))
    if report.misaligned:
        lines.append(SummaryLine(field, "misaligned records", LineStatus.WARNING, str(report.misaligned)))
    return [line.render() for line in lines]


def run(lines: list[str]) -> None:
    for line in lines:
        print(line)
