"""
Domain models for fuzzy matching and resolution.

These are pure data models with no dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

MAX_EXCEEDED = "---max exceeded---"
"""Sentinel recorded in place of the matches of a source that hit the match cap."""


class Outcome(str, Enum):
    """Pairwise decision made by the pair resolver."""

    MATCH = "match"
    REVERSE_MATCH = "reverse_match"
    NO_MATCH = "no_match"
    MANUAL_REVIEW = "manual_review"


class VerdictStatus(str, Enum):
    """Cluster-level state after folding pairwise decisions."""

    ACCEPTED = "accepted"
    REVIEW = "review"
    UNMATCHED = "unmatched"


@dataclass(frozen=True, slots=True)
class CandidateMatch:
    """
    Result of testing one term against a population.

    `mask` is aligned with the population and can be used to subset it;
    `matches` holds the matching members in population order.
    """

    mask: tuple[bool, ...]
    matches: tuple[str, ...] = ()

    @property
    def is_match(self) -> bool:
        return bool(self.matches)


@dataclass(frozen=True, slots=True)
class Resolution:
    """
    Decision for a single source/candidate pair.

    Example:
        Resolution(source="007: nightfire", match="007 nightfire",
                   auto_accept=True, outcome=Outcome.MATCH)
    """

    source: str
    match: Optional[str]
    """None signals a definite non-match"""

    auto_accept: bool
    """False with a non-null match means the pair needs manual review"""

    outcome: Outcome = Outcome.MANUAL_REVIEW


@dataclass(frozen=True, slots=True)
class ClusterVerdict:
    """
    The fold of every pairwise resolution in one candidate cluster.

    Accepted verdicts carry the final canonical source and the retained
    matches; review verdicts carry the original, unresolved cluster.
    """

    source: str
    matches: tuple[str, ...]
    auto_accept: bool
    status: VerdictStatus

    @classmethod
    def unmatched(cls, source: str) -> "ClusterVerdict":
        return cls(source=source, matches=(), auto_accept=False, status=VerdictStatus.UNMATCHED)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "matches": list(self.matches),
            "auto_accept": self.auto_accept,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClusterVerdict":
        auto_accept = bool(data.get("auto_accept", False))
        default_status = VerdictStatus.ACCEPTED if auto_accept else VerdictStatus.REVIEW
        return cls(
            source=data["source"],
            matches=tuple(data.get("matches") or ()),
            auto_accept=auto_accept,
            status=VerdictStatus(data["status"]) if data.get("status") else default_status,
        )


@dataclass
class DedupeResult:
    """
    Clusters found by walking a term population.

    Example:
        match_sets = {
            "sonic the hedgehog": ["sonic the hedgehog!"],
            "tetris": None,
            "the": ["---max exceeded---"],
        }
    """

    match_sets: dict[str, Optional[list[str]]] = field(default_factory=dict)
    """Source term -> matched terms, None when nothing matched"""

    overflow: list[str] = field(default_factory=list)
    """Sources whose matches were discarded because they exceeded the cap"""

    terms: int = 0
    """Number of unique terms in the population"""

    comparisons: int = 0
    """Number of distance computations performed"""

    def clusters(self) -> dict[str, list[str]]:
        """Only the sources that picked up at least one real match."""
        return {
            source: list(matches)
            for source, matches in self.match_sets.items()
            if matches and matches != [MAX_EXCEEDED]
        }


@dataclass(frozen=True, slots=True)
class SkippedRewrite:
    source: str
    match: str
    reason: str


@dataclass
class RewriteReport:
    """Outcome of applying accepted verdicts to a record set."""

    applied: list[tuple[str, str]] = field(default_factory=list)
    skipped: list[SkippedRewrite] = field(default_factory=list)
    records_touched: int = 0
    misaligned: int = 0

    def merge(self, other: "RewriteReport") -> None:
        self.applied.extend(other.applied)
        self.skipped.extend(other.skipped)
        self.records_touched += other.records_touched
        self.misaligned += other.misaligned
