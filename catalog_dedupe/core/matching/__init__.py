"""
Fuzzy matching and resolution domain logic.

This module handles:
- Composite field canonicalization (split, join, sort, dedupe)
- Candidate search against a term population
- Greedy population deduplication into candidate clusters
- Pairwise and cluster-level resolution (accept, reject, manual review)
- Propagation of accepted clusters into a record set

All logic is pure business logic with no I/O dependencies.
"""

from __future__ import annotations

from .candidates import CandidateFinder
from .codec import FieldCodec
from .deduplicator import PopulationDeduplicator
from .distance import RapidFuzzDistance, StringDistance, build_distance
from .models import (
    MAX_EXCEEDED,
    CandidateMatch,
    ClusterVerdict,
    DedupeResult,
    Outcome,
    Resolution,
    RewriteReport,
    SkippedRewrite,
    VerdictStatus,
)
from .resolver import ClusterResolver, PairResolver, resolve_all
from .rewriter import RecordRewriter, apply_all

__all__ = [
    "MAX_EXCEEDED",
    "CandidateFinder",
    "CandidateMatch",
    "ClusterResolver",
    "ClusterVerdict",
    "DedupeResult",
    "FieldCodec",
    "Outcome",
    "PairResolver",
    "PopulationDeduplicator",
    "RapidFuzzDistance",
    "RecordRewriter",
    "Resolution",
    "RewriteReport",
    "SkippedRewrite",
    "StringDistance",
    "VerdictStatus",
    "apply_all",
    "build_distance",
    "resolve_all",
]
