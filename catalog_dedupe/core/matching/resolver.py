"""
Resolution of candidate clusters.

PairResolver decides, for one source/candidate pair, whether the candidate
is a formatting variant of the source, a definite mismatch, or something a
person has to look at. Rules are applied in a fixed order and the first
applicable rule wins:

1. Missing candidate or capped cluster -> manual review
2. Equal once punctuation, whitespace and case are stripped -> match; the
   richer original becomes the canonical source
3. Equal once digits are also stripped -> mismatch (numbered sequels)
4. Both carry a serial marker ("volume 2") that differs -> mismatch
5. Anything else -> manual review

Only rule 2 ever confirms a match. Rules 3 and 4 only turn ambiguous
pairs into confirmed mismatches.

ClusterResolver folds those decisions over a whole cluster. A cluster is
accepted as a unit or not at all.

Serial markers depend on the vocabulary produced by the upstream title
normalization (which spells numbers out as "volume 2", "episode 3", ...).
If that step changes its output, `serial_markers` has to follow.
"""

from __future__ import annotations

import logging
import re
import string
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from .models import MAX_EXCEEDED, ClusterVerdict, Outcome, Resolution, VerdictStatus

logger = logging.getLogger(__name__)

DEFAULT_SERIAL_MARKERS = ("volume", "episode", "number")

_PUNCT_CHARS = re.escape(string.punctuation)
_STRIP_PATTERN = re.compile(rf"[{_PUNCT_CHARS}\s]+")
_PUNCT_PATTERN = re.compile(rf"[{_PUNCT_CHARS}]")
_DIGIT_PATTERN = re.compile(r"\d")


def strip_term(term: str) -> str:
    """Remove punctuation and whitespace and casefold."""
    return _STRIP_PATTERN.sub("", term).casefold()


def punctuation_count(term: str) -> int:
    return len(_PUNCT_PATTERN.findall(term))


def uppercase_count(term: str) -> int:
    return sum(1 for char in term if char.isupper())


def richness(term: str) -> tuple[int, int, int]:
    """
    Surface detail of a term, compared in order.

    Longer strings carry more detail; on equal length the one with more
    punctuation wins, then the one with more capitals.
    """
    return (len(term), punctuation_count(term), uppercase_count(term))


class PairResolver:
    """
    Deterministic decision rules for one source/candidate pair.

    Usage:
        resolver = PairResolver()
        result = resolver.resolve("mega man 2", "mega man 3")
        result.outcome  # -> Outcome.NO_MATCH
    """

    def __init__(self, serial_markers: Iterable[str] = DEFAULT_SERIAL_MARKERS) -> None:
        markers = [marker.strip().lower() for marker in serial_markers if marker and marker.strip()]
        self.serial_markers = tuple(markers)
        if markers:
            alternation = "|".join(re.escape(marker) for marker in markers)
            self._serial_pattern: Optional[re.Pattern[str]] = re.compile(
                rf"\b({alternation})\s*(\d+)", re.IGNORECASE
            )
        else:
            self._serial_pattern = None

    def resolve(self, source: str, candidate: Optional[str]) -> Resolution:
        """
        Decide whether `candidate` is a variant of `source`.

        Args:
            source: The current canonical term
            candidate: The candidate term, None, or the MAX_EXCEEDED sentinel

        Returns:
            Resolution; for a reverse match the candidate becomes the source
        """
        # Rule 1: nothing to compare
        if candidate is None or candidate == MAX_EXCEEDED:
            return self._manual_review(source, candidate)

        # Rule 2: formatting-only difference
        bare_source = strip_term(source)
        bare_candidate = strip_term(candidate)
        if bare_source == bare_candidate:
            return self._pick_richer(source, candidate)

        # Rule 3: only a number differs
        if _DIGIT_PATTERN.sub("", bare_source) == _DIGIT_PATTERN.sub("", bare_candidate):
            return self._no_match(source)

        # Rule 4: different volume/episode/number
        if self._serials_differ(source, candidate):
            return self._no_match(source)

        # Rule 5
        return self._manual_review(source, candidate)

    def serial_marker(self, term: str) -> Optional[tuple[str, int]]:
        """Return the first serial marker in a term as (marker, number)."""
        if self._serial_pattern is None:
            return None
        found = self._serial_pattern.search(term)
        if not found:
            return None
        return found.group(1).lower(), int(found.group(2))

    def _serials_differ(self, source: str, candidate: str) -> bool:
        source_serial = self.serial_marker(source)
        candidate_serial = self.serial_marker(candidate)
        if source_serial is None or candidate_serial is None:
            return False
        return source_serial != candidate_serial

    def _pick_richer(self, source: str, candidate: str) -> Resolution:
        source_rank = richness(source)
        candidate_rank = richness(candidate)
        if source_rank > candidate_rank:
            return Resolution(source=source, match=candidate, auto_accept=True, outcome=Outcome.MATCH)
        if candidate_rank > source_rank:
            return Resolution(
                source=candidate, match=source, auto_accept=True, outcome=Outcome.REVERSE_MATCH
            )
        return self._manual_review(source, candidate)

    @staticmethod
    def _manual_review(source: str, candidate: Optional[str]) -> Resolution:
        return Resolution(source=source, match=candidate, auto_accept=False, outcome=Outcome.MANUAL_REVIEW)

    @staticmethod
    def _no_match(source: str) -> Resolution:
        return Resolution(source=source, match=None, auto_accept=False, outcome=Outcome.NO_MATCH)


class ClusterResolver:
    """
    Folds pairwise resolutions over a whole candidate cluster.

    The running source can be replaced mid-fold by a reverse match; every
    later comparison uses the most recently accepted canonical form.
    """

    def __init__(self, pair_resolver: Optional[PairResolver] = None) -> None:
        self.pair_resolver = pair_resolver or PairResolver()

    def resolve_set(self, source: str, candidates: Optional[Sequence[Optional[str]]]) -> ClusterVerdict:
        """
        Resolve one cluster into a single verdict.

        Args:
            source: The cluster's source term
            candidates: Candidate terms (None entries are ignored)

        Returns:
            ClusterVerdict: accepted with the final source and retained
            matches, review with the original cluster, or unmatched
        """
        original = list(candidates or [])
        if all(candidate is None for candidate in original):
            return ClusterVerdict.unmatched(source)

        running, resolutions = self._fold(source, original)
        retained = [resolution for resolution in resolutions if resolution.match is not None]

        if not retained:
            return ClusterVerdict.unmatched(source)

        if all(resolution.auto_accept for resolution in retained):
            return ClusterVerdict(
                source=running,
                matches=tuple(resolution.match for resolution in retained),
                auto_accept=True,
                status=VerdictStatus.ACCEPTED,
            )

        return ClusterVerdict(
            source=source,
            matches=tuple(candidate for candidate in original if candidate is not None),
            auto_accept=False,
            status=VerdictStatus.REVIEW,
        )

    def _fold(self, source: str, candidates: Sequence[Optional[str]]) -> tuple[str, list[Resolution]]:
        running = source
        resolutions: list[Resolution] = []
        for candidate in candidates:
            if candidate is None:
                continue
            resolution = self.pair_resolver.resolve(running, candidate)
            running = resolution.source
            resolutions.append(resolution)
        return running, resolutions


def resolve_all(
    match_sets: Mapping[str, Optional[Sequence[str]]],
    resolver: Optional[ClusterResolver] = None,
    workers: int = 1,
) -> list[ClusterVerdict]:
    """
    Resolve every cluster of a deduplication run.

    Clusters never share terms, so they can be resolved independently;
    with `workers > 1` they are spread over a thread pool. Verdicts are
    returned in the order of `match_sets` either way.
    """
    resolver = resolver or ClusterResolver()
    items = list(match_sets.items())

    if workers > 1 and len(items) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            verdicts = list(pool.map(lambda item: resolver.resolve_set(*item), items))
    else:
        verdicts = [resolver.resolve_set(source, matches) for source, matches in items]

    accepted = sum(1 for verdict in verdicts if verdict.status is VerdictStatus.ACCEPTED)
    review = sum(1 for verdict in verdicts if verdict.status is VerdictStatus.REVIEW)
    logger.info(
        "Resolved %d clusters: %d accepted, %d need review, %d unmatched",
        len(verdicts),
        accepted,
        review,
        len(verdicts) - accepted - review,
    )
    return verdicts


__all__ = [
    "ClusterResolver",
    "DEFAULT_SERIAL_MARKERS",
    "PairResolver",
    "punctuation_count",
    "resolve_all",
    "richness",
    "strip_term",
]
