"""
Greedy population deduplication.

The population is walked front to back. Each remaining term is popped as
the source and compared against whatever is still left; its matches form
one candidate cluster. When shrinking is enabled, matched terms leave the
population and are never evaluated again, so every term ends up as either
a source or a match exactly once.

"Promiscuous" sources (more matches than the cap when the population is
assumed unique) get the MAX_EXCEEDED sentinel instead of their matches and
do not shrink the population: a term that matches everything usually
shares a common pattern rather than being a duplicate.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable
from typing import Callable, Optional

from .candidates import CandidateFinder
from .distance import StringDistance
from .models import MAX_EXCEEDED, DedupeResult

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 50


class PopulationDeduplicator:
    """
    Builds candidate clusters over a whole term population.

    Usage:
        deduplicator = PopulationDeduplicator()
        result = deduplicator.dedupe(terms, shrink_population=True)
        for source, matches in result.clusters().items():
            ...
    """

    def __init__(
        self,
        distance: Optional[StringDistance] = None,
        finder: Optional[CandidateFinder] = None,
    ) -> None:
        self.finder = finder or CandidateFinder(distance)

    def dedupe(
        self,
        population: Iterable[str],
        max_distance: float = 0.1,
        min_length: Optional[int] = None,
        skip_numeric: bool = False,
        unique_mode: bool = False,
        match_cap: int = 10,
        shrink_population: bool = False,
        report_overflow: bool = True,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> DedupeResult:
        """
        Walk the population and collect one candidate cluster per source.

        Args:
            population: Terms to deduplicate (duplicates are dropped, order kept)
            max_distance: Distance threshold handed to the candidate finder
            min_length: Terms shorter than this are never used as a source
            skip_numeric: Never use digit-only terms as a source
            unique_mode: Assume exact duplicates were removed upstream and cap matches
            match_cap: Largest match count a source may have in unique mode
            shrink_population: Remove matched terms from the remaining population
            report_overflow: Log capped sources as warnings
            progress_callback: Optional callback(processed, remaining)

        Returns:
            DedupeResult mapping every source to its matches (or None)
        """
        population = list(population)
        terms = list(dict.fromkeys(population))
        if len(terms) != len(population):
            logger.debug("Dropped %d repeated terms from population", len(population) - len(terms))
        result = DedupeResult(terms=len(terms))

        remaining = deque(terms)
        comparisons_before = self.finder.comparisons
        processed = 0

        while remaining:
            if processed % PROGRESS_EVERY == 0:
                self._report_progress(processed, len(remaining), len(terms), progress_callback)
            processed += 1

            source = remaining.popleft()
            if not remaining:
                result.match_sets[source] = None
                break

            found = self.finder.find(
                source,
                remaining,
                max_distance=max_distance,
                min_length=min_length,
                skip_numeric=skip_numeric,
            )

            if unique_mode and len(found.matches) > match_cap:
                result.match_sets[source] = [MAX_EXCEEDED]
                result.overflow.append(source)
                level = logging.WARNING if report_overflow else logging.DEBUG
                logger.log(
                    level,
                    "Discarding %d matches for '%s' (cap is %d)",
                    len(found.matches),
                    source,
                    match_cap,
                )
                continue

            result.match_sets[source] = list(found.matches) if found.is_match else None

            if shrink_population and found.is_match:
                remaining = deque(
                    term for term, hit in zip(remaining, found.mask) if not hit
                )

        result.comparisons = self.finder.comparisons - comparisons_before
        logger.info(
            "Deduplicated %d terms: %d clusters, %d capped, %d comparisons",
            result.terms,
            len(result.clusters()),
            len(result.overflow),
            result.comparisons,
        )
        return result

    @staticmethod
    def _report_progress(
        processed: int,
        remaining: int,
        total: int,
        progress_callback: Callable[[int, int], None] | None,
    ) -> None:
        if progress_callback:
            progress_callback(processed, remaining)
        if total:
            logger.info("Percent remaining: %.1f", 100 * remaining / total)


__all__ = ["PopulationDeduplicator", "PROGRESS_EVERY"]
