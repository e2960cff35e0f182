"""
Propagation of accepted canonicalizations into a record set.

Each record carries a "flat" composite field (normalized tokens used for
matching) and a positionally aligned "clean" composite field (display
form). For an accepted verdict, the clean form of the source is read from
the first aligned record whose flat field holds the source token; then every flat
token equal to a match term, and the clean token at the same position, is
replaced. Sibling tokens in the same field are left untouched.

Tokens are compared whole, never as substrings, so "man" is never found
inside "megaman".
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, MutableMapping, MutableSequence
from typing import Any, Optional

from .codec import FieldCodec
from .models import ClusterVerdict, RewriteReport, SkippedRewrite

logger = logging.getLogger(__name__)

Record = MutableMapping[str, Any]

PROGRESS_EVERY = 50


class RecordRewriter:
    """
    Applies accepted verdicts to records in place.

    Composite fields may hold token lists or delimiter-joined strings;
    strings are decoded with the codec and written back in the same form.

    Usage:
        rewriter = RecordRewriter()
        report = rewriter.apply(verdict, records, "title_clean", "title_flat")
    """

    def __init__(self, codec: Optional[FieldCodec] = None) -> None:
        self.codec = codec or FieldCodec()

    def apply(
        self,
        verdict: ClusterVerdict,
        records: MutableSequence[Record],
        clean_field: str,
        flat_field: str,
        already_rewritten: Optional[set[str]] = None,
    ) -> RewriteReport:
        """
        Replace every match token of an accepted verdict with its source.

        Args:
            verdict: An auto-accepted cluster verdict
            records: Records to update in place
            clean_field: Name of the display composite field
            flat_field: Name of the normalized composite field
            already_rewritten: Match tokens rewritten earlier in the run;
                updated with the tokens rewritten here

        Returns:
            RewriteReport for this verdict

        Raises:
            ValueError: If the verdict was not auto-accepted
        """
        if not verdict.auto_accept:
            raise ValueError(f"Refusing to apply unaccepted verdict for '{verdict.source}'")

        report = RewriteReport()
        seen = already_rewritten if already_rewritten is not None else set()

        clean_term, misaligned_holders = self._lookup_clean_term(verdict.source, records, clean_field, flat_field)
        if clean_term is None:
            if misaligned_holders:
                reason = "source token misaligned in every record"
                report.misaligned += misaligned_holders
            else:
                reason = "source token not found in any record"
            for match in verdict.matches:
                report.skipped.append(SkippedRewrite(verdict.source, match, reason))
            logger.warning("Skipping '%s': %s", verdict.source, reason)
            return report

        touched: set[int] = set()
        for match in verdict.matches:
            if match in seen:
                report.skipped.append(SkippedRewrite(verdict.source, match, "token already rewritten"))
                logger.warning("Skipping '%s' -> '%s': token already rewritten", match, verdict.source)
                continue
            for index, record in enumerate(records):
                if self._replace(record, match, verdict.source, clean_term, clean_field, flat_field, report):
                    touched.add(index)
            seen.add(match)
            report.applied.append((verdict.source, match))

        report.records_touched = len(touched)
        return report

    def _lookup_clean_term(
        self,
        source: str,
        records: Iterable[Record],
        clean_field: str,
        flat_field: str,
    ) -> tuple[Optional[str], int]:
        """
        Clean form of `source` from the first aligned record holding it.

        Returns:
            (clean term or None, number of misaligned records skipped on the way)
        """
        misaligned = 0
        for record in records:
            flat_tokens = self._tokens(record, flat_field)
            if source not in flat_tokens:
                continue
            position = flat_tokens.index(source)
            clean_tokens = self._tokens(record, clean_field)
            if position >= len(clean_tokens):
                misaligned += 1
                continue
            return clean_tokens[position], misaligned
        return None, misaligned

    def _replace(
        self,
        record: Record,
        match: str,
        source: str,
        clean_term: str,
        clean_field: str,
        flat_field: str,
        report: RewriteReport,
    ) -> bool:
        flat_tokens = self._tokens(record, flat_field)
        positions = [position for position, token in enumerate(flat_tokens) if token == match]
        if not positions:
            return False

        clean_tokens = self._tokens(record, clean_field)
        if positions[-1] >= len(clean_tokens):
            report.misaligned += 1
            logger.debug("Clean field shorter than flat field; leaving record untouched: %r", record)
            return False

        for position in positions:
            flat_tokens[position] = source
            clean_tokens[position] = clean_term
        self._store(record, flat_field, flat_tokens)
        self._store(record, clean_field, clean_tokens)
        return True

    def _tokens(self, record: Record, field: str) -> list[str]:
        value = record.get(field)
        if isinstance(value, (list, tuple)):
            return list(value)
        if value is None:
            return []
        return self.codec.split(str(value))

    def _store(self, record: Record, field: str, tokens: list[str]) -> None:
        current = record.get(field)
        if isinstance(current, list):
            current[:] = tokens
        elif isinstance(current, tuple):
            record[field] = tuple(tokens)
        else:
            record[field] = self.codec.join(tokens)


def apply_all(
    verdicts: Iterable[ClusterVerdict],
    records: MutableSequence[Record],
    clean_field: str,
    flat_field: str,
    rewriter: Optional[RecordRewriter] = None,
) -> RewriteReport:
    """
    Apply every accepted verdict to the records; others are ignored.

    A match token is rewritten at most once per run.
    """
    rewriter = rewriter or RecordRewriter()
    accepted = [verdict for verdict in verdicts if verdict.auto_accept]
    report = RewriteReport()
    rewritten: set[str] = set()

    total = len(accepted)
    for number, verdict in enumerate(accepted, 1):
        if number == 1 or number % PROGRESS_EVERY == 0 or number == total:
            logger.info("Set %d of %d, percent complete: %.1f", number, total, 100 * number / total)
        report.merge(rewriter.apply(verdict, records, clean_field, flat_field, rewritten))

    logger.info(
        "Applied %d replacements across %d records (%d skipped)",
        len(report.applied),
        report.records_touched,
        len(report.skipped),
    )
    return report


__all__ = ["RecordRewriter", "apply_all"]
