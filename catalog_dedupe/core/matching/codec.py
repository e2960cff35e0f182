"""
Composite field codec.

Composite fields store an ordered list of sub-values joined by a reserved
delimiter (e.g. "sonic----sonic 2"). This module is the only place where
such strings are split or joined; everything else works on token lists.

Canonical form:
1. Blank and missing values become the absent marker
2. Runs of spaces collapse to a single space
3. Values are optionally deduplicated
4. Values are sorted (numbers numerically, before text; text lexically)
5. Absent markers and empty segments are stripped

A field with nothing left after step 5 is absent (None).
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from numbers import Number
from typing import Any, Optional

DEFAULT_DELIMITER = "----"
DEFAULT_ABSENT_MARKER = "NA"

_MULTI_SPACE = re.compile(r" {2,}")
_NUMERIC = re.compile(r"-?\d+(?:\.\d+)?")


def _sort_key(token: str) -> tuple:
    # plain decimals only; "inf", "nan" and "1e3" sort as text
    if _NUMERIC.fullmatch(token):
        return (0, float(token), token)
    return (1, 0.0, token)


class FieldCodec:
    """
    Splits, joins and canonicalizes delimiter-encoded composite fields.

    Usage:
        codec = FieldCodec()
        codec.canonicalize(["b----a", "c", None])  # -> "a----b----c"
        codec.split("a----b")                      # -> ["a", "b"]
    """

    def __init__(
        self,
        delimiter: str = DEFAULT_DELIMITER,
        absent_marker: str = DEFAULT_ABSENT_MARKER,
    ) -> None:
        if not delimiter:
            raise ValueError("Composite field delimiter must not be empty")
        self.delimiter = delimiter
        self.absent_marker = absent_marker

    def split(self, value: Optional[str]) -> list[str]:
        """Decode a composite field into its tokens (lossless apart from absence)."""
        if value is None or value == "":
            return []
        return value.split(self.delimiter)

    def join(self, tokens: Iterable[str]) -> Optional[str]:
        """Encode tokens into a composite field; an empty list is absent."""
        parts = list(tokens)
        if not parts:
            return None
        return self.delimiter.join(parts)

    def normalize_value(self, value: Any) -> str:
        """Turn one raw value into a string, mapping blanks to the absent marker."""
        if value is None:
            return self.absent_marker
        if isinstance(value, float) and value != value:
            return self.absent_marker
        if isinstance(value, Number) and not isinstance(value, bool):
            text = repr(value) if isinstance(value, float) else str(value)
        else:
            text = str(value)
        text = _MULTI_SPACE.sub(" ", text)
        if not text.strip():
            return self.absent_marker
        return text

    def sort_elements(
        self,
        value: Any,
        *,
        dedupe: bool = True,
        reverse: bool = False,
    ) -> Optional[str]:
        """
        Canonicalize the tokens of a single composite value.

        Args:
            value: A composite string (or scalar) to sort
            dedupe: Drop repeated tokens, keeping the first
            reverse: Sort in descending order

        Returns:
            The canonical composite string, or None when nothing remains
        """
        tokens = self.split(self.normalize_value(value))
        tokens = [token for token in tokens if token.strip() and token != self.absent_marker]
        if dedupe:
            tokens = list(dict.fromkeys(tokens))
        tokens.sort(key=_sort_key, reverse=reverse)
        return self.join(tokens)

    def canonicalize(
        self,
        values: Any,
        *,
        dedupe: bool = True,
        reverse: bool = False,
    ) -> Optional[str]:
        """
        Collapse a list of (possibly composite) values into one canonical field.

        Each element is canonicalized on its own first, then the elements
        are joined and the combined token list is canonicalized again, so
        composite-of-composite inputs come out flat and sorted.

        Canonicalizing an already canonical field returns it unchanged.
        """
        if values is None or isinstance(values, (str, bytes, Number)):
            values = [values]
        elif not isinstance(values, Sequence):
            values = list(values)

        inner = [self.sort_elements(value, dedupe=dedupe, reverse=reverse) for value in values]
        collapsed = self.join(item for item in inner if item is not None)
        return self.sort_elements(collapsed, dedupe=dedupe, reverse=reverse)


__all__ = ["DEFAULT_ABSENT_MARKER", "DEFAULT_DELIMITER", "FieldCodec"]
