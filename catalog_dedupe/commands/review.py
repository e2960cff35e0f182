from __future__ import annotations

import json

from ..core.matching import MAX_EXCEEDED, VerdictStatus
from ..store import MatchStore


def run(store: MatchStore, *, field: str, json_output: bool = False) -> None:
    pending = store.list_verdicts(field, status=VerdictStatus.REVIEW)
    if not pending:
        print(f"No '{field}' clusters awaiting review.")
        return
    if json_output:
        print(json.dumps([verdict.to_dict() for verdict in pending], indent=2, sort_keys=True))
        return
    total = len(pending)
    for idx, verdict in enumerate(pending, 1):
        print(f"\n[{idx}/{total}] {verdict.source}")
        if list(verdict.matches) == [MAX_EXCEEDED]:
            print("    Too many candidates; matches were discarded")
            continue
        for match in verdict.matches:
            print(f"    ~ {match}")
