from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterable
from pathlib import Path
from threading import Lock
from typing import Optional

from .core.matching.models import MAX_EXCEEDED, ClusterVerdict, DedupeResult, VerdictStatus


class MatchStore:
    """SQLite-backed store for match sets and verdicts awaiting review."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()
        self._conn = sqlite3.connect(self.path, check_same_thread=False)
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS match_sets (
                field TEXT NOT NULL,
                position INTEGER NOT NULL,
                source TEXT NOT NULL,
                matches TEXT,
                overflow INTEGER NOT NULL DEFAULT 0,
                updated_at TEXT NOT NULL,
                PRIMARY KEY(field, source)
            )
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS verdicts (
                field TEXT NOT NULL,
                position INTEGER NOT NULL,
                source TEXT NOT NULL,
                matches TEXT NOT NULL,
                status TEXT NOT NULL,
                auto_accept INTEGER NOT NULL,
                updated_at TEXT NOT NULL,
                PRIMARY KEY(field, position)
            )
            """
        )
        self._conn.commit()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def save_match_sets(self, field: str, result: DedupeResult) -> int:
        overflow = set(result.overflow)
        rows = [
            (
                field,
                position,
                source,
                None if matches is None else json.dumps(matches),
                1 if source in overflow else 0,
            )
            for position, (source, matches) in enumerate(result.match_sets.items())
        ]
        with self._lock:
            self._conn.execute("DELETE FROM match_sets WHERE field = ?", (field,))
            self._conn.executemany(
                """
                INSERT INTO match_sets(field, position, source, matches, overflow, updated_at)
                VALUES(?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
                """,
                rows,
            )
            self._conn.commit()
        return len(rows)

    def load_match_sets(self, field: str) -> DedupeResult:
        with self._lock:
            cursor = self._conn.execute(
                "SELECT source, matches, overflow FROM match_sets WHERE field = ? ORDER BY position",
                (field,),
            )
            rows = cursor.fetchall()
        result = DedupeResult()
        for source, matches, overflow in rows:
            result.match_sets[source] = None if matches is None else json.loads(matches)
            if overflow:
                result.overflow.append(source)
                result.match_sets[source] = [MAX_EXCEEDED]
        return result

    def save_verdicts(self, field: str, verdicts: Iterable[ClusterVerdict]) -> int:
        rows = [
            (
                field,
                position,
                verdict.source,
                json.dumps(list(verdict.matches)),
                verdict.status.value,
                1 if verdict.auto_accept else 0,
            )
            for position, verdict in enumerate(verdicts)
        ]
        with self._lock:
            self._conn.execute("DELETE FROM verdicts WHERE field = ?", (field,))
            self._conn.executemany(
                """
                INSERT INTO verdicts(field, position, source, matches, status, auto_accept, updated_at)
                VALUES(?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
                """,
                rows,
            )
            self._conn.commit()
        return len(rows)

    def list_verdicts(self, field: str, status: Optional[VerdictStatus] = None) -> list[ClusterVerdict]:
        query = "SELECT source, matches, status, auto_accept FROM verdicts WHERE field = ?"
        params: list[str] = [field]
        if status is not None:
            query += " AND status = ?"
            params.append(status.value)
        query += " ORDER BY position"
        with self._lock:
            cursor = self._conn.execute(query, params)
            rows = cursor.fetchall()
        return [
            ClusterVerdict(
                source=source,
                matches=tuple(json.loads(matches)),
                auto_accept=bool(auto_accept),
                status=VerdictStatus(status_value),
            )
            for source, matches, status_value, auto_accept in rows
        ]

    def clear(self, field: str) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM match_sets WHERE field = ?", (field,))
            self._conn.execute("DELETE FROM verdicts WHERE field = ?", (field,))
            self._conn.commit()
