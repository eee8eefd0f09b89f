"""SQLite persistence for computed seating.

Each scope (``"event"`` or an option name such as ``"dinner"``) owns its
tables and assignments. ``replace`` deletes and rewrites a scope inside one
transaction, so readers see either the previous seating or the new one.
"""
from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple

from .models import AssignmentResult

logger = logging.getLogger(__name__)

EVENT_SCOPE = "event"


@dataclass
class SqliteAssignmentStore:
    path: Path

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        with sqlite3.connect(self.path) as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS seating_tables (
                    scope TEXT NOT NULL,
                    number INTEGER NOT NULL,
                    row INTEGER NOT NULL,
                    col INTEGER NOT NULL,
                    capacity INTEGER NOT NULL,
                    PRIMARY KEY (scope, number),
                    UNIQUE (scope, row, col)
                );
                CREATE TABLE IF NOT EXISTS seating_assignments (
                    scope TEXT NOT NULL,
                    person_id TEXT NOT NULL,
                    table_number INTEGER NOT NULL,
                    PRIMARY KEY (scope, person_id)
                );
                """
            )

    def replace(self, scope: str, result: AssignmentResult) -> None:
        """Atomically swap the stored seating for ``scope`` with ``result``."""
        table_rows = [(scope, t.number, t.row, t.col, t.capacity) for t in result.tables]
        assignment_rows = [(scope, pid, number) for pid, number in sorted(result.assignments.items())]
        with sqlite3.connect(self.path) as conn:
            conn.execute("DELETE FROM seating_assignments WHERE scope = ?", (scope,))
            conn.execute("DELETE FROM seating_tables WHERE scope = ?", (scope,))
            conn.executemany(
                "INSERT INTO seating_tables (scope, number, row, col, capacity) VALUES (?, ?, ?, ?, ?)",
                table_rows,
            )
            conn.executemany(
                "INSERT INTO seating_assignments (scope, person_id, table_number) VALUES (?, ?, ?)",
                assignment_rows,
            )
        logger.info("Stored %d tables and %d assignments for scope %s", len(table_rows), len(assignment_rows), scope)

    def tables(self, scope: str) -> List[Tuple[int, int, int, int]]:
        """Return ``(number, row, col, capacity)`` rows ordered by number."""
        with sqlite3.connect(self.path) as conn:
            rows = conn.execute(
                "SELECT number, row, col, capacity FROM seating_tables WHERE scope = ? ORDER BY number",
                (scope,),
            ).fetchall()
        return [tuple(r) for r in rows]

    def assignments(self, scope: str) -> Dict[str, int]:
        with sqlite3.connect(self.path) as conn:
            rows = conn.execute(
                "SELECT person_id, table_number FROM seating_assignments WHERE scope = ? ORDER BY person_id",
                (scope,),
            ).fetchall()
        return {str(pid): int(number) for pid, number in rows}
