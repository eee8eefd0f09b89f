"""
Studio aware table seating.

Seating runs in two phases. ``build_units`` decides who sits together,
``place`` decides which table each group goes to and where that table sits on
the room grid. The model then checks that nobody was lost or seated twice and
reports studios spread over several tables.
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence

from .balance import BalanceReport, balance_report
from .config import SeatingConfig
from .errors import DataIntegrityError
from .models import AssignmentResult, Person, SeatingUnit, StudioPair, Table
from .placer import MAX_COLS, find_fragmented, place
from .units import build_units

logger = logging.getLogger(__name__)


# ----------------------------- report helpers -----------------------------
def compute_table_stats(table: Table, studio_names: Dict[str, str] | None = None) -> Dict[str, object]:
    """Occupancy and composition of a single table."""
    names = studio_names or {}
    studios = [names.get(aid, aid) for aid in table.affiliation_ids]
    return {
        "table": table.number,
        "row": table.row,
        "col": table.col,
        "seated": table.size,
        "capacity": table.capacity,
        "free": table.remaining,
        "units": len(table.units),
        "split": sum(1 for u in table.units if u.is_split_fragment),
        "merged": sum(1 for u in table.units if u.is_merged),
        "studios": "|".join(studios),
    }


def occupancy_report(tables: Sequence[Table]) -> BalanceReport:
    """Spread of people per table, bounded by the largest unit seated."""
    heaviest = max((u.size for t in tables for u in t.units), default=0)
    return balance_report([t.size for t in tables], heaviest)


# ----------------------------- model -----------------------------
class SeatingModel:
    """Greedy two phase seating solver with studio awareness."""

    def __init__(
        self,
        capacity: int = 10,
        merge: str = "first_fit",
        isolated: Iterable[str] = (),
        split: str = "balanced",
        max_cols: int = MAX_COLS,
        table_count_hint: Optional[int] = None,
    ) -> None:
        self.capacity = capacity
        self.merge = merge
        self.split = split
        self.isolated = tuple(isolated)
        self.max_cols = max_cols
        self.table_count_hint = table_count_hint
        # Inputs
        self.people: List[Person] = []
        self.pairs: List[StudioPair] = []
        # Last run
        self.units: List[SeatingUnit] = []

    @classmethod
    def from_config(cls, config: SeatingConfig) -> "SeatingModel":
        return cls(
            capacity=config.resolved_capacity(),
            merge=config.merge,
            isolated=config.isolated_studios,
            split=config.split,
            max_cols=config.max_cols,
            table_count_hint=config.table_count_hint,
        )

    def build(self, people: Sequence[Person], pairs: Iterable[StudioPair] = ()) -> None:
        """Store model data. ``people`` must already be ordered by studio name then name."""
        self.people = list(people)
        self.pairs = list(pairs)

    # ----------------------------- internals -----------------------------
    def _check_result(self, tables: Sequence[Table]) -> None:
        """Every input person seated exactly once and no table over capacity."""
        for table in tables:
            if table.size > table.capacity:
                raise DataIntegrityError(
                    f"Table {table.number} seats {table.size} people but holds {table.capacity}"
                )
        seated = Counter(p.id for t in tables for p in t.people)
        expected = Counter(p.id for p in self.people)
        if seated != expected:
            missing = sorted((expected - seated).keys())
            extra = sorted((seated - expected).keys())
            raise DataIntegrityError(f"Seating lost people {missing} or duplicated {extra}")

    # ----------------------------- main solve -----------------------------
    def solve(self) -> AssignmentResult:
        """Assign people to tables. Raises before returning anything partial."""
        self.units = build_units(
            self.people,
            self.capacity,
            pairs=self.pairs,
            isolated=self.isolated,
            merge=self.merge,
            split=self.split,
        )
        tables = place(
            self.units,
            self.capacity,
            self.table_count_hint,
            isolated=self.isolated,
            max_cols=self.max_cols,
        )
        self._check_result(tables)
        fragmented = find_fragmented(tables)
        for studio_id, numbers in fragmented.items():
            logger.info("Studio %s split across tables %s", studio_id, numbers)

        assignments = {p.id: t.number for t in tables for p in t.people}
        return AssignmentResult(tables=list(tables), assignments=assignments, fragmented=fragmented)
