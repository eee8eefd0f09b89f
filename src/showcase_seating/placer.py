"""
Phase two: decide where units sit.

Units are placed largest first. A split fragment first looks for a table that
already hosts its studio; every other unit goes to the open table with the
most free seats that shares no studio with it; failing both a new table is
opened. Tables are then laid out on a grid so that tables holding fragments
of the same studio sit side by side, and numbered by position.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

import networkx as nx

from .balance import select_bucket
from .errors import ConfigurationError, DataIntegrityError
from .models import SeatingUnit, Table

logger = logging.getLogger(__name__)

MAX_COLS = 8


# ----------------------------- table choice -----------------------------
def _compatible(table: Table, unit: SeatingUnit, isolated: Set[str]) -> bool:
    """Isolated studios only share a table with themselves."""
    if not table.units or not isolated:
        return True
    present = set(table.affiliation_ids)
    ids = set(unit.affiliation_ids)
    if isolated & ids or isolated & present:
        return present == ids
    return True


def choose_table(tables: Sequence[Table], unit: SeatingUnit, isolated: Set[str] = frozenset()) -> Optional[Table]:
    """Pick an open table for ``unit`` or return ``None`` when a new one is needed."""
    ids = set(unit.affiliation_ids)

    if unit.is_split_fragment:
        sibling = select_bucket(
            tables,
            lambda t: t.remaining >= unit.size
            and bool(ids.intersection(t.affiliation_ids))
            and _compatible(t, unit, isolated),
            lambda t: t.remaining,
        )
        if sibling is not None:
            return sibling

    return select_bucket(
        tables,
        lambda t: t.remaining >= unit.size
        and not ids.intersection(t.affiliation_ids)
        and _compatible(t, unit, isolated),
        lambda t: -t.remaining,
    )


def placement_order(units: Iterable[SeatingUnit]) -> List[SeatingUnit]:
    return sorted(units, key=lambda u: (-u.size, u.primary_affiliation, u.index))


# ----------------------------- grid layout -----------------------------
def table_clusters(tables: Sequence[Table]) -> List[List[Table]]:
    """Group tables that hold fragments of the same split studio."""
    graph = nx.Graph()
    owners: Dict[str, Dict[int, None]] = {}
    for table in tables:
        graph.add_node(table.id)
        for unit in table.units:
            if unit.is_split_fragment:
                owners.setdefault(unit.origin, {})[table.id] = None
    for table_ids in owners.values():
        nx.add_path(graph, list(table_ids))

    by_id = {t.id: t for t in tables}
    clusters = sorted(sorted(c) for c in nx.connected_components(graph))
    return [[by_id[i] for i in cluster] for cluster in clusters]


def _find_contiguous(size: int, used: Set[Tuple[int, int]], max_cols: int) -> Optional[Tuple[int, int]]:
    if size > max_cols:
        return None
    last_row = max((r for r, _ in used), default=-1)
    for row in range(last_row + 2):
        for col in range(max_cols - size + 1):
            if all((row, col + i) not in used for i in range(size)):
                return row, col
    return None


def _next_free(used: Set[Tuple[int, int]], max_cols: int) -> Tuple[int, int]:
    row = 0
    while True:
        for col in range(max_cols):
            if (row, col) not in used:
                return row, col
        row += 1


def layout_grid(tables: Sequence[Table], max_cols: int = MAX_COLS) -> List[Table]:
    """Assign row/col to each table, then number tables 1..n by position."""
    if max_cols <= 0:
        raise ConfigurationError(f"max_cols must be positive, got {max_cols}")
    used: Set[Tuple[int, int]] = set()
    for cluster in table_clusters(tables):
        spot = _find_contiguous(len(cluster), used, max_cols)
        for offset, table in enumerate(cluster):
            if spot is not None:
                table.row, table.col = spot[0], spot[1] + offset
            else:
                table.row, table.col = _next_free(used, max_cols)
            used.add((table.row, table.col))

    ordered = sorted(tables, key=lambda t: (t.row, t.col))
    for number, table in enumerate(ordered, start=1):
        table.number = number
    return ordered


# ----------------------------- diagnostics -----------------------------
def find_fragmented(tables: Sequence[Table]) -> Dict[str, List[int]]:
    """Return studios seated at more than one table, with their table numbers.

    Split fragments are expected to spread. Any other studio turning up at two
    tables means the unit builder and placer disagree.
    """
    where: Dict[str, Dict[int, None]] = {}
    unsplit: Set[str] = set()
    for table in tables:
        for unit in table.units:
            for aid in unit.affiliation_ids:
                where.setdefault(aid, {})[table.number] = None
                if not unit.is_split_fragment:
                    unsplit.add(aid)

    fragmented = {aid: sorted(numbers) for aid, numbers in sorted(where.items()) if len(numbers) > 1}
    broken = [aid for aid in fragmented if aid in unsplit]
    if broken:
        raise DataIntegrityError(
            "Unsplit studios seated at more than one table: "
            + ", ".join(f"{aid} -> {fragmented[aid]}" for aid in broken)
        )
    return fragmented


# ----------------------------- public API -----------------------------
def place(
    units: Sequence[SeatingUnit],
    capacity: int,
    table_count_hint: Optional[int] = None,
    *,
    isolated: Iterable[str] = (),
    max_cols: int = MAX_COLS,
) -> List[Table]:
    """Seat units at tables of ``capacity`` and lay the tables out on the grid.

    ``table_count_hint`` pre-opens that many empty tables; more are opened on
    demand and tables left empty are dropped.
    """
    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
        raise ConfigurationError(f"Table capacity must be a positive integer, got {capacity!r}")
    for unit in units:
        if unit.size > capacity:
            raise DataIntegrityError(
                f"Unit {unit.origin} has {unit.size} people but tables seat {capacity}"
            )

    total = sum(u.size for u in units)
    if table_count_hint is not None:
        needed = -(-total // capacity)
        if table_count_hint < 0 or table_count_hint < needed:
            raise ConfigurationError(
                f"Table count hint {table_count_hint} cannot seat {total} people at {capacity} per table"
            )

    isolated = set(isolated)
    tables = [Table(id=i + 1, capacity=capacity) for i in range(table_count_hint or 0)]
    for unit in placement_order(units):
        table = choose_table(tables, unit, isolated)
        if table is None:
            table = Table(id=len(tables) + 1, capacity=capacity)
            tables.append(table)
        table.seat(unit)

    empty = [t for t in tables if not t.units]
    if empty:
        logger.debug("Dropping %d empty pre-opened tables", len(empty))
    tables = [t for t in tables if t.units]

    laid_out = layout_grid(tables, max_cols)
    logger.info("Placed %d units (%d people) at %d tables", len(units), total, len(laid_out))
    return laid_out
