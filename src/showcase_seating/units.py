"""
Phase one: decide who sits together.

People arrive ordered by studio name then person name. Each studio (or
coordination group of paired studios) becomes one seating unit when it fits
at a table. Larger studios are cut into ``ceil(n / capacity)`` fragments whose
sizes differ by at most one, so 12 people at tables of 10 become 6 and 6
rather than 10 and 2. A pairing too large for one table falls back to its
studios, each kept whole when it fits. Small leftover units are then merged
to fill tables.

The opt-in packed mode fills tables to capacity instead and accepts studios
spreading over several tables.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import networkx as nx

from .errors import ConfigurationError
from .models import Person, SeatingUnit, StudioPair

logger = logging.getLogger(__name__)


# ----------------------------- grouping -----------------------------
def coordination_groups(pairs: Iterable[StudioPair], isolated: Iterable[str] = ()) -> Dict[str, str]:
    """Map each paired studio id to the key of its coordination group.

    Pairing is transitive: if A pairs with B and B with C all three share a
    group. The key joins the sorted studio ids with ``+``. Isolated studios
    never join a group.
    """
    isolated = set(isolated)
    graph = nx.Graph()
    for pair in pairs:
        if pair.studio1_id in isolated or pair.studio2_id in isolated:
            continue
        if pair.studio1_id == pair.studio2_id:
            continue
        graph.add_edge(pair.studio1_id, pair.studio2_id)

    keys: Dict[str, str] = {}
    for component in nx.connected_components(graph):
        key = "+".join(sorted(component))
        for studio_id in component:
            keys[studio_id] = key
    return keys


def gather_groups(
    people: Sequence[Person],
    pairs: Iterable[StudioPair] = (),
    isolated: Iterable[str] = (),
) -> List[Tuple[str, List[Person]]]:
    """Group people by affiliation key, preserving first-seen order."""
    keys = coordination_groups(pairs, isolated)
    groups: Dict[str, List[Person]] = {}
    for person in people:
        key = keys.get(person.studio_id, person.studio_id)
        groups.setdefault(key, []).append(person)
    return list(groups.items())


def _studio_ids(people: Sequence[Person]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(p.studio_id for p in people))


def split_sizes(count: int, capacity: int) -> List[int]:
    """Balanced fragment sizes for ``count`` people, larger fragments first."""
    pieces = -(-count // capacity)
    base, extra = divmod(count, pieces)
    return [base + 1] * extra + [base] * (pieces - extra)


def _whole(key: str, members: Sequence[Person]) -> SeatingUnit:
    return SeatingUnit(people=tuple(members), affiliation_ids=_studio_ids(members), origin=key)


def _units_for_group(key: str, members: List[Person], capacity: int) -> List[SeatingUnit]:
    if len(members) <= capacity:
        return [_whole(key, members)]

    studio_ids = _studio_ids(members)
    if len(studio_ids) == 1:
        return _balanced_split(key, members, capacity)

    # Paired studios overflow one table: every studio that fits stays whole,
    # partners share a unit only where room allows.
    units: List[SeatingUnit] = []
    whole: List[SeatingUnit] = []
    for studio_id in studio_ids:
        own = [p for p in members if p.studio_id == studio_id]
        if len(own) > capacity:
            units.extend(_balanced_split(studio_id, own, capacity))
        else:
            whole.append(_whole(studio_id, own))
    for packed in _fill_bins(whole, capacity, limit=None):
        units.append(replace(packed, origin=key, is_merged=False) if packed.is_merged else packed)
    return units


def _balanced_split(key: str, members: List[Person], capacity: int) -> List[SeatingUnit]:
    units: List[SeatingUnit] = []
    start = 0
    for size in split_sizes(len(members), capacity):
        chunk = members[start:start + size]
        start += size
        units.append(
            SeatingUnit(
                people=tuple(chunk),
                affiliation_ids=_studio_ids(chunk),
                origin=key,
                is_split_fragment=True,
            )
        )
    logger.debug("Split %s (%d people) into fragments %s", key, len(members), [u.size for u in units])
    return units


def _packed_units_for_group(key: str, members: List[Person], capacity: int) -> List[SeatingUnit]:
    """Fill units to capacity in input order; only the last one runs short."""
    if len(members) <= capacity:
        return [_whole(key, members)]
    return [
        SeatingUnit(
            people=tuple(chunk),
            affiliation_ids=_studio_ids(chunk),
            origin=key,
            is_split_fragment=True,
        )
        for chunk in (members[i:i + capacity] for i in range(0, len(members), capacity))
    ]


STRAGGLER_SIZE = 2


def absorb_stragglers(
    units: Sequence[SeatingUnit],
    capacity: int,
    isolated: Iterable[str] = (),
) -> List[SeatingUnit]:
    """Fold units of one or two people into another unit with room.

    A unit from the same origin is preferred, then the smallest unit that
    fits. Isolated units neither move nor receive anyone. Stragglers with no
    unit to join are left as they are.
    """
    isolated = set(isolated)
    pool = list(units)

    def movable(unit: SeatingUnit) -> bool:
        return not isolated.intersection(unit.affiliation_ids)

    changed = True
    while changed:
        changed = False
        for i, small in enumerate(pool):
            if small.size > STRAGGLER_SIZE or not movable(small):
                continue
            candidates = [
                (other.origin != small.origin, other.size, j)
                for j, other in enumerate(pool)
                if j != i and movable(other) and other.size + small.size <= capacity
            ]
            if not candidates:
                continue
            _, _, j = min(candidates)
            target = pool[j]
            pool[j] = replace(
                combine([target, small]),
                origin=target.origin,
                is_split_fragment=target.is_split_fragment or small.is_split_fragment,
            )
            del pool[i]
            changed = True
            break
    return pool


# ----------------------------- merging -----------------------------
def combine(units: Sequence[SeatingUnit]) -> SeatingUnit:
    """Fold several small units into one merged unit."""
    if len(units) == 1:
        return units[0]
    people = tuple(p for u in units for p in u.people)
    affiliation_ids = tuple(dict.fromkeys(aid for u in units for aid in u.affiliation_ids))
    return SeatingUnit(
        people=people,
        affiliation_ids=affiliation_ids,
        origin="|".join(u.origin for u in units),
        is_merged=True,
    )


def _fill_bins(units: Sequence[SeatingUnit], capacity: int, limit: Optional[int]) -> List[SeatingUnit]:
    ordered = sorted(units, key=lambda u: (-u.size, u.index))
    used = [False] * len(ordered)
    merged: List[SeatingUnit] = []
    for i, seed in enumerate(ordered):
        if used[i]:
            continue
        used[i] = True
        members = [seed]
        room = capacity - seed.size
        for j in range(i + 1, len(ordered)):
            if limit is not None and len(members) >= limit:
                break
            if used[j] or ordered[j].size > room:
                continue
            used[j] = True
            members.append(ordered[j])
            room -= ordered[j].size
        merged.append(combine(members))
    return merged


def merge_first_fit(units: Sequence[SeatingUnit], capacity: int) -> List[SeatingUnit]:
    """Descending-size first fit: each unmerged unit absorbs later ones that still fit."""
    return _fill_bins(units, capacity, limit=None)


def merge_pairwise(units: Sequence[SeatingUnit], capacity: int) -> List[SeatingUnit]:
    """Like ``merge_first_fit`` but never combines more than two units."""
    return _fill_bins(units, capacity, limit=2)


def merge_none(units: Sequence[SeatingUnit], capacity: int) -> List[SeatingUnit]:
    return list(units)


MERGE_STRATEGIES: Dict[str, Callable[[Sequence[SeatingUnit], int], List[SeatingUnit]]] = {
    "first_fit": merge_first_fit,
    "pairwise": merge_pairwise,
    "none": merge_none,
}

SPLIT_MODES = ("balanced", "packed")


# ----------------------------- public API -----------------------------
def build_units(
    people: Sequence[Person],
    capacity: int,
    *,
    pairs: Iterable[StudioPair] = (),
    isolated: Iterable[str] = (),
    merge: str = "first_fit",
    split: str = "balanced",
) -> List[SeatingUnit]:
    """Turn an ordered list of people into seating units no larger than ``capacity``.

    The input order is trusted as given. Units come back with ``index`` set to
    their position, which the placer uses as the final tie breaker.

    ``split="balanced"`` cuts oversized studios into near-equal fragments and
    never splits a studio that fits at one table. ``split="packed"`` fills
    units to capacity in order instead, then folds units of one or two people
    into others; studios may then spread over several tables.
    """
    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
        raise ConfigurationError(f"Table capacity must be a positive integer, got {capacity!r}")
    if merge not in MERGE_STRATEGIES:
        raise ConfigurationError(
            f"Unknown merge strategy {merge!r}; expected one of {', '.join(sorted(MERGE_STRATEGIES))}"
        )
    if split not in SPLIT_MODES:
        raise ConfigurationError(f"Unknown split mode {split!r}; expected one of {', '.join(SPLIT_MODES)}")
    if not people:
        return []

    isolated = set(isolated)
    units: List[SeatingUnit] = []
    for key, members in gather_groups(people, pairs, isolated):
        if split == "packed":
            units.extend(_packed_units_for_group(key, members, capacity))
        else:
            units.extend(_units_for_group(key, members, capacity))
    if split == "packed":
        units = absorb_stragglers(units, capacity, isolated)
    units = [replace(u, index=i) for i, u in enumerate(units)]

    def mergeable(unit: SeatingUnit) -> bool:
        return (
            not unit.is_split_fragment
            and unit.size < capacity
            and not isolated.intersection(unit.affiliation_ids)
        )

    kept = [u for u in units if not mergeable(u)]
    small = [u for u in units if mergeable(u)]
    merged = MERGE_STRATEGIES[merge](small, capacity)

    result = [replace(u, index=i) for i, u in enumerate(kept + merged)]
    logger.debug(
        "Built %d units from %d people (capacity %d, %d merged)",
        len(result), len(people), capacity, sum(1 for u in result if u.is_merged),
    )
    return result
