"""Data models for showcase seating."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple
import math


def parse_pipe_list(value: object) -> List[str]:
    """Split a pipe separated string into a list.

    Empty values such as ``""`` or ``None`` return an empty list.
    ``pandas`` often provides ``float('nan')`` for missing values which is
    also treated as empty.
    """
    if value is None:
        return []
    if isinstance(value, float) and math.isnan(value):
        return []
    text = str(value).strip()
    if not text or text.lower() == "nan":
        return []
    return [part.strip() for part in text.split("|") if part.strip()]


@dataclass(frozen=True)
class Studio:
    """An affiliation that people attend the event with."""

    id: str
    name: str


@dataclass(frozen=True)
class Person:
    """Representation of an event attendee."""

    id: str
    name: str
    studio_id: str
    studio_name: str = ""
    role: str = ""


@dataclass(frozen=True)
class StudioPair:
    """Two studios that asked to be seated together."""

    studio1_id: str
    studio2_id: str


@dataclass(frozen=True)
class SeatingUnit:
    """A group of people moved together as one placement decision.

    ``affiliation_ids`` is always populated: the constructor rejects an empty
    unit so downstream code never has to guess which studios a unit holds.
    """

    people: Tuple[Person, ...]
    affiliation_ids: Tuple[str, ...]
    origin: str
    index: int = 0
    is_split_fragment: bool = False
    is_merged: bool = False

    def __post_init__(self) -> None:
        if not self.people:
            raise ValueError("SeatingUnit requires at least one person")
        if not self.affiliation_ids:
            raise ValueError("SeatingUnit requires at least one affiliation id")

    @property
    def size(self) -> int:
        return len(self.people)

    @property
    def primary_affiliation(self) -> str:
        return self.affiliation_ids[0]


@dataclass
class Table:
    """A table on the room grid and the units seated at it."""

    id: int
    capacity: int
    number: int = 0
    row: int = 0
    col: int = 0
    units: List[SeatingUnit] = field(default_factory=list)

    @property
    def size(self) -> int:
        return sum(u.size for u in self.units)

    @property
    def remaining(self) -> int:
        return self.capacity - self.size

    @property
    def affiliation_ids(self) -> List[str]:
        """Affiliations present at the table, in order of arrival."""
        seen: Dict[str, None] = {}
        for unit in self.units:
            for aid in unit.affiliation_ids:
                seen.setdefault(aid, None)
        return list(seen)

    @property
    def people(self) -> List[Person]:
        return [p for u in self.units for p in u.people]

    def seat(self, unit: SeatingUnit) -> None:
        self.units.append(unit)


@dataclass
class AssignmentResult:
    """Final table set plus the person to table mapping and diagnostics."""

    tables: List[Table] = field(default_factory=list)
    assignments: Dict[str, int] = field(default_factory=dict)
    fragmented: Dict[str, List[int]] = field(default_factory=dict)

    def table_for(self, person_id: str) -> int | None:
        return self.assignments.get(person_id)

    def people_at(self, number: int) -> List[Person]:
        for table in self.tables:
            if table.number == number:
                return table.people
        return []
