"""CSV loading utilities."""
from __future__ import annotations

from pathlib import Path
from typing import IO, Any, Dict, Iterable, List, Sequence, Tuple, Union

import pandas as pd

from .models import Person, Studio, StudioPair

Source = Union[Path, str, IO[Any]]


def _read(path: Source) -> pd.DataFrame:
    # Ids stay strings; empty cells stay empty strings instead of NaN.
    return pd.read_csv(path, dtype=str, keep_default_na=False)


def require_columns(df: pd.DataFrame, required: Sequence[str], file_label: str) -> None:
    """Raise ``ValueError`` naming any missing columns."""
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise ValueError(f"Error in {file_label}: missing columns: {', '.join(missing)}")


def load_studios(path: Source) -> List[Studio]:
    """Load studios from ``studios.csv``."""
    df = _read(path)
    require_columns(df, ["id", "name"], "studios.csv")
    return [Studio(id=row["id"].strip(), name=row["name"].strip()) for _, row in df.iterrows()]


def order_people(people: Iterable[Person]) -> List[Person]:
    """Order by studio name then person name, the order the unit builder expects."""
    return sorted(people, key=lambda p: (p.studio_name, p.name, p.id))


def load_people(path: Source, studios: Iterable[Studio] | None = None) -> List[Person]:
    """Load people from ``people.csv``.

    When ``studios`` is provided every ``studio_id`` must exist and the studio
    name is taken from it. The result is ordered for seating.
    """
    df = _read(path)
    require_columns(df, ["id", "name", "studio_id"], "people.csv")
    studio_names: Dict[str, str] | None = None
    if studios is not None:
        studio_names = {s.id: s.name for s in studios}

    people: List[Person] = []
    for _, row in df.iterrows():
        studio_id = row["studio_id"].strip()
        studio_name = row.get("studio_name", "").strip()
        if studio_names is not None:
            if studio_id not in studio_names:
                raise ValueError(f"Unknown studio referenced by {row['name']}: {studio_id}")
            studio_name = studio_names[studio_id]
        people.append(
            Person(
                id=row["id"].strip(),
                name=row["name"].strip(),
                studio_id=studio_id,
                studio_name=studio_name or studio_id,
                role=row.get("role", "").strip(),
            )
        )

    ids = [p.id for p in people]
    if len(ids) != len(set(ids)):
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        raise ValueError(f"Duplicate person ids in people.csv: {', '.join(dupes)}")
    return order_people(people)


def load_pairs(path: Source, studio_ids: set[str] | None = None) -> List[StudioPair]:
    """Load studio pairings.

    If ``studio_ids`` is provided it validates that both studios exist.
    """
    df = _read(path)
    require_columns(df, ["studio1_id", "studio2_id"], "studio_pairs.csv")
    pairs: List[StudioPair] = []
    for _, row in df.iterrows():
        a = row["studio1_id"].strip()
        b = row["studio2_id"].strip()
        if studio_ids is not None and (a not in studio_ids or b not in studio_ids):
            raise ValueError(f"Studio pair references unknown studio: {a}, {b}")
        pairs.append(StudioPair(studio1_id=a, studio2_id=b))
    return pairs


def load_weights(path: Source) -> List[Tuple[float, str]]:
    """Load ``name,weight`` rows for workload balancing."""
    df = _read(path)
    require_columns(df, ["name", "weight"], "weights.csv")
    items: List[Tuple[float, str]] = []
    for _, row in df.iterrows():
        try:
            weight = float(row["weight"])
        except ValueError as exc:
            raise ValueError(f"Invalid weight for {row['name']}: {row['weight']!r}") from exc
        items.append((weight, row["name"].strip()))
    return items


def load_all(people_path: Source, studios_path: Source, pairs_path: Source | None = None):
    """Convenience wrapper returning people, studios and studio pairs."""
    studios = load_studios(studios_path)
    people = load_people(people_path, studios)
    pairs: List[StudioPair] = []
    if pairs_path is not None:
        pairs = load_pairs(pairs_path, {s.id for s in studios})
    return people, studios, pairs
