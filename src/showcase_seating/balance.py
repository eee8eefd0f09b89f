"""
Greedy load balancing.

``select_bucket`` is the one selection rule shared by table placement and
workload distribution: among the buckets that satisfy a constraint, take the
one with the smallest load key, breaking ties by position. Placement passes
"negative remaining seats" as the load so the emptiest table wins.

``distribute`` is the longest-processing-time-first balancer. Because every
item goes to the currently lightest bucket, the final spread between the
heaviest and lightest bucket never exceeds the heaviest single item.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar

from .errors import ConfigurationError

B = TypeVar("B")


def select_bucket(
    buckets: Sequence[B],
    fits: Callable[[B], bool],
    load: Callable[[B], Any],
) -> Optional[B]:
    """Return the least loaded bucket for which ``fits`` holds, or ``None``."""
    best: Optional[B] = None
    best_key: Any = None
    for position, bucket in enumerate(buckets):
        if not fits(bucket):
            continue
        key = (load(bucket), position)
        if best_key is None or key < best_key:
            best, best_key = bucket, key
    return best


@dataclass
class Bucket:
    """Accumulates items and their running weight total."""

    index: int
    items: List[Any] = field(default_factory=list)
    total: float = 0

    def add(self, weight: float, payload: Any) -> None:
        self.items.append(payload)
        self.total += weight


@dataclass(frozen=True)
class BalanceReport:
    """Spread of bucket loads against the greedy bound."""

    loads: Tuple[float, ...]
    minimum: float
    maximum: float
    spread: float
    bound: float

    @property
    def within_bound(self) -> bool:
        return self.spread <= self.bound


def distribute(weighted_items: Iterable[Tuple[float, Any]], bucket_count: int) -> List[Bucket]:
    """Spread ``(weight, payload)`` items over ``bucket_count`` buckets.

    Items are taken heaviest first (stable for equal weights) and each goes to
    the bucket with the smallest running total, lowest index on ties.
    """
    if bucket_count <= 0:
        raise ConfigurationError(f"bucket_count must be positive, got {bucket_count}")
    items = list(weighted_items)
    for weight, payload in items:
        if weight < 0:
            raise ConfigurationError(f"Negative weight {weight} for {payload!r}")

    buckets = [Bucket(index=i) for i in range(bucket_count)]
    for weight, payload in sorted(items, key=lambda item: -item[0]):
        target = select_bucket(buckets, lambda b: True, lambda b: b.total)
        target.add(weight, payload)
    return buckets


def balance_report(loads: Sequence[float], heaviest: float) -> BalanceReport:
    """Summarize loads; ``heaviest`` is the largest single item weight."""
    values = tuple(loads)
    if not values:
        return BalanceReport(loads=(), minimum=0, maximum=0, spread=0, bound=heaviest)
    lo, hi = min(values), max(values)
    return BalanceReport(loads=values, minimum=lo, maximum=hi, spread=hi - lo, bound=heaviest)


def report_buckets(buckets: Sequence[Bucket], weights: Iterable[float]) -> BalanceReport:
    weights = list(weights)
    return balance_report([b.total for b in buckets], max(weights) if weights else 0)
