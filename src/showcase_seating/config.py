"""Seating run configuration."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Optional, Tuple

import yaml

from .errors import ConfigurationError
from .placer import MAX_COLS
from .units import MERGE_STRATEGIES, SPLIT_MODES

DEFAULT_TABLE_SIZE = 10


@dataclass(frozen=True)
class SeatingConfig:
    """Options for one seating scope (the main event or a single option such as a dinner).

    ``table_size`` is the option's own size; ``event_table_size`` is the
    event-wide default. Whichever is positive first wins, else 10.
    """

    table_size: Optional[int] = None
    event_table_size: Optional[int] = None
    max_cols: int = MAX_COLS
    merge: str = "first_fit"
    split: str = "balanced"
    isolated_studios: Tuple[str, ...] = field(default_factory=tuple)
    table_count_hint: Optional[int] = None

    def resolved_capacity(self) -> int:
        for size in (self.table_size, self.event_table_size):
            if size is not None and size > 0:
                return size
        return DEFAULT_TABLE_SIZE

    def with_overrides(self, **overrides: Any) -> "SeatingConfig":
        """Return a copy with every non-``None`` override applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        if "isolated_studios" in values:
            values["isolated_studios"] = tuple(str(s) for s in values["isolated_studios"])
        return replace(self, **values)


def _optional_int(payload: dict[str, Any], key: str) -> Optional[int]:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{key} must be an integer, got {value!r}")
    return value


def parse_config(payload: Any) -> SeatingConfig:
    if payload is None:
        return SeatingConfig()
    if not isinstance(payload, dict):
        raise ConfigurationError("Seating config must be a mapping")

    merge = str(payload.get("merge") or "first_fit").strip()
    if merge not in MERGE_STRATEGIES:
        raise ConfigurationError(f"Unknown merge strategy {merge!r}")

    split = str(payload.get("split") or "balanced").strip()
    if split not in SPLIT_MODES:
        raise ConfigurationError(f"Unknown split mode {split!r}")

    isolated = payload.get("isolated_studios") or []
    if not isinstance(isolated, list):
        raise ConfigurationError("isolated_studios must be a list")

    max_cols = _optional_int(payload, "max_cols")
    if max_cols is not None and max_cols <= 0:
        raise ConfigurationError("max_cols must be positive")

    return SeatingConfig(
        table_size=_optional_int(payload, "table_size"),
        event_table_size=_optional_int(payload, "event_table_size"),
        max_cols=max_cols if max_cols is not None else MAX_COLS,
        merge=merge,
        split=split,
        isolated_studios=tuple(str(s) for s in isolated),
        table_count_hint=_optional_int(payload, "table_count_hint"),
    )


def load_config(path: Path | str) -> SeatingConfig:
    """Load a YAML config file."""
    try:
        payload = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    return parse_config(payload)
