"""Command line interface for showcase seating."""
from __future__ import annotations

import argparse
import csv
import logging
from pathlib import Path
from typing import Sequence

from .balance import distribute, report_buckets
from .config import SeatingConfig, load_config
from .csv_loader import load_all, load_weights
from .errors import SeatingError
from .logging_utils import configure_logging
from .models import parse_pipe_list
from .solver import SeatingModel, compute_table_stats, occupancy_report
from .store import EVENT_SCOPE, SqliteAssignmentStore

logger = logging.getLogger(__name__)

REPORT_FIELDS = ["table", "row", "col", "seated", "capacity", "free", "units", "split", "merged", "studios"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Studio aware table seating")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument("--log-file", type=Path, help="Also write log records to this file.")
    sub = parser.add_subparsers(dest="command", required=True)

    assign = sub.add_parser("assign", help="Seat people at tables.")
    assign.add_argument("--people", required=True, help="Path to people.csv")
    assign.add_argument("--studios", required=True, help="Path to studios.csv")
    assign.add_argument("--pairs", help="Path to studio_pairs.csv")
    assign.add_argument("--config", type=Path, help="YAML seating config.")
    assign.add_argument("--table-size", type=int, help="Seats per table for this scope.")
    assign.add_argument("--event-table-size", type=int,
                        help="Event wide table size used when --table-size is not set.")
    assign.add_argument("--merge", choices=["first_fit", "pairwise", "none"],
                        help="How small studios are combined to fill tables.")
    assign.add_argument("--split", choices=["balanced", "packed"],
                        help="balanced keeps studios whole where they fit; packed fills tables to capacity.")
    assign.add_argument("--isolate", help="Pipe separated studio ids that never share a table, e.g. '0'.")
    assign.add_argument("--table-count", type=int, help="Pre-open this many tables.")
    assign.add_argument("--max-cols", type=int, help="Grid width in tables.")
    assign.add_argument("--db", type=Path, help="SQLite file to store the seating in.")
    assign.add_argument("--scope", default=EVENT_SCOPE, help="Seating scope stored in --db (default: event).")
    assign.add_argument("--out-assignments", type=Path,
                        help="Write assignments CSV: person_id,person,studio,table.")
    assign.add_argument("--out-report", type=Path,
                        help="Write per-table report CSV.")
    assign.add_argument("--out-map", type=Path, help="Write an HTML map of the table grid.")

    balance = sub.add_parser("balance", help="Spread weighted items over a fixed number of buckets.")
    balance.add_argument("--weights", required=True, help="CSV with name,weight columns.")
    balance.add_argument("--buckets", type=int, required=True, help="Number of buckets, e.g. judges.")
    balance.add_argument("--out", type=Path, help="Write bucket,name,weight CSV.")
    return parser


def _resolve_config(args: argparse.Namespace) -> SeatingConfig:
    config = load_config(args.config) if args.config else SeatingConfig()
    return config.with_overrides(
        table_size=args.table_size,
        event_table_size=args.event_table_size,
        merge=args.merge,
        split=args.split,
        isolated_studios=parse_pipe_list(args.isolate) if args.isolate else None,
        table_count_hint=args.table_count,
        max_cols=args.max_cols,
    )


def run_assign(args: argparse.Namespace) -> None:
    config = _resolve_config(args)
    people, studios, pairs = load_all(args.people, args.studios, args.pairs)
    studio_names = {s.id: s.name for s in studios}

    model = SeatingModel.from_config(config)
    model.build(people, pairs)
    result = model.solve()

    if args.db:
        SqliteAssignmentStore(args.db).replace(args.scope, result)

    # Print simple assignments
    for person in people:
        print(f"{person.name},{result.assignments[person.id]}")

    # Optional outputs
    if args.out_assignments:
        args.out_assignments.parent.mkdir(parents=True, exist_ok=True)
        with args.out_assignments.open("w", newline="") as f:
            w = csv.writer(f)
            w.writerow(["person_id", "person", "studio", "table"])
            for table in result.tables:
                for person in table.people:
                    w.writerow([person.id, person.name, studio_names.get(person.studio_id, person.studio_id),
                                table.number])

    stats = [compute_table_stats(t, studio_names) for t in result.tables]

    # Print a compact table summary
    for s in stats:
        print(f"[REPORT] table={s['table']} pos=({s['row']},{s['col']}) seated={s['seated']}/{s['capacity']} "
              f"split={s['split']} merged={s['merged']} studios={s['studios']}")
    for studio_id, numbers in result.fragmented.items():
        print(f"[SPLIT] {studio_names.get(studio_id, studio_id)} tables={','.join(str(n) for n in numbers)}")
    occupancy = occupancy_report(result.tables)
    print(f"[BALANCE] min={occupancy.minimum} max={occupancy.maximum} spread={occupancy.spread}")

    if args.out_report:
        args.out_report.parent.mkdir(parents=True, exist_ok=True)
        with args.out_report.open("w", newline="") as f:
            w = csv.DictWriter(f, fieldnames=REPORT_FIELDS)
            w.writeheader()
            for s in stats:
                w.writerow(s)

    if args.out_map:
        from .grid_map import generate_grid_map

        args.out_map.parent.mkdir(parents=True, exist_ok=True)
        args.out_map.write_text(generate_grid_map(result, studio_names), encoding="utf-8")


def run_balance(args: argparse.Namespace) -> None:
    items = load_weights(args.weights)
    buckets = distribute([(weight, (name, weight)) for weight, name in items], args.buckets)
    report = report_buckets(buckets, [weight for weight, _ in items])

    for bucket in buckets:
        print(f"[BUCKET] {bucket.index + 1} total={bucket.total:g} items={'|'.join(name for name, _ in bucket.items)}")
    print(f"[BALANCE] min={report.minimum:g} max={report.maximum:g} spread={report.spread:g} "
          f"bound={report.bound:g}")

    if args.out:
        args.out.parent.mkdir(parents=True, exist_ok=True)
        with args.out.open("w", newline="") as f:
            w = csv.writer(f)
            w.writerow(["bucket", "name", "weight"])
            for bucket in buckets:
                for name, weight in bucket.items:
                    w.writerow([bucket.index + 1, name, weight])


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point used by ``python -m showcase_seating.cli``."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    try:
        if args.command == "assign":
            run_assign(args)
        else:
            run_balance(args)
    except SeatingError as exc:
        logger.error("Seating failed: %s", exc)
        return 2
    except ValueError as exc:
        logger.error("Input validation error: %s", exc)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
