import csv
import pathlib
import sys

# Ensure src package is on path
sys.path.append(str(pathlib.Path(__file__).resolve().parents[1] / "src"))

from showcase_seating import cli, csv_loader, solver
from showcase_seating.store import SqliteAssignmentStore

DATA_DIR = pathlib.Path(__file__).parent / "data"


def load():
    return csv_loader.load_all(
        DATA_DIR / "people.csv", DATA_DIR / "studios.csv", DATA_DIR / "studio_pairs.csv"
    )


def test_full_flow():
    people, studios, pairs = load()

    model = solver.SeatingModel(capacity=10, isolated=["0"])
    model.build(people, pairs)
    result = model.solve()

    # all people assigned
    assert len(result.assignments) == len(people)

    # table capacities respected
    for table in result.tables:
        assert table.size <= table.capacity

    # paired studios sit together
    by_studio = {}
    for person in people:
        by_studio.setdefault(person.studio_id, set()).add(result.assignments[person.id])
    assert by_studio["1"] == by_studio["3"]
    assert len(by_studio["1"]) == 1

    # event staff never mixed
    (staff_table,) = by_studio["0"]
    assert {p.studio_id for p in result.people_at(staff_table)} == {"0"}

    # paired studios that overflow a table still keep each studio whole
    assert len(by_studio["4"]) == 1
    assert by_studio["4"] == by_studio["2"]

    # only the oversized studio spreads, over adjacent tables
    assert result.fragmented == {"6": [3, 4]}
    assert len(result.tables) == 6


def test_cli_assign_writes_outputs(tmp_path, capsys):
    db = tmp_path / "seating.sqlite3"
    out_assignments = tmp_path / "out" / "assignments.csv"
    out_report = tmp_path / "out" / "report.csv"
    out_map = tmp_path / "out" / "map.html"
    code = cli.main([
        "assign",
        "--people", str(DATA_DIR / "people.csv"),
        "--studios", str(DATA_DIR / "studios.csv"),
        "--pairs", str(DATA_DIR / "studio_pairs.csv"),
        "--isolate", "0",
        "--db", str(db),
        "--scope", "dinner",
        "--out-assignments", str(out_assignments),
        "--out-report", str(out_report),
        "--out-map", str(out_map),
    ])
    assert code == 0

    printed = capsys.readouterr().out
    assert "[REPORT] table=1" in printed
    assert "[SPLIT] Torino tables=3,4" in printed

    with out_assignments.open(newline="") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 36
    with out_report.open(newline="") as f:
        report = list(csv.DictReader(f))
    assert [r["table"] for r in report] == ["1", "2", "3", "4", "5", "6"]
    assert "legend-box" in out_map.read_text(encoding="utf-8")

    store = SqliteAssignmentStore(db)
    assert len(store.assignments("dinner")) == 36
    assert len(store.tables("dinner")) == 6


def test_cli_config_error_writes_nothing(tmp_path):
    db = tmp_path / "seating.sqlite3"
    code = cli.main([
        "assign",
        "--people", str(DATA_DIR / "people.csv"),
        "--studios", str(DATA_DIR / "studios.csv"),
        "--table-count", "1",
        "--db", str(db),
    ])
    assert code == 2
    assert not db.exists()


def test_cli_balance(tmp_path, capsys):
    weights = tmp_path / "weights.csv"
    weights.write_text("name,weight\nHeat 1,5\nHeat 2,4\nHeat 3,3\nHeat 4,3\nHeat 5,2\nHeat 6,1\n", encoding="utf-8")
    out = tmp_path / "buckets.csv"
    code = cli.main(["balance", "--weights", str(weights), "--buckets", "2", "--out", str(out)])
    assert code == 0
    printed = capsys.readouterr().out
    assert "[BALANCE] min=9 max=9 spread=0 bound=5" in printed
    with out.open(newline="") as f:
        rows = list(csv.DictReader(f))
    assert [r["name"] for r in rows if r["bucket"] == "1"] == ["Heat 1", "Heat 4", "Heat 6"]


def test_cli_assign_packed(capsys):
    code = cli.main([
        "assign",
        "--people", str(DATA_DIR / "people.csv"),
        "--studios", str(DATA_DIR / "studios.csv"),
        "--pairs", str(DATA_DIR / "studio_pairs.csv"),
        "--isolate", "0",
        "--split", "packed",
    ])
    assert code == 0
    printed = capsys.readouterr().out
    assert printed.count("[REPORT]") == 5
    assert "[REPORT] table=5 pos=(0,4) seated=3/10" in printed


def test_log_file_option_is_parsed(tmp_path):
    args = cli.build_parser().parse_args(["--log-file", str(tmp_path / "run.log"), "balance",
                                          "--weights", "w.csv", "--buckets", "2"])
    assert args.log_file == tmp_path / "run.log"
