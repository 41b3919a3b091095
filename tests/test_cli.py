"""Tests for the command-line interface."""

import pandas as pd
import pytest

from shiftplanner.cli import main


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'cli.db'}"


@pytest.fixture
def csv_dir(tmp_path):
    (tmp_path / "employees.csv").write_text(
        "id,name,team_id,tags\n1,Alice,1,opener\n2,Bob,1,\n3,Cara,1,\n"
    )
    (tmp_path / "templates.csv").write_text(
        "team_id,day_of_week,shift_name,required_count,required_tags\n"
        "1,1,morning,2,opener\n"
        "1,2,night,4,\n"
    )
    (tmp_path / "availability.csv").write_text(
        "employee_id,week_start,date,type,availability,reason\n"
        "3,2025-09-07,2025-09-08,hard,unavailable,Exam\n"
    )
    return tmp_path


@pytest.mark.integration
def test_cli_end_to_end(db_url, csv_dir, capsys):
    """Test init, import, generate, warnings, publish and export in sequence."""
    main(["--db", db_url, "init-db"])
    main([
        "--db", db_url, "import-csv",
        "--employees", str(csv_dir / "employees.csv"),
        "--templates", str(csv_dir / "templates.csv"),
        "--availability", str(csv_dir / "availability.csv"),
    ])
    out = capsys.readouterr().out
    assert "[OK] Imported 3 employees" in out
    assert "[OK] Imported 2 shift templates" in out
    assert "[OK] Imported 1 availability constraints" in out

    main(["--db", db_url, "generate", "--team", "1", "--week", "2025-09-07"])
    out = capsys.readouterr().out
    assert "[OK] Generated 5 assignments" in out
    assert "[WARN] night shift on Tuesday: missing 1 employees" in out

    main(["--db", db_url, "warnings", "--team", "1", "--week", "2025-09-07"])
    assert "[WARN] night shift on Tuesday: missing 1 employees" in capsys.readouterr().out

    main(["--db", db_url, "publish", "--team", "1", "--week", "2025-09-07"])
    assert "[OK] Published 5 assignments" in capsys.readouterr().out

    out_csv = csv_dir / "schedule.csv"
    main(["--db", db_url, "export", "--team", "1", "--week", "2025-09-07", "--out", str(out_csv)])
    df = pd.read_csv(out_csv)
    assert len(df) == 5
    assert set(df["status"]) == {"published"}


def test_cli_move(db_url, csv_dir, capsys):
    main(["--db", db_url, "init-db"])
    main(["--db", db_url, "import-csv", "--employees", str(csv_dir / "employees.csv"),
          "--templates", str(csv_dir / "templates.csv")])
    main(["--db", db_url, "generate", "--team", "1", "--week", "2025-09-07"])
    capsys.readouterr()

    main(["--db", db_url, "move", "--assignment", "1", "--date", "2025-09-12", "--shift", "evening"])

    assert "[OK] Assignment 1 moved to 2025-09-12 evening" in capsys.readouterr().out


def test_cli_rejects_non_sunday_week(db_url, capsys):
    main(["--db", db_url, "init-db"])

    with pytest.raises(SystemExit) as excinfo:
        main(["--db", db_url, "generate", "--team", "1", "--week", "2025-09-08"])

    assert excinfo.value.code == 1
    assert "[ERROR]" in capsys.readouterr().out


def test_cli_unknown_team(db_url, capsys):
    main(["--db", db_url, "init-db"])

    with pytest.raises(SystemExit):
        main(["--db", db_url, "generate", "--team", "42", "--week", "2025-09-07"])

    assert "Team 42 not found" in capsys.readouterr().out


def test_cli_bad_date_argument(db_url):
    with pytest.raises(SystemExit) as excinfo:
        main(["--db", db_url, "generate", "--team", "1", "--week", "next sunday"])

    assert excinfo.value.code == 2


def test_cli_import_bad_csv_exits_cleanly(db_url, tmp_path, capsys):
    """Test a malformed CSV ends with an error line and exit code 1."""
    bad = tmp_path / "bad_employees.csv"
    bad.write_text("id,name\n1,Alice\n")
    main(["--db", db_url, "init-db"])

    with pytest.raises(SystemExit) as excinfo:
        main(["--db", db_url, "import-csv", "--employees", str(bad)])

    assert excinfo.value.code == 1
    assert "[ERROR] Import failed" in capsys.readouterr().out
