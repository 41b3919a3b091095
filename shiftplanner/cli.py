"""Command-line interface for the shift scheduling engine."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date

from shiftplanner.config import load_config
from shiftplanner.domain.db import get_session_factory, init_database
from shiftplanner.engine.service import ScheduleService
from shiftplanner.errors import SchedulingError
from shiftplanner.io.export_csv import assignments_frame, export_assignments_csv, summarize_assignments
from shiftplanner.io.import_csv import import_availability_csv, import_employees_csv, import_templates_csv


def _week(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected a YYYY-MM-DD date, got {value!r}") from None


def _setup(args: argparse.Namespace):
    cfg = load_config(args.config)
    level = logging.DEBUG if args.verbose else getattr(logging, str(cfg.log_level).upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    db_url = args.db or cfg.db_url
    return cfg, db_url


def _cmd_init_db(args: argparse.Namespace) -> None:
    """Initialize the database."""
    _, db_url = _setup(args)
    init_database(db_url)
    print(f"[OK] Database initialized: {db_url}")


def _cmd_import_csv(args: argparse.Namespace) -> None:
    """Import CSV data into database."""
    _, db_url = _setup(args)
    session = get_session_factory(db_url)()

    try:
        if args.employees:
            count = import_employees_csv(session, args.employees)
            print(f"[OK] Imported {count} employees")

        if args.templates:
            count = import_templates_csv(session, args.templates)
            print(f"[OK] Imported {count} shift templates")

        if args.availability:
            count = import_availability_csv(session, args.availability, week_start=args.week)
            print(f"[OK] Imported {count} availability constraints")

        print("[OK] CSV import complete")
    except Exception as e:
        session.rollback()
        print(f"[ERROR] Import failed: {e}")
        sys.exit(1)
    finally:
        session.close()


def _cmd_generate(args: argparse.Namespace) -> None:
    """Generate the draft schedule for a team week."""
    cfg, db_url = _setup(args)
    service = ScheduleService(get_session_factory(db_url), cfg)

    result = service.generate(args.team, args.week, conversation_id=args.conversation)
    print(f"[OK] Generated {len(result.assignments)} assignments for team {args.team} week {args.week}")
    for warning in result.warnings:
        print(f"[WARN] {warning}")


def _cmd_warnings(args: argparse.Namespace) -> None:
    """Print warnings for a stored schedule."""
    cfg, db_url = _setup(args)
    service = ScheduleService(get_session_factory(db_url), cfg)

    warnings = service.get_warnings(args.team, args.week)
    if not warnings:
        print("[OK] No warnings")
    for warning in warnings:
        print(f"[WARN] {warning}")


def _cmd_publish(args: argparse.Namespace) -> None:
    cfg, db_url = _setup(args)
    service = ScheduleService(get_session_factory(db_url), cfg)
    count = service.publish(args.team, args.week)
    print(f"[OK] Published {count} assignments for team {args.team} week {args.week}")


def _cmd_move(args: argparse.Namespace) -> None:
    cfg, db_url = _setup(args)
    service = ScheduleService(get_session_factory(db_url), cfg)
    moved = service.move(args.assignment, args.date, args.shift)
    print(f"[OK] Assignment {moved.id} moved to {moved.date} {moved.shift_name.value}")


def _cmd_export(args: argparse.Namespace) -> None:
    """Export a team week's assignments to CSV, or print a summary."""
    _, db_url = _setup(args)
    session = get_session_factory(db_url)()

    try:
        if args.out:
            count = export_assignments_csv(session, args.out, args.team, args.week)
            print(f"[OK] Exported {count} assignments to {args.out}")
        else:
            print(summarize_assignments(assignments_frame(session, args.team, args.week)))
    finally:
        session.close()


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="shiftplanner",
        description="Weekly team shift scheduling",
    )

    # Global options
    parser.add_argument("--db", help="Database URL (default: from config)")
    parser.add_argument("--config", help="Path to config YAML/JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init-db", help="Initialize database")
    init.set_defaults(func=_cmd_init_db)

    imp = sub.add_parser("import-csv", help="Import CSV data into database")
    imp.add_argument("--employees", help="Path to employees CSV")
    imp.add_argument("--templates", help="Path to shift templates CSV")
    imp.add_argument("--availability", help="Path to availability constraints CSV")
    imp.add_argument("--week", type=_week, help="Only import availability for this week start")
    imp.set_defaults(func=_cmd_import_csv)

    gen = sub.add_parser("generate", help="Generate the draft schedule for a week")
    gen.add_argument("--team", type=int, required=True, help="Team id")
    gen.add_argument("--week", type=_week, required=True, help="Week start (a Sunday, YYYY-MM-DD)")
    gen.add_argument("--conversation", type=int, help="Completed conversation whose constraints apply")
    gen.set_defaults(func=_cmd_generate)

    warn = sub.add_parser("warnings", help="Show warnings for a stored schedule")
    warn.add_argument("--team", type=int, required=True)
    warn.add_argument("--week", type=_week, required=True)
    warn.set_defaults(func=_cmd_warnings)

    pub = sub.add_parser("publish", help="Publish a week's draft assignments")
    pub.add_argument("--team", type=int, required=True)
    pub.add_argument("--week", type=_week, required=True)
    pub.set_defaults(func=_cmd_publish)

    mv = sub.add_parser("move", help="Move an assignment to another day/shift")
    mv.add_argument("--assignment", type=int, required=True)
    mv.add_argument("--date", type=_week, required=True)
    mv.add_argument("--shift", required=True, help="morning, evening or night")
    mv.set_defaults(func=_cmd_move)

    exp = sub.add_parser("export", help="Export a week's assignments to CSV")
    exp.add_argument("--team", type=int, required=True)
    exp.add_argument("--week", type=_week, required=True)
    exp.add_argument("--out", help="CSV path; prints a summary when omitted")
    exp.set_defaults(func=_cmd_export)

    args = parser.parse_args(argv)
    try:
        args.func(args)
    except SchedulingError as e:
        print(f"[ERROR] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
