#!/usr/bin/env python3
"""
DriveCoach Session Replay

Replays a recorded GPS fix file through a full driving session and
prints the result screen.

Usage:
    python run_session.py fixes.csv                    # Practice session
    python run_session.py fixes.csv --simulate         # Default exam course
    python run_session.py fixes.csv --simulate --miss 1,3
    python run_session.py fixes.json --export out/     # Write JSON + route CSV
    python run_session.py --help                       # Show all options
"""

import argparse
import asyncio
import sys
from pathlib import Path

from drivecoach.config import ReplayConfig
from drivecoach.log import setup_logging
from drivecoach.models import SessionType
from drivecoach.replay import load_fixes, print_report, replay_session
from drivecoach.session.exporter import ExporterConfig, SessionExporter


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Replay recorded GPS fixes through a DriveCoach session",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Replay a practice drive
    python run_session.py drive.csv

    # Replay as a simulated exam, failing the 2nd and 4th checkpoints
    python run_session.py drive.csv --simulate --miss 1,3

    # Export the finished session
    python run_session.py drive.csv --export ./session_data
        """
    )

    parser.add_argument(
        "input",
        type=Path,
        help="CSV or JSON file with latitude, longitude, timestamp[, speed]"
    )
    parser.add_argument(
        "--simulate",
        action="store_true",
        help="Run the default checkpoint exam course instead of a practice session"
    )
    parser.add_argument(
        "--miss",
        type=str,
        default="",
        help="Comma-separated checkpoint indices (0-based) to record as missed"
    )
    parser.add_argument(
        "--user",
        default="local",
        help="User key for progress tracking (default: local)"
    )
    parser.add_argument(
        "--export",
        type=Path,
        dest="export_dir",
        help="Directory to write the session JSON and route CSV to"
    )

    # Logging
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Log level (default: INFO)"
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Log file path (in addition to stdout)"
    )

    return parser.parse_args()


def main() -> int:
    args = parse_args()

    missed = tuple(int(i) for i in args.miss.split(",") if i.strip())
    config = ReplayConfig(
        input_path=args.input,
        session_type=SessionType.SIMULATION if args.simulate else SessionType.PRACTICE,
        user_key=args.user,
        missed_checkpoints=missed,
        export_dir=args.export_dir,
        log_level=args.log_level,
        log_file=args.log_file,
    )
    setup_logging(config.log_level, config.log_file)

    if not config.input_path.exists():
        print(f"❌ Input file not found: {config.input_path}")
        return 1

    fixes = load_fixes(config.input_path)
    _, result = asyncio.run(replay_session(fixes, config))
    print_report(result)

    if config.export_dir and result.finished:
        exporter = SessionExporter(ExporterConfig(output_dir=str(config.export_dir)))
        json_path = exporter.export_json(result.session)
        csv_path = exporter.export_route_csv(result.session)
        print(f"\nExported: {json_path}")
        print(f"          {csv_path}")

    return 0 if result.finished else 1


if __name__ == "__main__":
    sys.exit(main())
