"""
Command line entry point.

Usage:
    python -m internship_map migrate
    python -m internship_map list --location physical --mode driving --max-minutes 20
    python -m internship_map import-csv profiles.csv
"""

import argparse
import asyncio
import sys
from pathlib import Path

from loguru import logger

from .app import InternshipMapApp
from .config import load_config
from .core.exceptions import CsvFormatError, InternshipMapError
from .filtering import FilterCriteria, LocationType, TravelMode
from .geo.routing import format_travel_time


def init_logger(level: str = "INFO") -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def _print_profile(profile, mode: TravelMode) -> None:
    line = f"{profile.id:<36} {profile.internship_company} [{profile.field}]"
    if profile.is_remote:
        line += " (remote)"
    elif profile.travel_time is not None and mode != TravelMode.ALL:
        line += f" {format_travel_time(profile.travel_time.minutes_for(mode.value))}"
    print(line)


def cmd_migrate(app: InternshipMapApp, args: argparse.Namespace) -> int:
    profiles = app.boot()
    print(f"{len(profiles)} profiles after migration")
    return 0


def cmd_list(app: InternshipMapApp, args: argparse.Namespace) -> int:
    app.boot()
    criteria = FilterCriteria(
        location_type=LocationType(args.location),
        travel_mode=TravelMode(args.mode),
        max_minutes=args.max_minutes,
        fields=args.field or [],
    )
    result = app.view(criteria)
    print(f"Map ({len(result.map_profiles)}):")
    for profile in result.map_profiles:
        _print_profile(profile, criteria.travel_mode)
    print(f"Remote ({len(result.remote_profiles)}):")
    for profile in result.remote_profiles:
        _print_profile(profile, criteria.travel_mode)
    return 0


def cmd_import_csv(app: InternshipMapApp, args: argparse.Namespace) -> int:
    app.boot()
    text = Path(args.path).read_text(encoding="utf-8")
    try:
        result = asyncio.run(app.import_csv(text))
    except CsvFormatError as e:
        print(f"ERROR: {e}")
        return 1

    print(f"Imported {len(result.created)} profiles")
    for error in result.errors:
        print(f"  {error}")
    return 0 if result.created else 1


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="internship-map", description="Student internship map"
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--log-level", default="INFO", help="Log level (default: INFO)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("migrate", help="Run the boot-time migration")

    list_parser = sub.add_parser("list", help="List profiles through the filters")
    list_parser.add_argument(
        "--location", choices=[t.value for t in LocationType], default="all"
    )
    list_parser.add_argument(
        "--mode", choices=[m.value for m in TravelMode], default="all"
    )
    list_parser.add_argument("--max-minutes", type=int, default=30)
    list_parser.add_argument(
        "--field", action="append", help="Field tag to include (repeatable)"
    )

    import_parser = sub.add_parser("import-csv", help="Import profiles from a CSV file")
    import_parser.add_argument("path")

    args = parser.parse_args()
    init_logger(args.log_level)

    commands = {
        "migrate": cmd_migrate,
        "list": cmd_list,
        "import-csv": cmd_import_csv,
    }
    try:
        app = InternshipMapApp(load_config(args.config))
        return commands[args.command](app, args)
    except InternshipMapError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
