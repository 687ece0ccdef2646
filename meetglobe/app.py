import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from . import __version__
from .config import Settings
from .env import load_env
from .errors import MeetGlobeError, ValidationError
from .logger import get_logger
from .service import GlobeService, build_service, build_stores


def parse_participant(raw: str) -> Tuple[str, str]:
    """Split a "Name, City" string on its first comma."""
    if "," not in raw:
        raise ValidationError([f"Expected \"Name, City\", got {raw!r}"])
    name, city = raw.split(",", 1)
    return name, city


def load_participants_file(path: Path) -> Tuple[Optional[str], List]:
    """Read {"title": ..., "participants": [{"name", "city"}, ...]} or a bare participant list."""
    if not path.exists():
        raise SystemExit(f"Input file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise SystemExit(f"Input file is not valid JSON: {path} ({e})")
    if isinstance(data, list):
        return None, data
    if not isinstance(data, dict):
        raise SystemExit(f"Input file must hold an object or a participant list: {path}")
    participants = data.get("participants", [])
    if not isinstance(participants, list):
        raise SystemExit(f"\"participants\" in {path} must be a list")
    return data.get("title"), participants


def cmd_add_member(args: argparse.Namespace, service: GlobeService) -> None:
    result = service.add_member(args.name, args.city)
    status = "new" if result.created else "existing"
    print(f"[{status}] {result.member.name} ({result.member.city}) id={result.member.id}")
    if result.warning:
        print(f"[warn] {result.warning}")


def cmd_create_meeting(args: argparse.Namespace, service: GlobeService) -> None:
    title = args.title
    participants: List = []
    if args.input:
        file_title, participants = load_participants_file(Path(args.input))
        title = title or file_title
    participants.extend(parse_participant(p) for p in args.participant or [])
    if not title:
        raise SystemExit("No title given. Use --title or a \"title\" key in --input.")

    result = service.create_meeting(title, participants)
    meeting = result.meeting
    print(f"Meeting: {meeting.id}")
    print(f"Title: {meeting.title}")
    print(f"Date: {meeting.date.isoformat()}")
    print(f"Participants: {len(meeting.participant_ids)}")
    for w in result.warnings:
        print(f"[warn] {w}")


def cmd_list_meetings(args: argparse.Namespace, service: GlobeService) -> None:
    meetings = service.list_meetings()
    if not meetings:
        print("No meetings.")
        return
    print(f"Found {len(meetings)} meetings:\n")
    for m in meetings:
        print(f"{m.date.isoformat()}  {m.id}  {m.title} ({len(m.participant_ids)} participants)")


def cmd_show(args: argparse.Namespace, service: GlobeService) -> None:
    payload = service.get_visualization(args.id)
    if payload is None:
        print(f"Meeting not found: {args.id}")
        raise SystemExit(1)
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def cmd_delete_meeting(args: argparse.Namespace, service: GlobeService) -> None:
    if service.delete_meeting(args.id):
        print(f"Deleted: {args.id}")
        return
    print(f"Meeting not found: {args.id}")
    raise SystemExit(1)


def cmd_list_members(args: argparse.Namespace, service: GlobeService) -> None:
    members = service.list_members()
    if not members:
        print("No members.")
        return
    print(f"Found {len(members)} members:\n")
    for m in members:
        located = "" if service.cities.exists(m.city) else "  [no coordinates]"
        print(f"{m.id}  {m.name} ({m.city}){located}")


def cmd_check_city(args: argparse.Namespace, service: GlobeService) -> None:
    city = service.cities.get(args.city)
    if city is None:
        print(f"Unknown city: {args.city}")
        raise SystemExit(1)
    country = f" [{city.country_code}]" if city.country_code else ""
    print(f"{city.display_name}{country}: lat={city.lat}, lng={city.lng}")


def cmd_repair(args: argparse.Namespace, settings: Settings) -> None:
    from .repair import repair_duplicate_members
    member_store, meeting_store = build_stores(settings)
    report = repair_duplicate_members(member_store, meeting_store)
    print(f"Done. merged={report.members_merged} members={report.members_after} meetings_rewritten={report.meetings_rewritten}")


def cmd_migrate(args: argparse.Namespace, settings: Settings) -> None:
    from .migrate import migrate_json_to_db
    report = migrate_json_to_db(settings.members_path, settings.meetings_dir, settings.db_path, dry_run=args.dry_run)
    prefix = "[dry-run] " if args.dry_run else ""
    print(f"{prefix}Members: migrated={report.members_migrated} skipped={report.members_skipped}")
    print(f"{prefix}Meetings: migrated={report.meetings_migrated} skipped={report.meetings_skipped}")


# Commands that work on the stores directly rather than through the service
MAINTENANCE_COMMANDS = {"repair", "migrate"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="meetglobe", description="Map meeting attendance onto a globe")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--data-dir", help="Data directory (default: $MEETGLOBE_DATA_DIR or data/)")

    subparsers = parser.add_subparsers(dest="command")
    add = subparsers.add_parser("add-member", help="Register a member without a meeting")
    add.add_argument("--name", required=True, help="Member name")
    add.add_argument("--city", required=True, help="City the member joins from")
    add.set_defaults(func=cmd_add_member)

    crt = subparsers.add_parser("create-meeting", help="Create a meeting from \"Name, City\" participants")
    crt.add_argument("--title", help="Meeting title")
    crt.add_argument("--participant", action="append", help="\"Name, City\" (repeatable)")
    crt.add_argument("--input", help="JSON file with title and participants")
    crt.set_defaults(func=cmd_create_meeting)

    lst = subparsers.add_parser("list-meetings", help="List meetings, most recent first")
    lst.set_defaults(func=cmd_list_meetings)

    shw = subparsers.add_parser("show", help="Print a meeting's points and arcs as JSON")
    shw.add_argument("--id", required=True, help="Meeting ID")
    shw.set_defaults(func=cmd_show)

    dlt = subparsers.add_parser("delete-meeting", help="Delete a meeting")
    dlt.add_argument("--id", required=True, help="Meeting ID")
    dlt.set_defaults(func=cmd_delete_meeting)

    mem = subparsers.add_parser("list-members", help="List registered members")
    mem.set_defaults(func=cmd_list_members)

    chk = subparsers.add_parser("check-city", help="Look up a city's coordinates")
    chk.add_argument("--city", required=True, help="City name")
    chk.set_defaults(func=cmd_check_city)

    rep = subparsers.add_parser("repair", help="Merge duplicate members created by concurrent writers")
    rep.set_defaults(func=cmd_repair)

    mig = subparsers.add_parser("migrate", help="Copy JSON members and meetings into SQLite")
    mig.add_argument("--dry-run", action="store_true", help="Count what would be migrated without writing")
    mig.set_defaults(func=cmd_migrate)
    return parser


def main(argv: Optional[List[str]] = None):
    # Load .env if present (MEETGLOBE_DATA_DIR, MEETGLOBE_BACKEND, etc.)
    load_env()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if not hasattr(args, "func"):
        parser.print_help()
        return

    settings = Settings.from_env(Path(args.data_dir) if args.data_dir else None)
    logger = get_logger()
    logger.configure(settings.log_level, settings.log_dir)
    try:
        if args.command in MAINTENANCE_COMMANDS:
            args.func(args, settings)
        else:
            args.func(args, build_service(settings))
        if args.command == "create-meeting":
            logger.log_metrics_summary()
    except ValidationError as e:
        for err in e.errors:
            print(f"[invalid] {err}", file=sys.stderr)
        raise SystemExit(2)
    except MeetGlobeError as e:
        logger.record_error(type(e).__name__)
        logger.error("Command failed", command=args.command, error=str(e))
        raise SystemExit(f"Error: {e}")


if __name__ == "__main__":
    main()
