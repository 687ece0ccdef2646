"""
Migrate members and meetings from the JSON stores to SQLite.

Usage:
    meetglobe migrate --dry-run
    meetglobe migrate
"""

from dataclasses import dataclass
from pathlib import Path

from .database import SqlMeetingStore, SqlMemberStore
from .logger import get_logger
from .meetings import MeetingRegistry
from .members import MemberRegistry
from .storage import JsonMeetingStore, JsonMemberStore

logger = get_logger()


@dataclass
class MigrationReport:
    members_migrated: int = 0
    members_skipped: int = 0
    meetings_migrated: int = 0
    meetings_skipped: int = 0


def migrate_json_to_db(
    members_path: Path,
    meetings_dir: Path,
    db_path: Path,
    dry_run: bool = False,
) -> MigrationReport:
    """
    Copy the JSON member collection and meeting files into SQLite.

    Members and meetings already present in the database are skipped, so
    the migration can be re-run. Unreadable or invalid meeting files are
    counted as skipped.

    Args:
        members_path: Path to members.json
        meetings_dir: Directory of meeting JSON files
        db_path: Path to SQLite database file
        dry_run: If True, count what would be migrated without writing

    Returns:
        MigrationReport with migrated/skipped counts
    """
    report = MigrationReport()
    json_members = MemberRegistry(JsonMemberStore(members_path)).list()
    json_meetings = JsonMeetingStore(meetings_dir)
    logger.info("Loaded JSON stores", members=len(json_members), meetings=len(json_meetings.list_ids()))

    member_store = SqlMemberStore(db_path)
    meeting_store = SqlMeetingStore(db_path)

    existing = member_store.load()
    known_ids = {r["id"] for r in existing}
    new_records = []
    for member in json_members:
        if member.id in known_ids:
            report.members_skipped += 1
            continue
        new_records.append(member.to_record())
        known_ids.add(member.id)
    report.members_migrated = len(new_records)
    if new_records and not dry_run:
        member_store.save(existing + new_records)

    reader = MeetingRegistry(json_meetings)
    for meeting_id in json_meetings.list_ids():
        meeting = reader.load(meeting_id)
        if meeting is None or meeting_store.exists(meeting_id):
            logger.warning("Skipping meeting", meeting_id=meeting_id)
            report.meetings_skipped += 1
            continue
        if not dry_run:
            meeting_store.write(meeting.to_record())
        report.meetings_migrated += 1

    logger.info(
        "Migration dry run complete" if dry_run else "Migration complete",
        members_migrated=report.members_migrated,
        members_skipped=report.members_skipped,
        meetings_migrated=report.meetings_migrated,
        meetings_skipped=report.meetings_skipped,
    )
    return report
