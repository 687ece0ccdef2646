"""
Duplicate-member repair.

Within one process the member registry serializes find-or-create, but two
processes sharing the same JSON files can still both miss the dedup check and
create the same identity twice. This pass merges such duplicates: the
earliest-created member of each identity is kept and every meeting that
referenced a merged member is pointed at the survivor.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List

from .errors import CorruptRecordError
from .logger import get_logger
from .members import MemberRegistry
from .models import Member
from .normalize import identity_key
from .schema import validate_meeting_record

logger = get_logger()

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class RepairReport:
    members_before: int = 0
    members_after: int = 0
    meetings_rewritten: int = 0

    @property
    def members_merged(self) -> int:
        return self.members_before - self.members_after


def _pick_survivors(members: List[Member]) -> Dict[str, str]:
    """Map every duplicate member ID to the ID of the member it merges into."""
    groups: Dict[tuple, List[Member]] = {}
    for m in members:
        groups.setdefault(identity_key(m.name, m.city), []).append(m)

    aliases: Dict[str, str] = {}
    for group in groups.values():
        if len(group) < 2:
            continue
        # min() keeps the first stored member among equal timestamps
        survivor = min(group, key=lambda m: m.created_at or _OLDEST)
        for m in group:
            if m.id != survivor.id:
                aliases[m.id] = survivor.id
    return aliases


def repair_duplicate_members(member_store, meeting_store) -> RepairReport:
    """
    Merge members that share a normalized (name, city).

    Args:
        member_store: Whole-collection member store
        meeting_store: Record-per-key meeting store

    Returns:
        RepairReport with member counts before/after and meetings rewritten
    """
    members = MemberRegistry(member_store).list()

    report = RepairReport(members_before=len(members), members_after=len(members))
    aliases = _pick_survivors(members)
    if not aliases:
        logger.info("No duplicate members found", members=len(members))
        return report

    # Meetings first: if we stop halfway, every referenced member still exists
    for meeting_id in meeting_store.list_ids():
        try:
            record = meeting_store.read(meeting_id)
        except CorruptRecordError as e:
            logger.warning("Skipping unreadable meeting during repair", meeting_id=meeting_id, error=str(e))
            continue
        if record is None or validate_meeting_record(record):
            continue
        ids = record["participantIds"]
        rewritten = [aliases.get(i, i) for i in ids]
        if rewritten != ids:
            meeting_store.write({**record, "participantIds": rewritten})
            report.meetings_rewritten += 1

    survivors = [m for m in members if m.id not in aliases]
    member_store.save([m.to_record() for m in survivors])
    report.members_after = len(survivors)

    logger.info(
        f"Repair complete: {report.members_merged} duplicate members merged",
        members_before=report.members_before,
        members_after=report.members_after,
        meetings_rewritten=report.meetings_rewritten,
    )
    return report
