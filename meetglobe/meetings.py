"""
Meeting registry.

A meeting is an immutable record of a session: a title, the UTC calendar
date it was created on, and the ordered IDs of the members who attended.
Meetings are addressed by a readable ID built from the title slug and date.
There is no update operation; corrections are delete + create.
"""

import threading
from datetime import date, datetime
from typing import Any, Callable, List, Optional, Sequence

from .errors import CorruptRecordError, ValidationError
from .logger import get_logger
from .models import Meeting, utc_now
from .normalize import slugify
from .schema import is_valid_meeting_id, validate_meeting_record, validate_meeting_title

logger = get_logger()


def generate_meeting_id(title: str, meeting_date: date) -> str:
    return f"{slugify(title)}-{meeting_date.isoformat()}"


class MeetingRegistry:
    """Owns meeting records. Creation and deletion are serialized by a lock."""

    def __init__(self, store, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self._clock = clock or utc_now
        self._lock = threading.Lock()

    def _unique_id(self, base_id: str) -> str:
        # Same title on the same day: suffix -2, -3, ... rather than overwrite
        candidate = base_id
        n = 2
        while self.store.exists(candidate):
            candidate = f"{base_id}-{n}"
            n += 1
        return candidate

    def create(self, title: str, participant_ids: Sequence[str]) -> Meeting:
        """
        Create and persist a meeting.

        Args:
            title: Meeting title; must contain at least one letter or digit
            participant_ids: Member IDs in attendance order (repeats kept)

        Returns:
            The stored Meeting

        Raises:
            ValidationError: If the title or participant IDs are malformed
        """
        errors = validate_meeting_title(title)
        if isinstance(participant_ids, str) or not all(
            isinstance(i, str) and i for i in participant_ids
        ):
            errors.append("Participant IDs must be non-empty strings")
        if errors:
            raise ValidationError(errors)

        now = self._clock()
        with self._lock:
            meeting_id = self._unique_id(generate_meeting_id(title, now.date()))
            meeting = Meeting(
                id=meeting_id,
                title=title.strip(),
                date=now.date(),
                participant_ids=tuple(participant_ids),
                created_at=now,
            )
            self.store.write(meeting.to_record())

        logger.record_meeting_created()
        logger.info("Created meeting", meeting_id=meeting.id, participants=len(meeting.participant_ids))
        return meeting

    def load(self, meeting_id: str) -> Optional[Meeting]:
        if not is_valid_meeting_id(meeting_id):
            return None
        try:
            record = self.store.read(meeting_id)
        except CorruptRecordError as e:
            logger.warning("Ignoring unreadable meeting record", meeting_id=meeting_id, error=str(e))
            return None
        if record is None:
            return None
        return self._parse(meeting_id, record)

    def _parse(self, meeting_id: str, record: Any) -> Optional[Meeting]:
        errors = validate_meeting_record(record)
        if not errors and record["id"] != meeting_id:
            errors = [f"Record id {record['id']!r} does not match its key"]
        if errors:
            logger.warning("Ignoring invalid meeting record", meeting_id=meeting_id, errors=errors)
            return None
        return Meeting.from_record(record)

    def list(self) -> List[Meeting]:
        """All valid meetings, most recent first."""
        meetings: List[Meeting] = []
        for meeting_id in self.store.list_ids():
            meeting = self.load(meeting_id)
            if meeting is not None:
                meetings.append(meeting)
        meetings.sort(key=lambda m: m.id)
        meetings.sort(key=lambda m: (m.date, m.created_at), reverse=True)
        return meetings

    def delete(self, meeting_id: str) -> bool:
        if not is_valid_meeting_id(meeting_id):
            return False
        with self._lock:
            removed = self.store.delete(meeting_id)
        if removed:
            logger.record_meeting_deleted()
            logger.info("Deleted meeting", meeting_id=meeting_id)
        return removed
