"""
Entry points used by the CLI and by any request/response adapter.

GlobeService wires the member registry, meeting registry and city resolver
together and exposes the operations callers need: registering a meeting from
raw "Name, City" participants and reading back its globe visualization.
Per-participant problems never abort a meeting; they come back as warnings
that name the participant and city involved.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .cities import CityResolver
from .config import Settings
from .errors import ValidationError
from .logger import get_logger
from .meetings import MeetingRegistry
from .members import MemberRegistry
from .models import Meeting, Member
from .schema import validate_meeting_title, validate_participants
from .visualization import compute_visualization

logger = get_logger()

Participant = Union[Mapping[str, str], Tuple[str, str]]


@dataclass
class CreateMeetingResult:
    meeting: Meeting
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"meeting": self.meeting.to_record(), "warnings": list(self.warnings)}


@dataclass
class AddMemberResult:
    member: Member
    created: bool
    warning: Optional[str] = None


def _participant_fields(participant: Participant) -> Tuple[str, str]:
    if isinstance(participant, Mapping):
        return participant.get("name") or "", participant.get("city") or ""
    name, city = participant
    return name or "", city or ""


def unresolved_city_message(name: str, city: str) -> str:
    return f"City '{city}' for participant {name} has no known coordinates"


class GlobeService:
    def __init__(self, members: MemberRegistry, meetings: MeetingRegistry, cities: CityResolver):
        self.members = members
        self.meetings = meetings
        self.cities = cities

    def add_member(self, name: str, city: str) -> AddMemberResult:
        """
        Register a member on their own, outside any meeting.

        Raises:
            ValidationError: If name or city is empty after normalization
            PersistenceError: If the city dataset cannot be loaded; nothing is written
        """
        self.cities.load()
        member, created = self.members.find_or_create_detailed(name, city)
        warning = None
        if not self.cities.exists(member.city):
            logger.record_unresolved_city()
            warning = unresolved_city_message(member.name, member.city)
            logger.warning("Member city has no coordinates", member_id=member.id, city=member.city)
        return AddMemberResult(member=member, created=created, warning=warning)

    def create_meeting(self, title: str, participants: Iterable[Participant]) -> CreateMeetingResult:
        """
        Register every participant and create the meeting.

        Args:
            title: Meeting title
            participants: {"name", "city"} mappings or (name, city) pairs

        Returns:
            CreateMeetingResult with the stored meeting and one warning per
            participant that failed or whose city has no coordinates

        Raises:
            ValidationError: If the title or the participant list is malformed
            PersistenceError: If the city dataset cannot be loaded; nothing is written
        """
        participants = list(participants)
        errors = validate_meeting_title(title) + validate_participants(participants)
        if errors:
            raise ValidationError(errors)
        # Members are written below; a missing dataset must fail first
        self.cities.load()

        member_ids: List[str] = []
        warnings: List[str] = []
        for participant in participants:
            name, city = _participant_fields(participant)
            try:
                member = self.members.find_or_create(name, city)
            except ValidationError as e:
                logger.record_error(type(e).__name__)
                warnings.append(f"Failed to add participant {name or '(unnamed)'} ({city or 'no city'}): {e}")
                continue

            member_ids.append(member.id)
            if not self.cities.exists(member.city):
                logger.record_unresolved_city()
                warnings.append(unresolved_city_message(member.name, member.city))

        meeting = self.meetings.create(title, member_ids)
        if warnings:
            logger.warning("Meeting created with warnings", meeting_id=meeting.id, warnings=warnings)
        return CreateMeetingResult(meeting=meeting, warnings=warnings)

    def get_visualization(self, meeting_id: str) -> Optional[Dict[str, Any]]:
        """Visualization payload for a meeting, or None if it does not exist."""
        meeting = self.meetings.load(meeting_id)
        if meeting is None:
            return None
        viz = compute_visualization(meeting, self.members, self.cities)
        return {"meeting": meeting.summary(), **viz.to_dict()}

    def list_meetings(self) -> List[Meeting]:
        return self.meetings.list()

    def delete_meeting(self, meeting_id: str) -> bool:
        return self.meetings.delete(meeting_id)

    def list_members(self) -> List[Member]:
        return self.members.list()


def build_stores(settings: Settings):
    """Return (member_store, meeting_store) for the configured backend."""
    if settings.backend == "sqlite":
        from .database import SqlMeetingStore, SqlMemberStore
        return SqlMemberStore(settings.db_path), SqlMeetingStore(settings.db_path)
    from .storage import JsonMeetingStore, JsonMemberStore
    return JsonMemberStore(settings.members_path), JsonMeetingStore(settings.meetings_dir)


def build_service(settings: Settings) -> GlobeService:
    member_store, meeting_store = build_stores(settings)
    return GlobeService(
        members=MemberRegistry(member_store),
        meetings=MeetingRegistry(meeting_store),
        cities=CityResolver.from_file(settings.cities_path),
    )
