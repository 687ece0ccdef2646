"""
Member registry.

Members are deduplicated by their normalized (name, city) pair, compared
case-insensitively. Each member gets a random UUID used by meetings to
reference it. Coordinates are never stored on a member; they are resolved
from the city dataset when needed.
"""

import threading
import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple

from .errors import PersistenceError, ValidationError
from .logger import get_logger
from .models import Member, utc_now
from .normalize import identity_key, normalize_member
from .schema import validate_member_input, validate_member_record

logger = get_logger()

# Fields written by older versions that stored coordinates on members
LEGACY_FIELDS = ("lat", "lng", "source")


def generate_id() -> str:
    return str(uuid.uuid4())


def migrate_member_records(
    records: List[Dict[str, Any]],
    id_factory: Callable[[], str] = generate_id,
) -> Tuple[List[Dict[str, Any]], bool]:
    """
    Bring stored member records up to the current shape.

    Records without an id get a fresh one; legacy coordinate fields are
    dropped. Returns the migrated records and whether anything changed.
    """
    migrated: List[Dict[str, Any]] = []
    changed = False
    for record in records:
        if not isinstance(record, dict):
            migrated.append(record)
            continue
        current = {k: v for k, v in record.items() if k not in LEGACY_FIELDS}
        if len(current) != len(record):
            changed = True
        if not current.get("id"):
            current["id"] = id_factory()
            changed = True
        migrated.append(current)
    return migrated, changed


class MemberRegistry:
    """Owns member identity. All writes go through a single lock."""

    def __init__(
        self,
        store,
        clock: Optional[Callable[[], Any]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.store = store
        self._clock = clock or utc_now
        self._id_factory = id_factory or generate_id
        self._lock = threading.RLock()

    def _load(self) -> List[Member]:
        with self._lock:
            records, changed = migrate_member_records(self.store.load(), self._id_factory)

            members: List[Member] = []
            for i, record in enumerate(records):
                errors = validate_member_record(record)
                if errors:
                    logger.error("Corrupt member record", index=i, errors=errors)
                    raise PersistenceError(f"Member record {i} is invalid: {'; '.join(errors)}")
                members.append(Member.from_record(record))

            if changed:
                logger.info("Migrated legacy member records", members=len(members))
                self.store.save([m.to_record() for m in members])
            return members

    def list(self) -> List[Member]:
        return self._load()

    def __len__(self) -> int:
        return len(self._load())

    def get(self, member_id: str) -> Optional[Member]:
        for m in self._load():
            if m.id == member_id:
                return m
        return None

    def get_by_ids(self, ids: List[str]) -> List[Member]:
        """
        Look up many members at once.

        Order and repeats follow ids; IDs with no matching member are
        omitted without error.
        """
        by_id = {m.id: m for m in self._load()}
        return [by_id[i] for i in ids if i in by_id]

    def find(self, name: str, city: str) -> Optional[Member]:
        key = identity_key(name, city)
        for m in self._load():
            if identity_key(m.name, m.city) == key:
                return m
        return None

    def find_or_create_detailed(self, name: str, city: str) -> Tuple[Member, bool]:
        """
        Find a member by normalized (name, city) or create it.

        Args:
            name: Member name, normalized before comparison and storage
            city: City name, normalized before comparison and storage

        Returns:
            Tuple of (member, created)

        Raises:
            ValidationError: If name or city is empty after normalization
        """
        normalized_name, normalized_city = normalize_member(name, city)
        errors = validate_member_input(normalized_name, normalized_city)
        if errors:
            raise ValidationError(errors)

        key = identity_key(normalized_name, normalized_city)
        with self._lock:
            members = self._load()
            for m in members:
                if identity_key(m.name, m.city) == key:
                    logger.record_member(created=False)
                    return m, False

            member = Member(
                id=self._id_factory(),
                name=normalized_name,
                city=normalized_city,
                created_at=self._clock(),
            )
            members.append(member)
            self.store.save([m.to_record() for m in members])

        logger.record_member(created=True)
        logger.info("Created member", member_id=member.id, name=member.name, city=member.city)
        return member, True

    def find_or_create(self, name: str, city: str) -> Member:
        member, _ = self.find_or_create_detailed(name, city)
        return member
