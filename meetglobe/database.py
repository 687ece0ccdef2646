"""
Database schema and connection management.

Uses SQLite with SQLAlchemy as an alternative backend for the member and
meeting stores. The stores speak the same dict-in/dict-out contract as the
JSON stores in storage.py.
"""

from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column, Date, DateTime, Integer, String, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from .errors import PersistenceError
from .models import format_timestamp, parse_timestamp

Base = declarative_base()


class MemberRow(Base):
    """Member identity row."""

    __tablename__ = "members"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    city = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=True)
    position = Column(Integer, nullable=False, default=0)  # collection order

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {"id": self.id, "name": self.name, "city": self.city}
        if self.created_at is not None:
            record["createdAt"] = format_timestamp(_from_db(self.created_at))
        return record


class MeetingRow(Base):
    """Meeting row; participants are stored as a JSON list of member IDs."""

    __tablename__ = "meetings"

    id = Column(String, primary_key=True)  # slug-YYYY-MM-DD
    title = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    participant_ids = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False)

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "date": self.date.isoformat(),
            "participantIds": list(self.participant_ids or []),
            "createdAt": format_timestamp(_from_db(self.created_at)),
        }


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    engine.dispose()


def get_session_factory(db_path: Path) -> sessionmaker:
    """
    Create the tables if needed and return a session factory bound to the file.

    Args:
        db_path: Path to SQLite database file

    Returns:
        sessionmaker producing sessions on one engine
    """
    init_database(db_path)
    return sessionmaker(bind=create_engine(f"sqlite:///{db_path}"))


def _to_db(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo, so timestamps are stored as naive UTC
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _from_db(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _member_row(record: Dict[str, Any], position: int) -> MemberRow:
    return MemberRow(
        id=record["id"],
        name=record["name"],
        city=record["city"],
        created_at=_to_db(parse_timestamp(record.get("createdAt"))),
        position=position,
    )


def _meeting_row(record: Dict[str, Any]) -> MeetingRow:
    return MeetingRow(
        id=record["id"],
        title=record["title"],
        date=date.fromisoformat(record["date"]),
        participant_ids=list(record["participantIds"]),
        created_at=_to_db(parse_timestamp(record["createdAt"])),
    )


class SqlMemberStore:
    """Whole-collection member store over SQLite. Each save is one transaction."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._Session = get_session_factory(self.db_path)

    def load(self) -> List[Dict[str, Any]]:
        try:
            with self._Session() as session:
                rows = session.query(MemberRow).order_by(MemberRow.position).all()
                return [row.to_record() for row in rows]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not load members: {e}", str(self.db_path)) from e

    def save(self, records: List[Dict[str, Any]]) -> None:
        try:
            with self._Session() as session, session.begin():
                session.query(MemberRow).delete()
                session.add_all(_member_row(r, i) for i, r in enumerate(records))
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not save members: {e}", str(self.db_path)) from e


class SqlMeetingStore:
    """Record-per-key meeting store over SQLite."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._Session = get_session_factory(self.db_path)

    def exists(self, meeting_id: str) -> bool:
        return self.read(meeting_id) is not None

    def read(self, meeting_id: str) -> Optional[Dict[str, Any]]:
        try:
            with self._Session() as session:
                row = session.get(MeetingRow, meeting_id)
                return row.to_record() if row is not None else None
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not load meeting {meeting_id}: {e}", str(self.db_path)) from e

    def write(self, record: Dict[str, Any]) -> None:
        try:
            with self._Session() as session, session.begin():
                session.merge(_meeting_row(record))
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not save meeting: {e}", str(self.db_path)) from e

    def delete(self, meeting_id: str) -> bool:
        try:
            with self._Session() as session, session.begin():
                row = session.get(MeetingRow, meeting_id)
                if row is None:
                    return False
                session.delete(row)
                return True
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not delete meeting {meeting_id}: {e}", str(self.db_path)) from e

    def list_ids(self) -> List[str]:
        try:
            with self._Session() as session:
                return [row_id for (row_id,) in session.query(MeetingRow.id).order_by(MeetingRow.id)]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not list meetings: {e}", str(self.db_path)) from e
