"""
Record types for members, cities, meetings and computed visualizations.

Members, cities and meetings are persisted as plain JSON-compatible dicts
with camelCase keys; these dataclasses are the typed in-memory form.
Points, arcs and visualizations are computed on every read and never stored.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    # Timestamps without an offset were written as UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(frozen=True)
class Member:
    """A deduplicated identity. Never carries coordinates."""

    id: str
    name: str
    city: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "Member":
        return cls(
            id=data["id"],
            name=data["name"],
            city=data["city"],
            created_at=parse_timestamp(data.get("createdAt")),
        )

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {"id": self.id, "name": self.name, "city": self.city}
        if self.created_at is not None:
            record["createdAt"] = format_timestamp(self.created_at)
        return record


@dataclass(frozen=True)
class City:
    normalized_name: str
    display_name: str
    lat: float
    lng: float
    country_code: Optional[str] = None

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(lat=self.lat, lng=self.lng)

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "City":
        return cls(
            normalized_name=data["normalizedName"],
            display_name=data["displayName"],
            lat=float(data["lat"]),
            lng=float(data["lng"]),
            country_code=data.get("countryCode"),
        )

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "normalizedName": self.normalized_name,
            "displayName": self.display_name,
            "lat": self.lat,
            "lng": self.lng,
        }
        if self.country_code is not None:
            record["countryCode"] = self.country_code
        return record


@dataclass(frozen=True)
class Meeting:
    """A session referencing its participants by member ID only."""

    id: str
    title: str
    date: date
    participant_ids: Tuple[str, ...]
    created_at: datetime

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "Meeting":
        return cls(
            id=data["id"],
            title=data["title"],
            date=date.fromisoformat(data["date"]),
            participant_ids=tuple(data["participantIds"]),
            created_at=parse_timestamp(data["createdAt"]),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "date": self.date.isoformat(),
            "participantIds": list(self.participant_ids),
            "createdAt": format_timestamp(self.created_at),
        }

    def summary(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "date": self.date.isoformat()}


@dataclass(frozen=True)
class Point:
    member_id: str
    member_name: str
    city_name: str
    lat: float
    lng: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "memberId": self.member_id,
            "memberName": self.member_name,
            "cityName": self.city_name,
            "lat": self.lat,
            "lng": self.lng,
        }


@dataclass(frozen=True)
class Arc:
    start_lat: float
    start_lng: float
    end_lat: float
    end_lng: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startLat": self.start_lat,
            "startLng": self.start_lng,
            "endLat": self.end_lat,
            "endLng": self.end_lng,
        }


@dataclass(frozen=True)
class UnresolvedCityWarning:
    """A participant left off the globe because its city has no coordinates."""

    member_id: str
    member_name: str
    city: str

    def __str__(self) -> str:
        return f"No coordinates for city '{self.city}' (participant {self.member_name})"


@dataclass
class Visualization:
    points: List[Point] = field(default_factory=list)
    arcs: List[Arc] = field(default_factory=list)
    warnings: List[UnresolvedCityWarning] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "points": [p.to_dict() for p in self.points],
            "arcs": [a.to_dict() for a in self.arcs],
            "warnings": [str(w) for w in self.warnings],
        }
