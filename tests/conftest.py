"""
Pytest configuration and shared fixtures.
"""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List

import pytest

from meetglobe.cities import CityResolver
from meetglobe.meetings import MeetingRegistry
from meetglobe.members import MemberRegistry
from meetglobe.service import GlobeService
from meetglobe.storage import JsonMeetingStore, JsonMemberStore


class FakeClock:
    """Deterministic clock; each call advances by one second."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current

    def jump(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def city_records() -> List[Dict[str, Any]]:
    """Small geocoded city dataset."""
    return [
        {"normalizedName": "paris", "displayName": "Paris", "lat": 48.8566, "lng": 2.3522, "countryCode": "FR"},
        {"normalizedName": "london", "displayName": "London", "lat": 51.5072, "lng": -0.1276, "countryCode": "GB"},
        {"normalizedName": "new york", "displayName": "New York", "lat": 40.7128, "lng": -74.006, "countryCode": "US"},
        {"normalizedName": "tokyo", "displayName": "Tokyo", "lat": 35.6762, "lng": 139.6503, "countryCode": "JP"},
        {"normalizedName": "nairobi", "displayName": "Nairobi", "lat": -1.2864, "lng": 36.8172},
    ]


@pytest.fixture
def cities_file(tmp_path, city_records) -> Path:
    """City dataset written the way the geocoding tool writes it (object keyed by name)."""
    path = tmp_path / "cities.json"
    path.write_text(json.dumps({r["normalizedName"]: r for r in city_records}, indent=2))
    return path


@pytest.fixture
def cities(city_records) -> CityResolver:
    return CityResolver.from_records(city_records)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 3, 14, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def member_store(tmp_path) -> JsonMemberStore:
    return JsonMemberStore(tmp_path / "members.json")


@pytest.fixture
def meeting_store(tmp_path) -> JsonMeetingStore:
    return JsonMeetingStore(tmp_path / "meetings")


@pytest.fixture
def members(member_store, clock) -> MemberRegistry:
    return MemberRegistry(member_store, clock=clock)


@pytest.fixture
def meetings(meeting_store, clock) -> MeetingRegistry:
    return MeetingRegistry(meeting_store, clock=clock)


@pytest.fixture
def service(members, meetings, cities) -> GlobeService:
    return GlobeService(members=members, meetings=meetings, cities=cities)


@pytest.fixture
def legacy_members_file(tmp_path) -> Path:
    """Members written by an older version: coordinates stored, one record without an id."""
    path = tmp_path / "members.json"
    data = [
        {
            "id": "0b7f2a4e-8a53-4b44-9a43-6f1f5f3a1c01",
            "name": "Alice",
            "city": "Paris",
            "lat": 48.8566,
            "lng": 2.3522,
            "source": "lookup",
            "createdAt": "2024-11-02T10:15:00.000Z",
        },
        {
            "name": "Bob",
            "city": "Atlantis",
            "lat": None,
            "lng": None,
        },
    ]
    path.write_text(json.dumps(data, indent=2))
    return path


MEETGLOBE_ENV_VARS = (
    "MEETGLOBE_DATA_DIR",
    "MEETGLOBE_BACKEND",
    "MEETGLOBE_CITIES_PATH",
    "MEETGLOBE_MEMBERS_PATH",
    "MEETGLOBE_MEETINGS_DIR",
    "MEETGLOBE_DB_PATH",
    "MEETGLOBE_LOG_LEVEL",
    "MEETGLOBE_LOG_DIR",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run with no MEETGLOBE_* variables set and the working directory in tmp_path."""
    for name in MEETGLOBE_ENV_VARS:
        # setenv records the variable, so teardown also clears values loaded from .env
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return monkeypatch
