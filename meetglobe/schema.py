import re
from datetime import date, datetime
from typing import Any, Dict, List

MAX_NAME_LENGTH = 100
MAX_CITY_LENGTH = 100
MAX_TITLE_LENGTH = 200

MEETING_ID_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _valid_timestamp(v: Any) -> bool:
    if not isinstance(v, str):
        return False
    try:
        datetime.fromisoformat(v.replace("Z", "+00:00"))
        return True
    except ValueError:
        return False


def _valid_date(v: Any) -> bool:
    if not isinstance(v, str) or len(v) != 10:
        return False
    try:
        date.fromisoformat(v)
        return True
    except ValueError:
        return False


def is_valid_meeting_id(meeting_id: Any) -> bool:
    return isinstance(meeting_id, str) and bool(MEETING_ID_PATTERN.match(meeting_id))


def validate_member_input(name: str, city: str) -> List[str]:
    """
    Checks an already-normalized (name, city) pair.
    Returns a list of validation error messages. Empty list means valid.
    """
    errors: List[str] = []
    if not name:
        errors.append("Name is required")
    elif len(name) > MAX_NAME_LENGTH:
        errors.append(f"Name too long (max {MAX_NAME_LENGTH} characters)")
    if not city:
        errors.append("City is required")
    elif len(city) > MAX_CITY_LENGTH:
        errors.append(f"City too long (max {MAX_CITY_LENGTH} characters)")
    return errors


def validate_member_record(data: Dict[str, Any]) -> List[str]:
    errors: List[str] = []
    if not isinstance(data, dict):
        return ["Member record must be an object"]

    if not _is_non_empty_str(data.get("id")):
        errors.append("Field 'id' must be a non-empty string")
    for f in ("name", "city"):
        if not _is_non_empty_str(data.get(f)):
            errors.append(f"Field '{f}' must be a non-empty string")

    # createdAt is optional on records written before timestamps existed
    if data.get("createdAt") is not None and not _valid_timestamp(data["createdAt"]):
        errors.append("Field 'createdAt' must be an ISO-8601 timestamp")
    return errors


def validate_city_record(data: Dict[str, Any]) -> List[str]:
    errors: List[str] = []
    if not isinstance(data, dict):
        return ["City record must be an object"]

    for f in ("normalizedName", "displayName"):
        if not _is_non_empty_str(data.get(f)):
            errors.append(f"Field '{f}' must be a non-empty string")

    lat = data.get("lat")
    lng = data.get("lng")
    if not _is_number(lat) or not -90 <= lat <= 90:
        errors.append("Field 'lat' must be a number in [-90, 90]")
    if not _is_number(lng) or not -180 <= lng <= 180:
        errors.append("Field 'lng' must be a number in [-180, 180]")

    if data.get("countryCode") is not None and not isinstance(data["countryCode"], str):
        errors.append("Field 'countryCode' must be a string if provided")
    return errors


def validate_meeting_title(title: Any) -> List[str]:
    if not _is_non_empty_str(title):
        return ["Title is required"]
    errors: List[str] = []
    if len(title.strip()) > MAX_TITLE_LENGTH:
        errors.append(f"Title too long (max {MAX_TITLE_LENGTH} characters)")
    if not re.search(r"[A-Za-z0-9]", title):
        errors.append("Title must contain at least one letter or digit")
    return errors


def validate_meeting_record(data: Dict[str, Any]) -> List[str]:
    errors: List[str] = []
    if not isinstance(data, dict):
        return ["Meeting record must be an object"]

    if not is_valid_meeting_id(data.get("id")):
        errors.append("Field 'id' must be a URL-safe slug")
    if not _is_non_empty_str(data.get("title")):
        errors.append("Field 'title' must be a non-empty string")
    if not _valid_date(data.get("date")):
        errors.append("Field 'date' must be a YYYY-MM-DD date")

    ids = data.get("participantIds")
    if not isinstance(ids, list) or not all(_is_non_empty_str(i) for i in ids):
        errors.append("Field 'participantIds' must be a list of member IDs")

    if not _valid_timestamp(data.get("createdAt")):
        errors.append("Field 'createdAt' must be an ISO-8601 timestamp")
    return errors


def _is_text_or_null(value: Any) -> bool:
    # Missing or null fields are left for find-or-create to report per participant
    return value is None or isinstance(value, str)


def validate_participants(participants: Any) -> List[str]:
    """Shape check for a create-meeting request body; per-participant content is checked later."""
    if not isinstance(participants, list):
        return ["Participants must be a list"]
    errors: List[str] = []
    for i, p in enumerate(participants):
        if isinstance(p, dict):
            if not all(_is_text_or_null(p.get(key)) for key in ("name", "city")):
                errors.append(f"Participant {i + 1}: 'name' and 'city' must be strings")
        elif isinstance(p, (list, tuple)):
            if len(p) != 2 or not all(_is_text_or_null(v) for v in p):
                errors.append(f"Participant {i + 1}: expected a (name, city) pair")
        else:
            errors.append(f"Participant {i + 1}: expected an object with 'name' and 'city'")
    return errors
