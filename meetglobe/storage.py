"""
JSON file stores.

Members live in a single JSON array that is read and rewritten whole on every
mutation. Meetings live one record per file, addressed by meeting ID.

Stores move plain dicts and must not encode domain decisions; validation and
migration happen in the registries.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import CorruptRecordError, PersistenceError
from .schema import is_valid_meeting_id


def load_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    try:
        with path.open("r", encoding="utf-8") as f:
            content = f.read().strip()
            if not content:
                return default
            return json.loads(content)
    except json.JSONDecodeError as e:
        raise CorruptRecordError(f"Could not decode {path.name}: {e}", str(path)) from e
    except OSError as e:
        raise PersistenceError(f"Could not read {path.name}: {e}", str(path)) from e


def save_json(path: Path, data: Any) -> None:
    # Write to a sibling temp file and swap it in so readers never see a partial file
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
    except OSError as e:
        raise PersistenceError(f"Could not write {path.name}: {e}", str(path)) from e


class JsonMemberStore:
    """Whole-collection store for member records."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> List[Dict[str, Any]]:
        data = load_json(self.path, [])
        if not isinstance(data, list):
            raise PersistenceError("Members file must contain a JSON array", str(self.path))
        return data

    def save(self, records: List[Dict[str, Any]]) -> None:
        save_json(self.path, records)


class JsonMeetingStore:
    """One JSON file per meeting record, named after the meeting ID."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, meeting_id: str) -> Optional[Path]:
        # IDs are slugs; anything else could escape the directory
        if not is_valid_meeting_id(meeting_id):
            return None
        return self.directory / f"{meeting_id}.json"

    def exists(self, meeting_id: str) -> bool:
        path = self._path(meeting_id)
        return path is not None and path.exists()

    def read(self, meeting_id: str) -> Optional[Dict[str, Any]]:
        path = self._path(meeting_id)
        if path is None:
            return None
        return load_json(path, None)

    def write(self, record: Dict[str, Any]) -> None:
        path = self._path(record.get("id"))
        if path is None:
            raise PersistenceError(f"Refusing to write meeting with unsafe id {record.get('id')!r}")
        save_json(path, record)

    def delete(self, meeting_id: str) -> bool:
        path = self._path(meeting_id)
        if path is None or not path.exists():
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PersistenceError(f"Could not delete meeting: {e}", str(path)) from e
        return True

    def list_ids(self) -> List[str]:
        if not self.directory.exists():
            return []
        return sorted(p.stem for p in self.directory.glob("*.json"))
