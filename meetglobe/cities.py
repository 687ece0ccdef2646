"""
City coordinate lookup.

The city dataset is produced offline and is read-only here. Lookups go
through an in-memory map keyed by the lower-cased, trimmed city name that is
built once, on first use, and kept for the life of the process (or until
refresh() is called).
"""

import json
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from .errors import PersistenceError
from .logger import get_logger
from .models import City, Coordinates
from .normalize import city_lookup_key
from .schema import validate_city_record

logger = get_logger()

CityLoader = Callable[[], Iterable[Dict[str, Any]]]


def load_city_dataset(path: Path) -> List[Dict[str, Any]]:
    """
    Read a city dataset file.

    The file is either a JSON object whose values are city records (the
    layout the geocoding tool writes) or a JSON array of city records.

    Raises:
        PersistenceError: If the file is missing, unreadable or not JSON
    """
    if not path.exists():
        raise PersistenceError("City dataset not found", str(path))
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        raise PersistenceError(f"Could not read city dataset: {e}", str(path)) from e

    if isinstance(data, dict):
        return list(data.values())
    if isinstance(data, list):
        return data
    raise PersistenceError("City dataset must be a JSON object or array", str(path))


class CityResolver:
    """Resolves city names to coordinates. Never invents a coordinate."""

    def __init__(self, loader: CityLoader):
        self._loader = loader
        self._cities: Optional[Dict[str, City]] = None
        self._lock = threading.Lock()

    @classmethod
    def from_file(cls, path: Path) -> "CityResolver":
        return cls(lambda: load_city_dataset(Path(path)))

    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]]) -> "CityResolver":
        records = list(records)
        return cls(lambda: records)

    def _build(self) -> Dict[str, City]:
        cities: Dict[str, City] = {}
        skipped = 0
        for record in self._loader():
            errors = validate_city_record(record)
            if errors:
                skipped += 1
                logger.warning("Skipping invalid city record", record=record, errors=errors)
                continue
            city = City.from_record(record)
            key = city_lookup_key(city.normalized_name)
            if key in cities:
                logger.warning("Duplicate city in dataset, keeping first entry", city=key)
                continue
            cities[key] = city
        logger.debug("City cache initialized", cities=len(cities), skipped=skipped)
        return cities

    def _ensure_loaded(self) -> Dict[str, City]:
        cities = self._cities
        if cities is not None:
            return cities
        with self._lock:
            if self._cities is None:
                self._cities = self._build()
            return self._cities

    def load(self) -> None:
        """Build the cache now if it is not built yet. Raises PersistenceError for a missing dataset."""
        self._ensure_loaded()

    def refresh(self) -> None:
        """Drop the cache so the next lookup rebuilds it from the dataset."""
        with self._lock:
            self._cities = None

    def get(self, city_name: Optional[str]) -> Optional[City]:
        key = city_lookup_key(city_name)
        if not key:
            return None
        return self._ensure_loaded().get(key)

    def resolve(self, city_name: Optional[str]) -> Optional[Coordinates]:
        city = self.get(city_name)
        return city.coordinates if city is not None else None

    def exists(self, city_name: Optional[str]) -> bool:
        return self.get(city_name) is not None

    def all_cities(self) -> List[City]:
        return list(self._ensure_loaded().values())

    @property
    def size(self) -> int:
        return len(self._ensure_loaded())
