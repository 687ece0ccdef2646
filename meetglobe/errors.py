"""
Error types shared by the registries and stores.

Not-found is never an exception here: lookups return None (or False for
deletes) so callers can branch on the result.
"""

from typing import List, Optional


class MeetGlobeError(Exception):
    """Base class for all meetglobe errors."""
    pass


class ValidationError(MeetGlobeError):
    """Raised when input is missing or malformed. Nothing is persisted."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid input")


class PersistenceError(MeetGlobeError):
    """Raised when a backing store cannot be read or written."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(f"{message} ({path})" if path else message)


class CorruptRecordError(PersistenceError):
    """Raised when a stored record exists but cannot be decoded."""
    pass
