# service_ledger/exceptions.py

from typing import Any, Optional


class LedgerError(Exception):
    """Base class for every error raised by the billing and collections engine."""

    def __init__(self, message: str, entity: Optional[str] = None, entity_id: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.entity = entity
        self.entity_id = entity_id

    def to_dict(self):
        return {
            "error": type(self).__name__,
            "message": self.message,
            "entity": self.entity,
            "entity_id": self.entity_id,
        }


# --- Malformed input, rejected before any mutation ---
class ValidationError(LedgerError, ValueError):
    pass

class InvalidSchedule(ValidationError):
    pass

class CategoryTypeMismatch(ValidationError):
    pass


# --- The record is not in a state that allows the operation ---
class StateConflict(LedgerError):
    pass

class AlreadyPaid(StateConflict):
    pass

class AlreadyFinalized(StateConflict):
    pass

class ScheduleLocked(StateConflict):
    pass


class NotFound(LedgerError, LookupError):
    pass
