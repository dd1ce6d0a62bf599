"""Result-or-failure values returned by collaborator lookups."""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel


class FailureKind(str, Enum):
    """Why a collaborator call produced no value."""
    NOT_FOUND = "not_found"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    INVALID_RESPONSE = "invalid_response"


class Outcome(BaseModel):
    """Either a value or a classified failure, never both."""
    value: Any = None
    failure: Optional[FailureKind] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: Any) -> "Outcome":
        return cls(value=value)

    @classmethod
    def fail(cls, kind: FailureKind, error: Optional[str] = None) -> "Outcome":
        return cls(failure=kind, error=error)
