"""Operation status and error taxonomy for profile edit sessions."""

from dataclasses import dataclass, field
from enum import Enum


class OperationStatus(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    FAILED = "failed"
    SUCCEEDED = "succeeded"

    @property
    def accepts_input(self) -> bool:
        """Whether field edits are allowed in this status."""
        return self in (OperationStatus.IDLE, OperationStatus.FAILED)

    @property
    def in_flight(self) -> bool:
        return self in (OperationStatus.VALIDATING, OperationStatus.SUBMITTING)


class ErrorKind(str, Enum):
    EMPTY_REQUIRED_FIELD = "empty_required_field"
    MISMATCHED_CONFIRMATION = "mismatched_confirmation"
    IDENTITY_NOT_FOUND = "identity_not_found"
    REMOTE_UPDATE_FAILED = "remote_update_failed"
    UNEXPECTED_FAILURE = "unexpected_failure"


@dataclass(frozen=True)
class SessionState:
    """Immutable snapshot of a session, handed to the presentation layer."""

    status: OperationStatus
    buffer: dict[str, str] = field(default_factory=dict)
    error: ErrorKind | None = None
    message: str = ""

    @property
    def accepts_input(self) -> bool:
        return self.status.accepts_input
