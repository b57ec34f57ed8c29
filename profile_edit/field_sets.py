"""Field-set definitions: which fields a screen edits and how they are checked."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from config.constants import ADDRESS_FIELDS, CREDENTIAL_FIELDS, Destination
from config.settings import settings
from profile_edit.status import ErrorKind

Rule = Callable[[Mapping[str, str]], ErrorKind | None]


def require_non_blank(*names: str) -> Rule:
    """Fail with EMPTY_REQUIRED_FIELD if any named field is blank after trimming."""

    def rule(buffer: Mapping[str, str]) -> ErrorKind | None:
        if any(not buffer.get(name, "").strip() for name in names):
            return ErrorKind.EMPTY_REQUIRED_FIELD
        return None

    return rule


def require_non_empty(*names: str) -> Rule:
    """Fail with EMPTY_REQUIRED_FIELD if any named field is the empty string."""

    def rule(buffer: Mapping[str, str]) -> ErrorKind | None:
        if any(not buffer.get(name, "") for name in names):
            return ErrorKind.EMPTY_REQUIRED_FIELD
        return None

    return rule


def require_match(name: str, confirmation: str) -> Rule:
    """Fail with MISMATCHED_CONFIRMATION unless both fields are the exact same string."""

    def rule(buffer: Mapping[str, str]) -> ErrorKind | None:
        if buffer.get(name, "") != buffer.get(confirmation, ""):
            return ErrorKind.MISMATCHED_CONFIRMATION
        return None

    return rule


@dataclass(frozen=True)
class FieldSet:
    """The fixed list of fields one edit screen manages, plus its rules and outcomes.

    ``remote_fields`` is the partial record sent to the store, ``cache_fields``
    the subset merged into the cached profile on success. ``key_field`` names a
    buffer field whose value addresses the remote record; when ``None`` the
    session's identity key is used.
    """

    name: str
    fields: tuple[str, ...]
    rules: tuple[Rule, ...]
    messages: Mapping[ErrorKind, str]
    success_message: str
    success_destination: Destination
    cancel_destination: Destination
    redirect_delay: float
    remote_fields: tuple[str, ...] = ()
    cache_fields: tuple[str, ...] = ()
    key_field: str | None = None
    verify_identity: bool = False
    requires_cached_profile: bool = True
    secret_fields: frozenset[str] = field(default_factory=frozenset)

    def validate(self, buffer: Mapping[str, str]) -> ErrorKind | None:
        """Run rules in order; the first failure wins."""
        for rule in self.rules:
            error = rule(buffer)
            if error is not None:
                return error
        return None

    def message_for(self, error: ErrorKind) -> str:
        """Message for ``error``; kinds this screen cannot raise read as unexpected."""
        return self.messages.get(error, self.messages[ErrorKind.UNEXPECTED_FAILURE])

    def empty_buffer(self) -> dict[str, str]:
        return {name: "" for name in self.fields}


ADDRESS = FieldSet(
    name="address",
    fields=ADDRESS_FIELDS,
    rules=(require_non_blank("address"),),
    messages={
        ErrorKind.EMPTY_REQUIRED_FIELD: "Address cannot be empty.",
        ErrorKind.REMOTE_UPDATE_FAILED: "Failed to update address.",
        ErrorKind.UNEXPECTED_FAILURE: "Something went wrong.",
    },
    success_message="Address updated successfully!",
    success_destination=Destination.PROFILE,
    cancel_destination=Destination.PROFILE,
    redirect_delay=settings.address_redirect_delay,
    remote_fields=ADDRESS_FIELDS,
    cache_fields=ADDRESS_FIELDS,
)

CREDENTIAL_RESET = FieldSet(
    name="credential_reset",
    fields=CREDENTIAL_FIELDS,
    rules=(
        require_non_empty("email", "password", "confirm_password"),
        require_match("password", "confirm_password"),
    ),
    messages={
        ErrorKind.EMPTY_REQUIRED_FIELD: "All fields are required.",
        ErrorKind.MISMATCHED_CONFIRMATION: "Passwords do not match.",
        ErrorKind.IDENTITY_NOT_FOUND: "No account found with this email.",
        ErrorKind.REMOTE_UPDATE_FAILED: "Failed to reset password. Please try again.",
        ErrorKind.UNEXPECTED_FAILURE: "An unexpected error occurred. Please try again.",
    },
    success_message="Password reset successfully! Redirecting...",
    success_destination=Destination.LOGIN,
    cancel_destination=Destination.LOGIN,
    redirect_delay=settings.password_redirect_delay,
    remote_fields=("password",),
    key_field="email",
    verify_identity=True,
    requires_cached_profile=False,
    secret_fields=frozenset({"password", "confirm_password"}),
)

FIELD_SETS = {fs.name: fs for fs in (ADDRESS, CREDENTIAL_RESET)}
