"""Collaborator interfaces consumed by profile edit sessions."""

from typing import Any, Protocol

from config.constants import Destination


class RemoteStoreError(Exception):
    """Raised by a record store when a lookup or update does not go through."""

    def __init__(self, message: str, key: str | None = None) -> None:
        self.key = key
        super().__init__(message)


class RecordStore(Protocol):
    """Remote record store addressed by identity key."""

    async def lookup(self, key: str) -> dict[str, Any] | None:
        ...

    async def update(self, key: str, partial: dict[str, str]) -> None:
        ...


class ProfileCache(Protocol):
    """Single-slot local cache holding the current user's profile record."""

    def read(self) -> dict[str, Any] | None:
        ...

    def write(self, record: dict[str, Any]) -> None:
        ...


class Navigator(Protocol):
    async def redirect_to(self, destination: Destination) -> None:
        ...
