"""Profile edit session: one edit-and-submit cycle over a fixed field-set."""

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import structlog

from config.constants import IDENTITY_FIELD, Destination
from profile_edit.field_sets import FieldSet
from profile_edit.protocols import Navigator, ProfileCache, RecordStore, RemoteStoreError
from profile_edit.status import ErrorKind, OperationStatus, SessionState
from utils.retry import sanitize_error

log = structlog.get_logger(__name__)

Listener = Callable[[SessionState], Awaitable[None] | None]


def seed_buffer(field_set: FieldSet, record: Mapping[str, Any] | None) -> dict[str, str]:
    """Build an edit buffer from a cached record. Missing or null fields become ""."""
    buffer = field_set.empty_buffer()
    if not record:
        return buffer
    for name in field_set.fields:
        if name in field_set.secret_fields:
            continue
        value = record.get(name)
        buffer[name] = "" if value is None else str(value)
    return buffer


def merge_into_cache(
    cached: Mapping[str, Any], buffer: Mapping[str, str], fields: tuple[str, ...]
) -> dict[str, Any]:
    """Field-wise overwrite of ``fields`` onto a copy of the cached record."""
    merged = dict(cached)
    for name in fields:
        merged[name] = buffer[name]
    return merged


class ProfileEditSession:
    """Mediates validation, the remote write and cache reconciliation for one screen.

    The status doubles as the single-flight guard: ``submit`` is ignored while a
    previous submit is validating or submitting, and ``set_field`` is only
    accepted in IDLE or FAILED.
    """

    def __init__(
        self,
        field_set: FieldSet,
        store: RecordStore,
        cache: ProfileCache,
        navigator: Navigator,
        identity_key: str | None = None,
        initial_record: Mapping[str, Any] | None = None,
        redirect_delay: float | None = None,
    ) -> None:
        self.field_set = field_set
        self._store = store
        self._cache = cache
        self._navigator = navigator
        self._identity_key = identity_key
        self._buffer = seed_buffer(field_set, initial_record)
        self._redirect_delay = field_set.redirect_delay if redirect_delay is None else redirect_delay

        self._status = OperationStatus.IDLE
        self._error: ErrorKind | None = None
        self._message = ""
        self._closed = False
        self._navigation: asyncio.Task[None] | None = None
        self._listeners: list[Listener] = []

    # ── Observation ──

    @property
    def identity_key(self) -> str | None:
        return self._identity_key

    @property
    def status(self) -> OperationStatus:
        return self._status

    @property
    def buffer(self) -> dict[str, str]:
        return dict(self._buffer)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def navigation_pending(self) -> bool:
        return self._navigation is not None and not self._navigation.done()

    @property
    def state(self) -> SessionState:
        return SessionState(
            status=self._status,
            buffer=dict(self._buffer),
            error=self._error,
            message=self._message,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for state changes. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _notify(self) -> None:
        snapshot = self.state
        for listener in list(self._listeners):
            try:
                result = listener(snapshot)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                log.error("session_listener_failed", field_set=self.field_set.name, error=str(e))

    async def _transition(
        self,
        status: OperationStatus,
        error: ErrorKind | None = None,
        message: str = "",
    ) -> None:
        self._status = status
        self._error = error
        self._message = message
        await self._notify()

    async def _fail(self, error: ErrorKind) -> OperationStatus:
        log.info("profile_edit_failed", field_set=self.field_set.name, error=error.value)
        await self._transition(OperationStatus.FAILED, error, self.field_set.message_for(error))
        return self._status

    # ── Edits ──

    async def set_field(self, name: str, value: str) -> bool:
        """Replace one buffer entry. Returns False if the session is not accepting input."""
        if name not in self._buffer:
            raise KeyError(f"{name!r} is not part of the {self.field_set.name} field-set")
        if not isinstance(value, str):
            raise TypeError(f"{name!r} must be a str, got {type(value).__name__}")
        if self._closed or not self._status.accepts_input:
            log.warning(
                "profile_edit_field_rejected",
                field_set=self.field_set.name,
                field=name,
                status=self._status.value,
            )
            return False
        self._buffer[name] = value
        await self._notify()
        return True

    # ── Submit ──

    def _remote_key(self, submitted: Mapping[str, str]) -> str | None:
        if self.field_set.key_field is not None:
            return submitted[self.field_set.key_field]
        return self._identity_key

    async def submit(self) -> OperationStatus:
        """Validate, write to the remote store and reconcile the cache.

        Never raises: every failure ends in FAILED with a user-facing message.
        The buffer is captured before the first suspension, so a teardown in
        between can never send the discarded buffer.
        """
        if self._closed:
            log.warning("profile_edit_submit_after_teardown", field_set=self.field_set.name)
            return self._status
        if self._status.in_flight:
            log.warning("profile_edit_submit_ignored", field_set=self.field_set.name, status=self._status.value)
            return self._status

        self._cancel_navigation()
        submitted = dict(self._buffer)
        await self._transition(OperationStatus.VALIDATING)
        if self._closed:
            return self._discard_late_response("validating")

        try:
            error = self.field_set.validate(submitted)
            if error is not None:
                return await self._fail(error)

            await self._transition(OperationStatus.SUBMITTING)
            if self._closed:
                return self._discard_late_response("submitting")

            key = self._remote_key(submitted)
            if key is None:
                log.error("profile_edit_missing_identity", field_set=self.field_set.name)
                return await self._fail(ErrorKind.UNEXPECTED_FAILURE)

            if self.field_set.verify_identity:
                try:
                    record = await self._store.lookup(key)
                except RemoteStoreError as e:
                    log.warning("profile_lookup_error", field_set=self.field_set.name, error=sanitize_error(str(e)))
                    record = None
                if self._closed:
                    return self._discard_late_response("lookup")
                if record is None:
                    return await self._fail(ErrorKind.IDENTITY_NOT_FOUND)

            partial = {name: submitted[name] for name in self.field_set.remote_fields}
            try:
                await self._store.update(key, partial)
            except RemoteStoreError as e:
                if self._closed:
                    return self._discard_late_response("update")
                log.warning("profile_update_error", field_set=self.field_set.name, error=sanitize_error(str(e)))
                return await self._fail(ErrorKind.REMOTE_UPDATE_FAILED)
            if self._closed:
                return self._discard_late_response("update")

            self._reconcile_cache(submitted)
        except Exception as e:
            if self._closed:
                return self._discard_late_response("error")
            log.error(
                "profile_edit_unexpected_error",
                field_set=self.field_set.name,
                error_type=type(e).__name__,
                error=sanitize_error(str(e)),
            )
            return await self._fail(ErrorKind.UNEXPECTED_FAILURE)

        log.info("profile_edit_succeeded", field_set=self.field_set.name, fields=list(self.field_set.remote_fields))
        await self._transition(OperationStatus.SUCCEEDED, message=self.field_set.success_message)
        if not self._closed:
            self._schedule_navigation(self.field_set.success_destination)
        return self._status

    def _reconcile_cache(self, submitted: Mapping[str, str]) -> None:
        cached = self._cache.read()
        if cached is None:
            if not self.field_set.cache_fields:
                return
            # Cache went away mid-edit; rebuild from what this session knew.
            cached = {IDENTITY_FIELD: self._identity_key} if self._identity_key else {}
        self._cache.write(merge_into_cache(cached, submitted, self.field_set.cache_fields))

    def _discard_late_response(self, stage: str) -> OperationStatus:
        log.info("profile_edit_late_response_ignored", field_set=self.field_set.name, stage=stage)
        return self._status

    # ── Navigation ──

    def _schedule_navigation(self, destination: Destination) -> None:
        self._cancel_navigation()
        self._navigation = asyncio.create_task(self._navigate_after(destination, self._redirect_delay))

    async def _navigate_after(self, destination: Destination, delay: float) -> None:
        await asyncio.sleep(delay)
        if self._closed:
            return
        try:
            await self._navigator.redirect_to(destination)
        except Exception as e:
            log.error("profile_edit_navigation_failed", destination=destination.value, error=str(e))

    def _cancel_navigation(self) -> None:
        if self._navigation is not None and not self._navigation.done():
            self._navigation.cancel()
        self._navigation = None

    async def cancel(self) -> None:
        """Abandon the edit and go back immediately. Nothing is validated or written."""
        if self._closed:
            return
        destination = self.field_set.cancel_destination
        self.teardown()
        log.info("profile_edit_cancelled", field_set=self.field_set.name)
        await self._navigator.redirect_to(destination)

    def teardown(self) -> None:
        """End the session: cancel any pending navigation and discard the buffer."""
        if self._closed:
            return
        self._closed = True
        self._cancel_navigation()
        self._buffer = self.field_set.empty_buffer()
        self._listeners.clear()
