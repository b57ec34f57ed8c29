"""Start a profile edit session from whatever the local cache holds."""

import structlog

from config.constants import IDENTITY_FIELD, Destination
from profile_edit.field_sets import FieldSet
from profile_edit.protocols import Navigator, ProfileCache, RecordStore
from profile_edit.session import ProfileEditSession

log = structlog.get_logger(__name__)


async def activate(
    field_set: FieldSet,
    store: RecordStore,
    cache: ProfileCache,
    navigator: Navigator,
    redirect_delay: float | None = None,
) -> ProfileEditSession | None:
    """Read the cached profile and open a session on it.

    With no cached profile, field-sets that need one redirect to login and
    return None; that is "no session", not an error.
    """
    record = cache.read()
    if record is None and field_set.requires_cached_profile:
        log.info("profile_edit_no_cached_profile", field_set=field_set.name)
        await navigator.redirect_to(Destination.LOGIN)
        return None

    identity_key = record.get(IDENTITY_FIELD) if record else None
    session = ProfileEditSession(
        field_set,
        store,
        cache,
        navigator,
        identity_key=identity_key,
        initial_record=record,
        redirect_delay=redirect_delay,
    )
    log.debug("profile_edit_activated", field_set=field_set.name, has_cache=record is not None)
    return session
