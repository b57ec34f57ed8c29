"""Navigation for the web surface: session destinations become URLs."""

import structlog
from config.constants import Destination
from config.settings import settings

log = structlog.get_logger(__name__)


def destination_url(destination: Destination) -> str:
    if destination is Destination.LOGIN:
        return settings.login_url
    return settings.profile_url


class RequestNavigator:
    """Records where a session wants to go so the route can answer with a redirect."""

    def __init__(self) -> None:
        self.destination: Destination | None = None

    async def redirect_to(self, destination: Destination) -> None:
        log.debug("navigation_requested", destination=destination.value)
        self.destination = destination

    @property
    def url(self) -> str | None:
        return destination_url(self.destination) if self.destination is not None else None
