"""Real-time ("Alive") events and their dispatch.

Events arrive as plain mappings carrying a ``type`` tag. The router wraps
them into gidgethub events so handlers are registered per kind the same way
webhook handlers are; kinds without a handler are dropped.
"""

from typing import (
    Any,
    Awaitable,
    Callable,
    List,
    Literal,
    Mapping,
    Optional,
    Protocol,
    Set,
)
import logging

import pydantic
from gidgethub import sansio
from gidgethub.routing import Router

from tripwire.metric import alive_event_counter, error_counter

logger = logging.getLogger("tripwire")

CHECKS_FAILED = "pr-checks-failed"

AliveEventHandler = Callable[[Mapping[str, Any]], Awaitable[None]]


class AliveEvent(pydantic.BaseModel):
    type: str


class ChecksFailedAliveEvent(AliveEvent):
    type: Literal["pr-checks-failed"] = CHECKS_FAILED
    pull_request_number: int
    commit_sha: str
    check_suite_id: Optional[int] = None
    owner: Optional[str] = None
    repo: Optional[str] = None


class AliveStore(Protocol):
    def set_enabled(self, enabled: bool) -> None:
        ...

    def on_alive_event_received(self, handler: AliveEventHandler) -> None:
        ...


class LocalAliveStore:
    """In-process Alive store: whatever is published while enabled is handed
    to the subscribed handlers in order."""

    enabled: bool
    handlers: List[AliveEventHandler]

    def __init__(self):
        self.enabled = False
        self.handlers = []

    def set_enabled(self, enabled: bool) -> None:
        logger.debug("Alive subscription %s", "enabled" if enabled else "disabled")
        self.enabled = enabled

    def on_alive_event_received(self, handler: AliveEventHandler) -> None:
        self.handlers.append(handler)

    async def publish(self, data: Mapping[str, Any]) -> None:
        if not self.enabled:
            logger.debug("Alive store disabled, dropping event")
            return
        for handler in self.handlers:
            await handler(data)


class EventRouter:
    router: Router
    kinds: Set[str]

    def __init__(self):
        self.router = Router()
        self.kinds = set()

    def register(self, kind: str):
        self.kinds.add(kind)
        return self.router.register(kind)

    async def dispatch(self, data: Mapping[str, Any]) -> None:
        kind = data.get("type")
        if not isinstance(kind, str):
            logger.debug("Alive event without a type tag, ignoring")
            return

        if kind not in self.kinds:
            logger.debug("No handler for alive event %s, ignoring", kind)
            return

        alive_event_counter.labels(kind=kind).inc()
        event = sansio.Event(dict(data), event=kind, delivery_id=data.get("id"))

        logger.debug("Dispatching alive event %s", kind)
        try:
            await self.router.dispatch(event)
        except Exception:
            error_counter.labels(context="alive_dispatch").inc()
            logger.error("Exception raised when dispatching alive event", exc_info=True)
