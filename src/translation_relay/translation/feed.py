"""Consumer side of the endpoint configuration feed.

An external source pushes the relay's config document whenever it changes.
The relay only cares about one field of that document, an ordered list of
endpoint URLs (``gasEndpoints`` by default):

- a non-empty list replaces the current endpoint list;
- an empty list restores the static default list;
- a document without the field, or with a non-list value, is ignored.

The feed itself (its transport and authentication) is not part of this
package.  Anything with a ``subscribe(on_snapshot, on_error)`` method that
returns an unsubscribe callable can be plugged in as a ``ConfigFeed``.

Access control
--------------
The feed may only be read while a user is signed in.  ``SessionGatedFeed``
subscribes when an auth listener reports a user and unsubscribes when the
user signs out.  "Permission denied" errors from the feed are expected for
non-admin sessions and are logged at DEBUG; anything else is logged as an
error.  Neither ever propagates.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, Protocol

from translation_relay.translation.errors import FeedAccessDeniedError
from translation_relay.translation.registry import EndpointRegistry

logger = logging.getLogger(__name__)

SnapshotHandler = Callable[[Mapping[str, Any] | None], None]
ErrorHandler = Callable[[BaseException], None]
Unsubscribe = Callable[[], None]

PERMISSION_DENIED = "permission-denied"


class ConfigFeed(Protocol):
    """A push source of config documents."""

    def subscribe(self, on_snapshot: SnapshotHandler, on_error: ErrorHandler) -> Unsubscribe: ...


class ConfigFeedListener:
    """Applies pushed config documents to an ``EndpointRegistry``.

    Attributes:
        _registry:        Registry whose endpoint list is replaced.
        _endpoints_field: Document field that holds the endpoint list.
    """

    def __init__(self, registry: EndpointRegistry, *, endpoints_field: str = "gasEndpoints"):
        self._registry = registry
        self._endpoints_field = endpoints_field

    def on_snapshot(self, data: Mapping[str, Any] | None) -> None:
        if not data:
            return
        endpoints = data.get(self._endpoints_field)
        if not isinstance(endpoints, list):
            return
        self._registry.replace_endpoints(endpoints)

    def on_error(self, exc: BaseException) -> None:
        denied = isinstance(exc, FeedAccessDeniedError)
        if denied or getattr(exc, "code", None) == PERMISSION_DENIED:
            logger.debug("Config feed listener blocked: %s", PERMISSION_DENIED)
            return
        logger.error("Config feed listener error: %s", exc, exc_info=exc)


class SessionGatedFeed:
    """Keeps a feed subscription alive only while a user is signed in.

    Wire ``on_auth_state_changed`` to the host application's auth listener.

    Attributes:
        _feed:        The config feed.
        _listener:    Handler for snapshots and errors.
        _unsubscribe: Active subscription's unsubscribe callable, if any.
    """

    def __init__(self, feed: ConfigFeed, listener: ConfigFeedListener) -> None:
        self._feed = feed
        self._listener = listener
        self._unsubscribe: Unsubscribe | None = None

    @property
    def subscribed(self) -> bool:
        return self._unsubscribe is not None

    def on_auth_state_changed(self, user: object | None) -> None:
        """React to sign-in (subscribe once) and sign-out (unsubscribe)."""
        if user is None:
            self.close()
            return
        if self._unsubscribe is not None:
            return
        try:
            self._unsubscribe = self._feed.subscribe(
                self._listener.on_snapshot, self._listener.on_error
            )
        except Exception as exc:
            # A feed that is not ready yet is treated like a feed error.
            self._listener.on_error(exc)

    def close(self) -> None:
        if self._unsubscribe is None:
            return
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        unsubscribe()
