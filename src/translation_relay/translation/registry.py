"""Endpoint registry and routing state.

``EndpointRegistry`` owns the ordered list of translation endpoint URLs and
the ``RoutingState`` that the failover router reads and updates on every
dispatch round.

The list is replaced wholesale, never edited in place by callers:

- at construction, from the static configuration (``RELAY_ENDPOINTS`` /
  ``[endpoints] urls``);
- whenever the config feed pushes a non-empty list;
- back to the static default when the feed pushes an empty list.

Every replace or reset also resets the routing state to
``primary_index=0, fail_streak=0`` so that an index computed against an
older list is never reused.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class RoutingState:
    """Mutable routing position shared by every dispatch round.

    Attributes:
        primary_index: Index into the current endpoint list of the endpoint
                       tried first.  Always in ``[0, len(endpoints))`` when the
                       list is non-empty.
        fail_streak:   Consecutive dispatch rounds in which every endpoint
                       failed.  Cleared on any success or list replacement.
    """

    primary_index: int = 0
    fail_streak: int = 0

    def reset(self) -> None:
        self.primary_index = 0
        self.fail_streak = 0


class EndpointRegistry:
    """Holds the current endpoint list and its routing state."""

    def __init__(self, default_endpoints: Iterable[str] = ()) -> None:
        self._defaults: tuple[str, ...] = tuple(url for url in default_endpoints if url)
        self._endpoints: list[str] = list(self._defaults)
        self.state = RoutingState()
        # Bumped on every replace so a round in flight can tell its list went stale.
        self.generation = 0

    @property
    def endpoints(self) -> tuple[str, ...]:
        """Snapshot of the current endpoint list, in rotation order."""
        return tuple(self._endpoints)

    @property
    def defaults(self) -> tuple[str, ...]:
        """The static endpoint list restored when the feed clears its override."""
        return self._defaults

    def __len__(self) -> int:
        return len(self._endpoints)

    def __getitem__(self, index: int) -> str:
        return self._endpoints[index]

    def replace_endpoints(self, endpoints: Iterable[str] | None) -> None:
        """Replace the endpoint list, or restore the default when empty.

        Falsy entries (``""``, ``None``) are dropped from a non-empty list.
        Either branch resets the routing state.

        Args:
            endpoints: New ordered endpoint list.  ``None`` or an empty list
                       restores the static default.
        """
        incoming = list(endpoints or [])
        if incoming:
            self._endpoints = [url for url in incoming if url]
            logger.info("Endpoints updated from config feed: %s", self._endpoints)
        else:
            self._endpoints = list(self._defaults)
            logger.info("Endpoints reset to static configuration: %s", self._endpoints)
        self.generation += 1
        self.state.reset()
