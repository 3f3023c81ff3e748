"""
Shared pytest fixtures for the translation relay test suite.

This module provides fixtures that are automatically available to all test files:
- Endpoint registries with a fixed two-endpoint pool
- In-memory cache stores
- Dispatchers wired to those pieces with throttling disabled

HTTP traffic is never real: tests that reach the transport mock it with
``respx`` or replace the endpoint client outright.
"""

from collections.abc import AsyncGenerator

import pytest

from tests.constants import ENDPOINT_A, ENDPOINT_B
from translation_relay.translation.cache import MemoryStore, TranslationCache
from translation_relay.translation.registry import EndpointRegistry
from translation_relay.translation.service import TranslationDispatcher


@pytest.fixture
def registry() -> EndpointRegistry:
    """Registry whose static default pool is ``[A, B]``."""
    return EndpointRegistry([ENDPOINT_A, ENDPOINT_B])


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
async def dispatcher(
    registry: EndpointRegistry, store: MemoryStore
) -> AsyncGenerator[TranslationDispatcher, None]:
    """Dispatcher over ``[A, B]`` with a memory-backed cache and no throttle."""
    async with TranslationDispatcher(
        registry=registry,
        cache=TranslationCache(store),
        throttle_seconds=0,
        timeout_seconds=5.0,
    ) as dispatcher:
        yield dispatcher
