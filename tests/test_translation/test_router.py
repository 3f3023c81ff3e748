"""Unit tests for FailoverRouter.

The endpoint client is replaced by ``FakeClient``, which answers per URL
from a script, so these tests exercise only rotation, promotion and
demotion.  HTTP behaviour is covered in ``test_transport.py``.
"""

import pytest

from tests.constants import ENDPOINT_A, ENDPOINT_B, ENDPOINT_C
from translation_relay.translation.errors import NoEndpointsConfiguredError
from translation_relay.translation.registry import EndpointRegistry, RoutingState
from translation_relay.translation.router import FailoverRouter


class FakeClient:
    """Endpoint client whose answers are set per URL.

    ``up`` holds the URLs that currently succeed; every attempt is logged
    in ``calls``.
    """

    def __init__(self, up=()):
        self.up = set(up)
        self.calls: list[str] = []

    async def attempt(self, url, text, target):
        self.calls.append(url)
        if url in self.up:
            return f"{target}:{text}@{url}"
        return None


def _router(registry, client, **kwargs) -> FailoverRouter:
    return FailoverRouter(registry=registry, client=client, **kwargs)


class TestNoEndpoints:
    async def test_empty_list_raises(self):
        router = _router(EndpointRegistry(), FakeClient())
        with pytest.raises(NoEndpointsConfiguredError):
            await router.dispatch("hi", "ja")

    def test_threshold_must_be_positive(self, registry):
        with pytest.raises(ValueError):
            _router(registry, FakeClient(), fail_threshold=0)


class TestSuccess:
    async def test_primary_success_stops_rotation(self, registry):
        client = FakeClient(up={ENDPOINT_A, ENDPOINT_B})
        result = await _router(registry, client).dispatch("hi", "ja")
        assert result == f"ja:hi@{ENDPOINT_A}"
        assert client.calls == [ENDPOINT_A]

    async def test_success_on_later_endpoint_promotes_it(self, registry):
        client = FakeClient(up={ENDPOINT_B})
        await _router(registry, client).dispatch("hi", "ja")
        assert registry.state == RoutingState(primary_index=1, fail_streak=0)
        assert client.calls == [ENDPOINT_A, ENDPOINT_B]

    async def test_success_clears_fail_streak(self, registry):
        registry.state.fail_streak = 1
        await _router(registry, FakeClient(up={ENDPOINT_A})).dispatch("hi", "ja")
        assert registry.state.fail_streak == 0

    async def test_rotation_starts_at_primary_and_wraps(self):
        registry = EndpointRegistry([ENDPOINT_A, ENDPOINT_B, ENDPOINT_C])
        registry.state.primary_index = 2
        client = FakeClient(up={ENDPOINT_B})
        await _router(registry, client).dispatch("hi", "ja")
        assert client.calls == [ENDPOINT_C, ENDPOINT_A, ENDPOINT_B]
        assert registry.state.primary_index == 1

    async def test_non_string_result_counts_as_success(self, registry):
        class NumberClient(FakeClient):
            async def attempt(self, url, text, target):
                return 0

        assert await _router(registry, NumberClient()).dispatch("hi", "ja") == 0


class TestRoundExhaustion:
    async def test_all_fail_returns_none(self, registry):
        client = FakeClient()
        assert await _router(registry, client).dispatch("hi", "ja") is None
        assert client.calls == [ENDPOINT_A, ENDPOINT_B]

    async def test_first_failed_round_increments_streak_only(self, registry):
        await _router(registry, FakeClient()).dispatch("hi", "ja")
        assert registry.state == RoutingState(primary_index=0, fail_streak=1)

    async def test_threshold_demotes_primary(self, registry):
        router = _router(registry, FakeClient())
        await router.dispatch("hi", "ja")
        await router.dispatch("hi", "ja")
        assert registry.state == RoutingState(primary_index=1, fail_streak=0)

    async def test_demotion_wraps_around(self, registry):
        registry.state.primary_index = 1
        router = _router(registry, FakeClient())
        await router.dispatch("hi", "ja")
        await router.dispatch("hi", "ja")
        assert registry.state.primary_index == 0

    async def test_custom_threshold(self, registry):
        router = _router(registry, FakeClient(), fail_threshold=3)
        for _ in range(2):
            await router.dispatch("hi", "ja")
        assert registry.state == RoutingState(primary_index=0, fail_streak=2)
        await router.dispatch("hi", "ja")
        assert registry.state == RoutingState(primary_index=1, fail_streak=0)


class TestScenario:
    async def test_two_endpoint_walkthrough(self, registry):
        client = FakeClient(up={ENDPOINT_B})
        router = _router(registry, client)

        # Call 1: A fails, B succeeds.
        assert await router.dispatch("one", "ja") is not None
        assert registry.state == RoutingState(1, 0)

        # Call 2: B fails, A succeeds.
        client.up = {ENDPOINT_A}
        assert await router.dispatch("two", "ja") is not None
        assert registry.state == RoutingState(0, 0)

        # Call 3: both fail.
        client.up = set()
        assert await router.dispatch("three", "ja") is None
        assert registry.state == RoutingState(0, 1)

        # Call 4: both fail again; threshold reached.
        assert await router.dispatch("four", "ja") is None
        assert registry.state == RoutingState(1, 0)


class TestListReplacedMidRound:
    async def test_stale_success_does_not_touch_new_state(self, registry):
        class ReplacingClient(FakeClient):
            async def attempt(self, url, text, target):
                if url == ENDPOINT_A:
                    registry.replace_endpoints([ENDPOINT_C])
                    return None
                return "ok"

        result = await _router(registry, ReplacingClient()).dispatch("hi", "ja")
        assert result == "ok"
        assert registry.endpoints == (ENDPOINT_C,)
        assert registry.state == RoutingState(0, 0)

    async def test_stale_failure_does_not_count(self, registry):
        class ReplacingClient(FakeClient):
            async def attempt(self, url, text, target):
                registry.replace_endpoints([ENDPOINT_C])
                return None

        await _router(registry, ReplacingClient()).dispatch("hi", "ja")
        assert registry.state == RoutingState(0, 0)
