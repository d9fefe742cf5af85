"""
Tests for the connection monitor state machine and automatic fallback.
"""

import asyncio

import pytest

from adui.core.monitor import ConnectionMonitor, ConnectionState
from adui.providers.base import DataProvider, ProviderKind
from adui.providers.mock import MockDataProvider
from adui.providers.registry import ProviderRegistry


class ScriptedProvider(DataProvider):
    """Polling provider whose health checks follow a script of results or exceptions."""

    kind = ProviderKind.EXTERNAL

    def __init__(self, script=None, cached=False):
        super().__init__()
        self.script = list(script or [])
        self.cached = cached
        self.checks = 0

    async def is_connected(self):
        self.checks += 1
        outcome = self.script.pop(0) if self.script else False
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def has_cached_data(self):
        return self.cached

    async def get_window_definition(self, window_id):
        raise NotImplementedError

    async def get_available_windows(self):
        return []

    async def get_reference_values(self, reference_id):
        return []

    async def save_form_data(self, window_id, record):
        raise NotImplementedError

    async def get_form_data(self, window_id, record_id=None):
        raise NotImplementedError


class ImportLikeProvider(ScriptedProvider):
    kind = ProviderKind.JSON_FILE


def make_monitor(provider, clock, grace_period=10.0, interval=30.0):
    registry = ProviderRegistry()
    registry.switch_provider(provider)
    return registry, ConnectionMonitor(registry, interval=interval, grace_period=grace_period, clock=clock)


class TestStateClassification:

    @pytest.mark.asyncio
    async def test_initial_state_offline(self, clock):
        _, monitor = make_monitor(ScriptedProvider(), clock)
        assert monitor.state == ConnectionState.OFFLINE

    @pytest.mark.asyncio
    async def test_three_failures_then_success(self, clock):
        failure = RuntimeError("socket closed")
        provider = ScriptedProvider([failure, failure, failure, True])
        _, monitor = make_monitor(provider, clock, grace_period=60)

        states = [await monitor.check_now() for _ in range(4)]

        assert states == [ConnectionState.ERROR, ConnectionState.ERROR, ConnectionState.ERROR,
                          ConnectionState.CONNECTED]
        assert monitor.last_error is None

    @pytest.mark.asyncio
    async def test_unreachable_with_cache_is_cached(self, clock):
        _, monitor = make_monitor(ScriptedProvider([False], cached=True), clock)
        assert await monitor.check_now() == ConnectionState.CACHED

    @pytest.mark.asyncio
    async def test_unreachable_without_cache_is_offline(self, clock):
        _, monitor = make_monitor(ScriptedProvider([False], cached=False), clock)
        assert await monitor.check_now() == ConnectionState.OFFLINE

    @pytest.mark.asyncio
    async def test_non_polling_provider_not_checked(self, clock):
        provider = ImportLikeProvider([RuntimeError("must not be called")])
        _, monitor = make_monitor(provider, clock)

        assert await monitor.check_now() == ConnectionState.CONNECTED
        assert provider.checks == 0

    @pytest.mark.asyncio
    async def test_listeners_receive_transitions(self, clock):
        _, monitor = make_monitor(ScriptedProvider([True, True, False], cached=True), clock)
        transitions = []
        monitor.add_listener(lambda old, new: transitions.append((old, new)))

        for _ in range(3):
            await monitor.check_now()

        assert transitions == [
            (ConnectionState.OFFLINE, ConnectionState.CONNECTED),
            (ConnectionState.CONNECTED, ConnectionState.CACHED),
        ]


class TestFallback:

    @pytest.mark.asyncio
    async def test_sustained_error_falls_back_once(self, clock):
        failure = RuntimeError("boom")
        provider = ScriptedProvider([failure] * 10)
        registry, monitor = make_monitor(provider, clock, grace_period=10)

        await monitor.check_now()
        clock.advance(5)
        await monitor.check_now()
        assert registry.active is provider

        clock.advance(6)
        state = await monitor.check_now()

        assert isinstance(registry.active, MockDataProvider)
        assert state == ConnectionState.CONNECTED
        assert monitor.fallback_count == 1

        fallback_provider = registry.active
        for _ in range(3):
            clock.advance(20)
            await monitor.check_now()
        assert registry.active is fallback_provider
        assert monitor.fallback_count == 1

    @pytest.mark.asyncio
    async def test_offline_without_cache_falls_back(self, clock):
        registry, monitor = make_monitor(ScriptedProvider([False, False], cached=False), clock, grace_period=10)

        await monitor.check_now()
        clock.advance(11)
        await monitor.check_now()

        assert registry.fallback_active

    @pytest.mark.asyncio
    async def test_cached_state_never_falls_back(self, clock):
        registry, monitor = make_monitor(ScriptedProvider([False] * 5, cached=True), clock, grace_period=10)

        for _ in range(5):
            await monitor.check_now()
            clock.advance(30)

        assert not registry.fallback_active

    @pytest.mark.asyncio
    async def test_recovery_resets_countdown(self, clock):
        failure = RuntimeError("boom")
        registry, monitor = make_monitor(ScriptedProvider([failure, True, failure]), clock, grace_period=10)

        await monitor.check_now()
        clock.advance(8)
        await monitor.check_now()
        clock.advance(8)
        await monitor.check_now()

        assert not registry.fallback_active
        assert monitor.fallback_pending

    @pytest.mark.asyncio
    async def test_manual_recheck_cancels_pending_fallback(self, clock):
        failure = RuntimeError("boom")
        provider = ScriptedProvider([failure] * 5)
        registry, monitor = make_monitor(provider, clock, grace_period=10)

        await monitor.check_now()
        clock.advance(11)
        await monitor.recheck()

        assert registry.active is provider
        assert monitor.state == ConnectionState.ERROR

        clock.advance(5)
        await monitor.check_now()
        assert registry.active is provider

        clock.advance(6)
        await monitor.check_now()
        assert isinstance(registry.active, MockDataProvider)


class TestPolling:

    @pytest.mark.asyncio
    async def test_start_skipped_for_non_polling(self, clock):
        _, monitor = make_monitor(MockDataProvider(), clock)

        assert monitor.start() is False
        assert not monitor.is_running

    @pytest.mark.asyncio
    async def test_start_and_stop(self, clock):
        provider = ScriptedProvider([True] * 100)
        _, monitor = make_monitor(provider, clock, interval=0.01)

        assert monitor.start() is True
        await asyncio.sleep(0.05)
        await monitor.stop()

        assert provider.checks >= 1
        assert not monitor.is_running
        assert monitor.state == ConnectionState.CONNECTED

    @pytest.mark.asyncio
    async def test_swap_to_non_polling_tears_down_polling(self, clock):
        registry, monitor = make_monitor(ScriptedProvider([True] * 100), clock, interval=0.01)
        monitor.start()
        await asyncio.sleep(0.02)

        registry.switch_provider(MockDataProvider())

        assert not monitor.is_running
        assert monitor.state == ConnectionState.CONNECTED
        assert monitor.get_status()["running"] is False
        await asyncio.sleep(0)

    @pytest.mark.asyncio
    async def test_polling_resumes_after_switch_back_from_fallback(self, clock):
        failure = RuntimeError("boom")
        registry, monitor = make_monitor(ScriptedProvider([failure] * 100), clock, interval=0.01, grace_period=10)
        monitor.start()
        await asyncio.sleep(0.02)

        clock.advance(11)
        await asyncio.sleep(0.03)
        assert isinstance(registry.active, MockDataProvider)
        assert not monitor.is_running

        recovered = ScriptedProvider([True] * 100)
        registry.switch_provider(recovered)

        assert monitor.is_running
        await asyncio.sleep(0.02)
        assert recovered.checks >= 1
        assert monitor.state == ConnectionState.CONNECTED
        assert not registry.fallback_active
        await monitor.stop()

    @pytest.mark.asyncio
    async def test_stopped_monitor_stays_stopped_on_swap(self, clock):
        registry, monitor = make_monitor(ScriptedProvider([True] * 100), clock, interval=0.01)
        monitor.start()
        await monitor.stop()

        registry.switch_provider(ScriptedProvider([True] * 100))

        assert not monitor.is_running
