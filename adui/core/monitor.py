"""
Connection monitor - polls the active provider, classifies its health and
falls back to the mock provider when the backend stays unreachable.
"""

import asyncio
import time
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from . import config
from ..util.logging import logger


class ConnectionState(str, Enum):
    CONNECTED = "connected"
    CACHED = "cached"
    OFFLINE = "offline"
    ERROR = "error"

    @property
    def degraded(self) -> bool:
        """Nothing usable: the backend is down and there is no cache to serve from."""
        return self in (ConnectionState.OFFLINE, ConnectionState.ERROR)


StateListener = Callable[[ConnectionState, ConnectionState], None]


class ConnectionMonitor:
    """
    State machine over the registry's active provider.

    check_now() classifies one health check:
        is_connected() True            -> connected
        False, valid cache present     -> cached
        False, nothing cached          -> offline
        exception during the check     -> error

    Once the state has been degraded continuously for longer than the grace
    period, the registry swaps to mock. That happens at most once while the
    registry stays in fallback. recheck() restarts the countdown.
    """

    def __init__(self, registry, interval: Optional[float] = None, grace_period: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.registry = registry
        self.interval = interval if interval is not None else config.get_monitor_interval()
        self.grace_period = grace_period if grace_period is not None else config.get_fallback_grace_period()
        self._clock = clock

        self.state = ConnectionState.OFFLINE
        self.last_checked: Optional[str] = None
        self.last_error: Optional[str] = None
        self.fallback_count = 0

        self._degraded_since: Optional[float] = None
        self._task: Optional[asyncio.Task] = None
        self._polling_requested = False
        self._listeners: List[StateListener] = []

        registry.add_listener(self._on_provider_swap)

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def fallback_pending(self) -> bool:
        return self._degraded_since is not None

    async def check_now(self) -> ConnectionState:
        """Run one health check and apply the fallback policy."""
        provider = self.registry.active
        self.last_checked = datetime.now().isoformat()

        if provider is None:
            new_state = ConnectionState.OFFLINE
        elif not provider.kind.polls:
            new_state = ConnectionState.CONNECTED
        else:
            try:
                connected = await provider.is_connected()
            except Exception as e:
                self.last_error = str(e) or type(e).__name__
                new_state = ConnectionState.ERROR
            else:
                self.last_error = None
                if connected:
                    new_state = ConnectionState.CONNECTED
                elif provider.has_cached_data():
                    new_state = ConnectionState.CACHED
                else:
                    new_state = ConnectionState.OFFLINE

        self._set_state(new_state)
        self._apply_fallback_policy()
        return self.state

    async def recheck(self) -> ConnectionState:
        """User-initiated retry. Any pending fallback countdown is cancelled first."""
        if self._degraded_since is not None:
            logger.info("Manual recheck cancelled pending fallback")
        self._degraded_since = None
        return await self.check_now()

    def _set_state(self, new_state: ConnectionState) -> None:
        old_state = self.state
        self.state = new_state
        if old_state == new_state:
            return

        provider = self.registry.active
        logger.log_connection_transition(provider.name if provider else "none", old_state.value, new_state.value,
                                         {"error": self.last_error} if self.last_error else None)
        for listener in list(self._listeners):
            listener(old_state, new_state)

    def _apply_fallback_policy(self) -> None:
        if not self.state.degraded:
            self._degraded_since = None
            return

        now = self._clock()
        if self._degraded_since is None:
            self._degraded_since = now
            return

        degraded_for = now - self._degraded_since
        if degraded_for > self.grace_period and not self.registry.fallback_active:
            from_provider = self.registry.active.name if self.registry.active else "none"
            if self.registry.fallback_to_mock():
                self.fallback_count += 1
                logger.log_fallback(from_provider, self.registry.active.name, degraded_for)

    def _on_provider_swap(self, old_provider, new_provider) -> None:
        self._degraded_since = None
        if not new_provider.kind.polls:
            self._cancel_polling()
            self._set_state(ConnectionState.CONNECTED)
            return

        if self._polling_requested:
            # Re-arm so the new provider is checked right away
            self._cancel_polling()
            try:
                self.start()
            except RuntimeError:
                logger.warning(f"No running event loop, polling for {new_provider.name} not restarted")

    # Polling loop

    def start(self) -> bool:
        """
        Start periodic checks on the running event loop.

        Polling stays requested across provider swaps until stop(), so it
        resumes when a polling provider becomes active again.

        Returns:
            False when the active provider does not need polling
        """
        self._polling_requested = True
        provider = self.registry.active
        if provider is None or not provider.kind.polls:
            logger.debug("Connection polling skipped for non-polling provider")
            return False
        if self.is_running:
            return True

        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"Connection monitor started (every {self.interval}s)")
        return True

    async def _run(self) -> None:
        while True:
            await self.check_now()
            await asyncio.sleep(self.interval)

    def _cancel_polling(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.info("Connection monitor stopped")

    async def stop(self) -> None:
        self._polling_requested = False
        task = self._task
        self._cancel_polling()
        if task is not None and task is not asyncio.current_task():
            try:
                await task
            except asyncio.CancelledError:
                pass

    def get_status(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "running": self.is_running,
            "interval_sec": self.interval,
            "grace_period_sec": self.grace_period,
            "fallback_pending": self.fallback_pending,
            "fallback_count": self.fallback_count,
            "last_checked": self.last_checked,
            "last_error": self.last_error
        }
