"""
Connectivity Monitor.

Holds the online/offline state and tells subscribers about transitions.
The state can be driven directly (`set_online` / `set_offline`) by
whatever the host platform reports, or by a ConnectivityProbe polling the
remote store's health endpoint.

Usage:
    monitor = ConnectivityMonitor()
    unsubscribe = monitor.subscribe(on_change)   # async def on_change(online: bool)
    await monitor.set_offline()

    probe = ConnectivityProbe(monitor, store, interval=15)
    probe.start()
    ...
    await probe.stop()
"""

import asyncio
from collections.abc import Awaitable, Callable

from notesync.core.logging import get_logger, log_with_source
from notesync.events.bus import EventBus
from notesync.events.schemas import ConnectivityChanged
from notesync.storage.documents import DocumentStore

logger = get_logger(__name__)

ConnectivityListener = Callable[[bool], Awaitable[None]]


class ConnectivityMonitor:
    """Current connectivity state plus transition notifications."""

    def __init__(self, online: bool = True, bus: EventBus | None = None) -> None:
        self._online = online
        self._bus = bus
        self._listeners: list[ConnectivityListener] = []

    @property
    def is_online(self) -> bool:
        return self._online

    def subscribe(self, listener: ConnectivityListener) -> Callable[[], None]:
        """
        Register a coroutine called with the new state on every transition.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def set_online(self) -> None:
        await self._transition(True)

    async def set_offline(self) -> None:
        await self._transition(False)

    async def _transition(self, online: bool) -> None:
        if online == self._online:
            return
        self._online = online
        log_with_source(
            logger, "connectivity", "info",
            "Connectivity changed", online=online,
        )
        if self._bus is not None:
            await self._bus.publish(
                ConnectivityChanged(source="connectivity-monitor", payload={"online": online})
            )
        for listener in list(self._listeners):
            try:
                await listener(online)
            except Exception as e:
                logger.error(
                    "Connectivity listener failed",
                    extra={"online": online, "error": str(e)},
                )


class ConnectivityProbe:
    """Polls a document store's `ping` and feeds the result to a monitor."""

    def __init__(
        self,
        monitor: ConnectivityMonitor,
        store: DocumentStore,
        interval: float = 15.0,
    ) -> None:
        self.monitor = monitor
        self.store = store
        self.interval = interval
        self._task: asyncio.Task | None = None

    @classmethod
    def from_config(cls, monitor: ConnectivityMonitor, store: DocumentStore) -> "ConnectivityProbe":
        from notesync.core.config import get_app_config

        return cls(monitor, store, interval=get_app_config().sync.probe_interval_seconds)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def check_once(self) -> bool:
        """Probe the store once and update the monitor."""
        try:
            reachable = await self.store.ping()
        except Exception as e:
            logger.warning("Connectivity probe failed", extra={"error": str(e)})
            reachable = False
        if reachable:
            await self.monitor.set_online()
        else:
            await self.monitor.set_offline()
        return reachable

    async def _run(self) -> None:
        while True:
            await self.check_once()
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="connectivity-probe")
        logger.debug("Connectivity probe started", extra={"interval": self.interval})

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.debug("Connectivity probe stopped")
