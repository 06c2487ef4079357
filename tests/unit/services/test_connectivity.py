"""Unit tests for the connectivity monitor and probe."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from notesync.events.bus import EventBus
from notesync.events.schemas import ConnectivityChanged
from notesync.services.connectivity import ConnectivityMonitor, ConnectivityProbe


class TestConnectivityMonitor:
    @pytest.mark.asyncio
    async def test_transitions_notify(self):
        monitor = ConnectivityMonitor(online=True)
        seen = []

        async def listener(online: bool) -> None:
            seen.append(online)

        monitor.subscribe(listener)
        await monitor.set_offline()
        await monitor.set_offline()
        await monitor.set_online()

        assert seen == [False, True]
        assert monitor.is_online

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        monitor = ConnectivityMonitor()
        listener = AsyncMock()
        unsubscribe = monitor.subscribe(listener)
        unsubscribe()
        await monitor.set_offline()
        listener.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_block_others(self):
        monitor = ConnectivityMonitor()
        broken = AsyncMock(side_effect=RuntimeError("boom"))
        healthy = AsyncMock()
        monitor.subscribe(broken)
        monitor.subscribe(healthy)

        await monitor.set_offline()

        healthy.assert_awaited_once_with(False)

    @pytest.mark.asyncio
    async def test_publishes_event(self):
        bus = EventBus()
        events = []

        async def handler(event):
            events.append(event)

        bus.subscribe(ConnectivityChanged, handler)
        monitor = ConnectivityMonitor(online=True, bus=bus)
        await monitor.set_offline()

        assert len(events) == 1
        assert events[0].online is False


class TestConnectivityProbe:
    @pytest.mark.asyncio
    async def test_check_once(self, document_store):
        monitor = ConnectivityMonitor(online=True)
        probe = ConnectivityProbe(monitor, document_store, interval=0.01)

        document_store.reachable = False
        assert await probe.check_once() is False
        assert not monitor.is_online

        document_store.reachable = True
        assert await probe.check_once() is True
        assert monitor.is_online

    @pytest.mark.asyncio
    async def test_ping_error_means_offline(self):
        store = AsyncMock()
        store.ping.side_effect = OSError("no route")
        monitor = ConnectivityMonitor(online=True)

        assert await ConnectivityProbe(monitor, store).check_once() is False
        assert not monitor.is_online

    @pytest.mark.asyncio
    async def test_background_polling(self, document_store):
        monitor = ConnectivityMonitor(online=True)
        probe = ConnectivityProbe(monitor, document_store, interval=0.01)
        document_store.reachable = False

        probe.start()
        assert probe.running
        for _ in range(50):
            if not monitor.is_online:
                break
            await asyncio.sleep(0.01)
        await probe.stop()

        assert not monitor.is_online
        assert not probe.running
