"""
Connectivity monitoring for AgroSync

A ConnectivitySignal reports online/offline transitions to its subscribers.
The ConnectivityMonitor subscribes to one and starts a sync pass shortly
after the connection comes back, optionally also on a fixed interval.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Set

import httpx

from agrosync.core.models import SyncResult
from agrosync.core.sync_engine import SyncEngine

ConnectivityCallback = Callable[[bool], None]


class ConnectivitySignal(ABC):
    """Source of online/offline transitions"""

    def __init__(self):
        self._subscribers: List[ConnectivityCallback] = []
        self.logger = logging.getLogger(__name__)

    @abstractmethod
    def is_online(self) -> bool:
        """Current connectivity state"""

    def subscribe(self, callback: ConnectivityCallback):
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: ConnectivityCallback):
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _publish(self, online: bool):
        for callback in list(self._subscribers):
            try:
                callback(online)
            except Exception as e:
                self.logger.error(f"Connectivity subscriber failed: {e}")

    async def check_now(self) -> bool:
        """Refresh the current state once; signals that cannot be polled just report it"""
        return self.is_online()

    async def start(self):
        pass

    async def stop(self):
        pass


class StaticConnectivitySignal(ConnectivitySignal):
    """Signal flipped programmatically; subscribers are notified synchronously"""

    def __init__(self, online: bool = True):
        super().__init__()
        self._online = online

    def is_online(self) -> bool:
        return self._online

    def set_online(self, online: bool):
        if online == self._online:
            return
        self._online = online
        self.logger.info(f"Connectivity changed: {'online' if online else 'offline'}")
        self._publish(online)


class HttpProbeSignal(ConnectivitySignal):
    """Signal derived from periodically probing a URL"""

    def __init__(self, probe_url: str, interval: float = 15.0, timeout: float = 5.0,
                 initially_online: bool = False,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__()
        self.probe_url = probe_url
        self.interval = interval
        self.timeout = timeout
        self._online = initially_online
        self._transport = transport
        self._task: Optional[asyncio.Task] = None

    def is_online(self) -> bool:
        return self._online

    async def probe(self) -> bool:
        """One reachability check; any response below 500 counts as online"""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.probe_url)
            return response.status_code < 500
        except httpx.HTTPError as e:
            self.logger.debug(f"Connectivity probe failed: {e}")
            return False

    async def check_now(self) -> bool:
        online = await self.probe()
        if online != self._online:
            self._online = online
            self.logger.info(f"Connectivity changed: {'online' if online else 'offline'}")
            self._publish(online)
        return online

    async def start(self):
        if self._task is not None:
            return
        await self.check_now()
        self._task = asyncio.create_task(self._probe_loop())

    async def stop(self):
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _probe_loop(self):
        while True:
            await asyncio.sleep(self.interval)
            await self.check_now()


class ConnectivityMonitor:
    """Triggers sync passes on reconnect, on a timer, or on demand"""

    def __init__(self, signal: ConnectivitySignal, engine: SyncEngine,
                 settle_delay: float = 1.0, auto_sync_interval: float = 0):
        self.signal = signal
        self.engine = engine
        self.settle_delay = settle_delay
        self.auto_sync_interval = auto_sync_interval
        self.logger = logging.getLogger(__name__)

        self._settle_task: Optional[asyncio.Task] = None
        self._auto_task: Optional[asyncio.Task] = None
        self._sync_tasks: Set[asyncio.Task] = set()
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self):
        """Subscribe to the signal and start optional periodic syncing"""
        if self._running:
            return

        self.signal.subscribe(self._on_connectivity_change)
        await self.signal.start()
        self._running = True

        if self.auto_sync_interval and self.auto_sync_interval > 0:
            self._auto_task = asyncio.create_task(self._auto_sync_loop())

        self.logger.info("Connectivity monitor started")

    async def stop(self):
        """Unsubscribe and wait for any pass already started"""
        if not self._running:
            return

        self._running = False
        self.signal.unsubscribe(self._on_connectivity_change)
        await self.signal.stop()

        if self._auto_task is not None:
            self._auto_task.cancel()
            try:
                await self._auto_task
            except asyncio.CancelledError:
                pass
            self._auto_task = None

        self._cancel_settle()
        while self._sync_tasks:
            await asyncio.gather(*list(self._sync_tasks), return_exceptions=True)

        self.logger.info("Connectivity monitor stopped")

    def _on_connectivity_change(self, online: bool):
        if online:
            self.logger.info("Connection restored - starting sync after settle delay")
            self._cancel_settle()
            self._settle_task = self._spawn(self._sync_after_settle())
        else:
            self.logger.info("Connection lost - sync deferred")
            self._cancel_settle()

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._sync_tasks.add(task)
        task.add_done_callback(self._sync_tasks.discard)
        return task

    def _cancel_settle(self):
        if self._settle_task is not None and not self._settle_task.done():
            self._settle_task.cancel()
        self._settle_task = None

    async def _sync_after_settle(self):
        await asyncio.sleep(self.settle_delay)
        if not self.signal.is_online():
            return
        # Separate task: a disconnect only cancels the settle wait
        self._spawn(self._run_sync())

    async def _run_sync(self):
        result = await self.engine.sync_to_remote()
        if result.synced_count > 0:
            self.logger.info(f"Synced {result.synced_count} changes to cloud")

    async def sync_now(self) -> SyncResult:
        """Manual trigger, bypassing the settle delay"""
        return await self.engine.sync_to_remote()

    async def _auto_sync_loop(self):
        while True:
            await asyncio.sleep(self.auto_sync_interval)
            if not self.signal.is_online():
                continue
            try:
                await self.engine.sync_to_remote()
            except Exception as e:
                self.logger.error(f"Periodic sync failed: {e}", exc_info=True)
