"""
Network availability detection.

Tracks whether the remote authority is reachable and notifies listeners
when connectivity comes back, so a sync can be attempted immediately.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

# Called on every offline -> online transition
ConnectivityListener = Callable[[], Awaitable[None]]


class ConnectivityMonitor:
    """Online/offline flag with transition notifications.

    The flag can be driven by probing (DNS resolution of the remote
    host) or set explicitly by the host application via ``set_online``.
    """

    def __init__(
        self,
        remote_url: str | None = None,
        interval: float = 15.0,
        timeout: float = 5.0,
        probe: bool = True,
        initially_online: bool = True,
    ) -> None:
        """Initialize the monitor.

        Args:
            remote_url: URL whose host is resolved to decide reachability
            interval: Seconds between probes while polling
            timeout: Seconds before a probe counts as offline
            probe: If False, never touch the network; only ``set_online`` changes state
            initially_online: Starting state before the first probe
        """
        parsed = urlparse(remote_url) if remote_url else None
        self.host = parsed.hostname if parsed else None
        self.port = (parsed.port or (443 if parsed.scheme == "https" else 80)) if parsed else None
        self.interval = interval
        self.timeout = timeout
        self.probe = probe and self.host is not None

        self._is_online = initially_online
        self._listeners: list[ConnectivityListener] = []
        self._task: asyncio.Task[None] | None = None

    @property
    def is_online(self) -> bool:
        """Current connectivity state."""
        return self._is_online

    def add_listener(self, listener: ConnectivityListener) -> None:
        """Register a coroutine function called when we come back online."""
        self._listeners.append(listener)

    def remove_listener(self, listener: ConnectivityListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def set_online(self, online: bool) -> None:
        """Set the state explicitly, notifying listeners on offline -> online."""
        was_online = self._is_online
        self._is_online = online

        if online and not was_online:
            logger.info("Connectivity restored")
            await self._notify()
        elif was_online and not online:
            logger.info("Connectivity lost")

    async def check(self) -> bool:
        """Probe the remote host and update the state.

        Returns:
            True if online, False otherwise
        """
        if not self.probe:
            return self._is_online

        loop = asyncio.get_running_loop()
        try:
            await asyncio.wait_for(loop.getaddrinfo(self.host, self.port), self.timeout)
            online = True
        except (OSError, TimeoutError):
            online = False

        await self.set_online(online)
        return online

    async def start(self) -> None:
        """Start polling in the background."""
        if self._task is not None or not self.probe:
            return

        async def poll_loop() -> None:
            while True:
                try:
                    await self.check()
                    await asyncio.sleep(self.interval)
                except asyncio.CancelledError:
                    break
                except Exception as e:
                    logger.error(f"Connectivity check error: {e}")
                    await asyncio.sleep(self.interval)

        self._task = asyncio.create_task(poll_loop())

    async def stop(self) -> None:
        """Stop background polling."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                await listener()
            except Exception as e:
                logger.error(f"Connectivity listener failed: {e}")
