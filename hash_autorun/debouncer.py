"""Mount event debouncing.

Some mount notification backends report one mount several times in a row.
The debouncer collapses such bursts into a single trigger.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from hash_autorun.errors import HashError
from hash_autorun.models.event import MountEvent
from hash_autorun.mounts.base import MountEventSource

log = logging.getLogger(__name__)

DEBOUNCE_WINDOW = 1.0


class DebounceGate:
    """Admits a timestamp only if it is past the window of the last admitted one."""

    def __init__(self, window: float = DEBOUNCE_WINDOW) -> None:
        self.window = window
        self.last: float | None = None

    def admit(self, timestamp: float) -> bool:
        """Return True and remember ``timestamp`` if it should trigger."""
        if self.last is not None and timestamp - self.last <= self.window:
            return False
        self.last = timestamp
        return True


@dataclass(frozen=True, kw_only=True)
class MountDebouncer:
    """Triggers ``on_trigger`` when ``mount_point`` gets mounted.

    Notifications flow from the source's callback, possibly running on
    another thread, through a queue into a single consumer loop.
    """

    mount_point: str
    source: MountEventSource
    on_trigger: Callable[[], Awaitable[object]]
    window: float = DEBOUNCE_WINDOW

    async def run(self) -> None:
        """Consume mount notifications until cancelled.

    The source is stopped on a worker thread since stopping may block.
    """
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[float] = asyncio.Queue()

        def on_event(event: MountEvent) -> None:
            if self.mount_point in event.mounted:
                loop.call_soon_threadsafe(queue.put_nowait, event.timestamp)

        gate = DebounceGate(self.window)
        log.info("Watching mount point %s", self.mount_point)
        self.source.start(on_event)
        try:
            while True:
                timestamp = await queue.get()
                if not gate.admit(timestamp):
                    log.debug("Ignoring repeated mount of %s", self.mount_point)
                    continue

                log.info("Mount of %s detected", self.mount_point)
                try:
                    await self.on_trigger()
                except (HashError, OSError) as e:
                    log.error("Triggered sweep of %s failed: %s", self.mount_point, e)
        finally:
            await asyncio.to_thread(self.source.stop)
