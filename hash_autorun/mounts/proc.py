"""Linux mount notifications from the kernel mount table.

The kernel flags ``/proc/self/mounts`` with POLLPRI | POLLERR whenever the
mount namespace changes. Mount points themselves are listed with psutil.
"""

import logging
import select
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

import psutil

from hash_autorun.models.event import MountEvent
from hash_autorun.mounts.base import MountCallback, MountEventSource

log = logging.getLogger(__name__)

MOUNTS_PATH = "/proc/self/mounts"


def list_mount_points() -> frozenset[str]:
    """Return every currently mounted path, pseudo filesystems included."""
    return frozenset(part.mountpoint for part in psutil.disk_partitions(all=True))


@dataclass(kw_only=True)
class ProcMountsEventSource(MountEventSource):
    """Watches the kernel mount table from a daemon thread."""

    mounts_path: str = MOUNTS_PATH
    poll_interval: float = 1.0
    mount_points: Callable[[], frozenset[str]] = list_mount_points
    _known: frozenset[str] = field(default=frozenset(), init=False, repr=False)
    _stopping: threading.Event = field(
        default_factory=threading.Event, init=False, repr=False
    )
    _thread: threading.Thread | None = field(default=None, init=False, repr=False)

    def start(self, callback: MountCallback) -> None:
        """Snapshot the mount table and start watching it."""
        if self._thread is not None:
            raise RuntimeError("Mount watcher already started")

        self._known = self.mount_points()
        self._stopping.clear()
        self._thread = threading.Thread(
            target=self._watch, args=(callback,), name="mount-watch", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Ask the watcher thread to exit and wait for it."""
        self._stopping.set()
        if self._thread is not None:
            self._thread.join(timeout=self.poll_interval + 1.0)
            self._thread = None

    def refresh(self, callback: MountCallback) -> None:
        """Compare the mount table with the last snapshot and report additions."""
        current = self.mount_points()
        added = current - self._known
        self._known = current
        if added:
            log.debug("New mount points: %s", ", ".join(sorted(added)))
            callback(MountEvent(mounted=added, timestamp=time.monotonic()))

    def _watch(self, callback: MountCallback) -> None:
        try:
            self._poll(callback)
        except Exception:
            log.exception("Mount watcher stopped")

    def _poll(self, callback: MountCallback) -> None:
        with open(self.mounts_path, "rb") as mounts:
            poller = select.poll()
            poller.register(mounts, select.POLLPRI | select.POLLERR)
            timeout_ms = int(self.poll_interval * 1000)

            while not self._stopping.is_set():
                if not poller.poll(timeout_ms):
                    continue
                mounts.seek(0)
                mounts.read()
                try:
                    self.refresh(callback)
                except OSError:
                    log.exception("Failed to read mount points")
