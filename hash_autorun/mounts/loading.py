"""Selection of the mount event backend for the running platform."""

import sys

from hash_autorun.mounts.base import MountEventSource
from hash_autorun.mounts.disabled import DisabledMountEventSource


def watch_supported(platform: str = sys.platform) -> bool:
    """Check whether the platform has a native mount notification backend."""
    return platform.startswith("linux")


def default_mount_event_source(platform: str = sys.platform) -> MountEventSource:
    """Return the native backend, or a disabled one where none exists."""
    if watch_supported(platform):
        from hash_autorun.mounts.proc import ProcMountsEventSource

        return ProcMountsEventSource()
    return DisabledMountEventSource()
