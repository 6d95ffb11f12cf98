"""Mount event source for platforms without mount notifications."""

import logging
import sys

from hash_autorun.mounts.base import MountCallback, MountEventSource

log = logging.getLogger(__name__)


class DisabledMountEventSource(MountEventSource):
    """Never emits; watching simply idles."""

    def start(self, callback: MountCallback) -> None:
        """Warn that no notification will ever arrive."""
        log.warning("Mount watching is not supported on %s", sys.platform)

    def stop(self) -> None:
        """Nothing to stop."""
