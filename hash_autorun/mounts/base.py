"""Abstract source of mount change notifications."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TypeAlias

from hash_autorun.models.event import MountEvent

MountCallback: TypeAlias = Callable[[MountEvent], None]


class MountEventSource(ABC):
    """Delivers a MountEvent to a callback whenever mount points appear.

    Implementations may invoke the callback from a background thread.
    """

    @abstractmethod
    def start(self, callback: MountCallback) -> None:
        """Begin delivering notifications to ``callback``."""

    @abstractmethod
    def stop(self) -> None:
        """Stop delivering notifications."""
