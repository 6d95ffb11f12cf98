"""Mount notification record."""

from dataclasses import dataclass


@dataclass(frozen=True, kw_only=True)
class MountEvent:
    """Mount points that appeared since the previous notification."""

    mounted: frozenset[str]
    timestamp: float
