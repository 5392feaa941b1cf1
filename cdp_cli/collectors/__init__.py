"""Aggregators that assemble CDP notifications into console and network views."""

from .console import ConsoleAggregator, ConsoleEntry
from .network import LifecycleState, NetworkAggregator, NetworkEntity

__all__ = [
    "ConsoleAggregator",
    "ConsoleEntry",
    "LifecycleState",
    "NetworkAggregator",
    "NetworkEntity",
]
