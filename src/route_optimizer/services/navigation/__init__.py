"""Turn-by-turn navigation hand-off."""

from .batcher import (
    NavigationBatch,
    build_navigation_points,
    dispatch_batches,
    split_into_batches,
)

__all__ = [
    "NavigationBatch",
    "build_navigation_points",
    "split_into_batches",
    "dispatch_batches",
]
