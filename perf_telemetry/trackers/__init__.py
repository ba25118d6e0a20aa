from .animation import AnimationTracker
from .frame import FrameTimingTracker
from .frequency import RebuildTracker, SetStateTracker, SlidingWindowCounter
from .measurement import DepthInfo, DepthTracker, SizeTracker, walk_tree
from .memory import MemoryTracker, process_rss_mb

__all__ = [
    "AnimationTracker",
    "DepthInfo",
    "DepthTracker",
    "FrameTimingTracker",
    "MemoryTracker",
    "RebuildTracker",
    "SetStateTracker",
    "SizeTracker",
    "SlidingWindowCounter",
    "process_rss_mb",
    "walk_tree",
]
