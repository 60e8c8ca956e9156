"""Composable environment wrappers.

Quick start::

    from gymnazo import wrappers
    from gymnazo.envs import CartPole

    env = wrappers.TimeLimit(CartPole(), max_episode_steps=200)
    env = wrappers.RecordEpisodeStatistics(env)
    env = wrappers.AutoReset(env, mode=wrappers.AutoresetMode.SAME_STEP)
"""

from gymnazo.wrappers.common import (
    AutoReset,
    AutoresetMode,
    OrderEnforcing,
    PassiveEnvChecker,
    RecordEpisodeStatistics,
    TimeLimit,
    wrap_validated,
)
from gymnazo.wrappers.image import GrayscaleObservation, ResizeObservation
from gymnazo.wrappers.stateful import (
    FramePadding,
    FrameSkip,
    FrameStackObservation,
    NormalizeObservation,
    NormalizeReward,
    RunningMeanStd,
)
from gymnazo.wrappers.transform import (
    ClipAction,
    FlattenObservation,
    RescaleAction,
    ShapeReward,
    TransformAction,
    TransformObservation,
    TransformReward,
)

__all__ = [
    # Validation and bookkeeping
    "AutoReset",
    "AutoresetMode",
    "OrderEnforcing",
    "PassiveEnvChecker",
    "RecordEpisodeStatistics",
    "TimeLimit",
    "wrap_validated",
    # Observation
    "FlattenObservation",
    "FramePadding",
    "FrameStackObservation",
    "GrayscaleObservation",
    "NormalizeObservation",
    "ResizeObservation",
    "TransformObservation",
    # Reward
    "NormalizeReward",
    "ShapeReward",
    "TransformReward",
    # Action
    "ClipAction",
    "RescaleAction",
    "TransformAction",
    # Time
    "FrameSkip",
    # Statistics
    "RunningMeanStd",
]
