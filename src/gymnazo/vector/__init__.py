"""Batched execution of several environments."""

from gymnazo.vector.sync_vector_env import SyncVectorEnv
from gymnazo.vector.utils import add_info, batch_space

__all__ = ["SyncVectorEnv", "add_info", "batch_space"]
