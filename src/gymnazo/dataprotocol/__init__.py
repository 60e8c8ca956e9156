from gymnazo.dataprotocol.replay_buffer import ReplayBuffer
from gymnazo.types import Batch, Transition

__all__ = ["Batch", "ReplayBuffer", "Transition"]
