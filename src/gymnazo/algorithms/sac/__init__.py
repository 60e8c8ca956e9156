from gymnazo.algorithms.sac.agent import SAC, SACMetrics
from gymnazo.algorithms.sac.config import SACConfig
from gymnazo.algorithms.sac.network import GaussianActor, QNetwork, TwinQNetwork
from gymnazo.algorithms.sac.types import SACState

__all__ = [
    "SAC",
    "SACConfig",
    "SACMetrics",
    "SACState",
    "GaussianActor",
    "QNetwork",
    "TwinQNetwork",
]
