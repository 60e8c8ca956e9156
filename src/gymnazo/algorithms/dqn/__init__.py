from gymnazo.algorithms.dqn.agent import DQN, DQNMetrics
from gymnazo.algorithms.dqn.config import DQNConfig
from gymnazo.algorithms.dqn.network import QNetwork
from gymnazo.algorithms.dqn.types import DQNState

__all__ = ["DQN", "DQNConfig", "DQNMetrics", "DQNState", "QNetwork"]
