"""Agents that consume gymnazo environments."""

from gymnazo.algorithms.dqn import DQN, DQNConfig, DQNState
from gymnazo.algorithms.sac import SAC, SACConfig, SACState
from gymnazo.algorithms.tabular import Tabular, TabularConfig, TabularState

__all__ = [
    "DQN",
    "DQNConfig",
    "DQNState",
    "SAC",
    "SACConfig",
    "SACState",
    "Tabular",
    "TabularConfig",
    "TabularState",
]
