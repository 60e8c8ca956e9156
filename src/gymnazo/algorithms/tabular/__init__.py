from gymnazo.algorithms.tabular.agent import Tabular, TabularMetrics, num_states, state_index
from gymnazo.algorithms.tabular.config import TabularConfig
from gymnazo.algorithms.tabular.types import TabularState

__all__ = [
    "Tabular",
    "TabularConfig",
    "TabularMetrics",
    "TabularState",
    "num_states",
    "state_index",
]
