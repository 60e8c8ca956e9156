"""Training runners for the bundled agents.

Off-policy agents (DQN, SAC) use a Python outer loop over a stateful
environment for replay-buffer management and logging, with
``jax.jit``-compiled action selection and gradient updates.  The tabular
Q-learning / SARSA loop has the same shape with one TD update per step.

``evaluate`` rolls out a fixed policy for whole episodes and reports
mean/std return and mean length.
"""

from gymnazo.runner.config import RunnerConfig
from gymnazo.runner.evaluator import EvalMetrics, evaluate
from gymnazo.runner.train_dqn import DQNTrainResult, greedy_policy, train_dqn
from gymnazo.runner.train_sac import SACTrainResult, deterministic_policy, train_sac
from gymnazo.runner.train_tabular import TabularTrainResult, table_policy, train_tabular

__all__ = [
    # Config
    "RunnerConfig",
    # Evaluator
    "EvalMetrics",
    "evaluate",
    # DQN
    "DQNTrainResult",
    "greedy_policy",
    "train_dqn",
    # SAC
    "SACTrainResult",
    "deterministic_policy",
    "train_sac",
    # Tabular
    "TabularTrainResult",
    "table_policy",
    "train_tabular",
]
