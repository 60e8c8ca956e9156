"""Tabular TD hyperparameters."""

from __future__ import annotations

from dataclasses import dataclass

UPDATE_RULES = ("q_learning", "sarsa")


@dataclass(frozen=True)
class TabularConfig:
    """Q-learning / SARSA hyperparameters.

    Frozen dataclass, so it can be passed to jitted functions as a static
    argument.
    """

    # "q_learning" bootstraps from the greedy next action,
    # "sarsa" from the action actually taken next.
    update_rule: str = "q_learning"

    lr: float = 0.1
    gamma: float = 0.99

    # Exploration: multiplied by ``epsilon_decay`` after every episode
    epsilon_start: float = 1.0
    epsilon_decay: float = 0.999
    epsilon_min: float = 0.05

    def __post_init__(self) -> None:
        if self.update_rule not in UPDATE_RULES:
            raise ValueError(f"update_rule must be one of {UPDATE_RULES}, got {self.update_rule!r}")
        if not 0.0 < self.lr <= 1.0:
            raise ValueError(f"lr must be in (0, 1], got {self.lr}")
        if not 0.0 <= self.epsilon_min <= self.epsilon_start <= 1.0:
            raise ValueError(
                "need 0 <= epsilon_min <= epsilon_start <= 1, got "
                f"{self.epsilon_min} and {self.epsilon_start}"
            )
