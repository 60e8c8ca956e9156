"""DQN hyperparameters."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DQNConfig:
    """All DQN hyperparameters in one place.

    Frozen dataclass, so it can be passed to jitted functions as a static
    argument.
    """

    # Network
    hidden_sizes: tuple[int, ...] = (128, 128)

    # Optimization
    lr: float = 1e-3
    gamma: float = 0.99
    batch_size: int = 64
    max_grad_norm: float = 10.0

    # Target network: every ``target_update_freq`` updates, move the target
    # towards the online network by ``tau`` (1.0 = hard copy).
    target_update_freq: int = 1_000
    tau: float = 1.0

    # Exploration
    epsilon_start: float = 1.0
    epsilon_end: float = 0.01
    epsilon_decay_steps: int = 50_000

    def __post_init__(self) -> None:
        if not 0.0 < self.tau <= 1.0:
            raise ValueError(f"tau must be in (0, 1], got {self.tau}")
        if self.target_update_freq <= 0:
            raise ValueError(f"target_update_freq must be positive, got {self.target_update_freq}")
