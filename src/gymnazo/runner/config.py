"""Runner configuration."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RunnerConfig:
    """Shared settings for the off-policy training loops.

    Controls the outer loop, evaluation schedule, logging and
    checkpointing.  Algorithm-specific settings live in the algorithm's
    own config (``DQNConfig``, ``SACConfig``).
    """

    # Training budget (environment steps)
    total_timesteps: int = 100_000

    # Replay
    buffer_size: int = 100_000
    warmup_steps: int = 1_000
    train_freq: int = 1  # gradient update every N env steps

    # Evaluation (0 disables)
    eval_every: int = 0
    eval_episodes: int = 10

    # Logging
    log_interval: int = 1_000
    metrics_path: str | None = None  # JSONL file, None = no file

    # Seeding
    seed: int = 0

    # Checkpointing
    checkpoint_dir: str | None = None  # None = no checkpointing
    checkpoint_interval: int = 5_000

    def __post_init__(self) -> None:
        if self.total_timesteps <= 0:
            raise ValueError(f"total_timesteps must be positive, got {self.total_timesteps}")
        if self.train_freq <= 0:
            raise ValueError(f"train_freq must be positive, got {self.train_freq}")
        if self.log_interval <= 0:
            raise ValueError(f"log_interval must be positive, got {self.log_interval}")
