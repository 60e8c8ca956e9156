"""SAC hyperparameters."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass

import numpy as np
import optax


@dataclass(frozen=True)
class SACConfig:
    """All SAC hyperparameters in one place.

    Frozen dataclass, so it can be passed to jitted functions as a static
    argument.  Action bounds are scalars or per-dimension tuples; use
    :meth:`with_action_bounds` to take them from an environment's ``Box``.
    """

    # Network
    hidden_sizes: tuple[int, ...] = (256, 256)

    # Optimization
    actor_lr: float = 3e-4
    critic_lr: float = 3e-4
    alpha_lr: float = 3e-4
    gamma: float = 0.99
    batch_size: int = 256
    max_grad_norm: float = 10.0

    # Target network (Polyak averaging)
    tau: float = 0.005

    # Entropy
    init_alpha: float = 1.0
    autotune_alpha: bool = True
    target_entropy_scale: float = 1.0  # target_entropy = -scale * action_dim

    # Action bounds used to rescale tanh-squashed samples
    action_low: float | tuple[float, ...] = -1.0
    action_high: float | tuple[float, ...] = 1.0

    # Log-std clamps for the actor
    log_std_min: float = -20.0
    log_std_max: float = 2.0

    def with_action_bounds(self, low, high) -> SACConfig:
        """Copy of this config with bounds taken from array-likes (e.g. ``Box.low``)."""
        low_t = tuple(float(x) for x in np.asarray(low, dtype=np.float64).ravel())
        high_t = tuple(float(x) for x in np.asarray(high, dtype=np.float64).ravel())
        return dataclasses.replace(self, action_low=low_t, action_high=high_t)

    def _make_optimizer(self, lr: float) -> optax.GradientTransformation:
        return optax.chain(
            optax.clip_by_global_norm(self.max_grad_norm),
            optax.adam(lr),
        )

    def make_actor_optimizer(self) -> optax.GradientTransformation:
        return self._make_optimizer(self.actor_lr)

    def make_critic_optimizer(self) -> optax.GradientTransformation:
        return self._make_optimizer(self.critic_lr)

    def make_alpha_optimizer(self) -> optax.GradientTransformation:
        return self._make_optimizer(self.alpha_lr)
