"""Replay buffer for off-policy agents.

Storage and mutation use pre-allocated numpy arrays; ``sample`` returns
jax arrays.  The buffer lives outside the compiled update step::

    for step in range(total_steps):
        action = select_action(obs)
        next_obs, reward, terminated, truncated, info = env.step(action)
        buffer.push(obs, action, reward, next_obs, terminated)
        if len(buffer) >= learning_starts:
            batch = buffer.sample(batch_size)   # Transition of jax arrays
            state, metrics = update(state, batch)
"""

from __future__ import annotations

from typing import Any

import jax.numpy as jnp
import numpy as np

from gymnazo.error import InvalidConfiguration
from gymnazo.types import Transition


class ReplayBuffer:
    """Fixed-size circular buffer with uniform random sampling.

    Discrete agents keep the defaults (scalar ``int32`` actions);
    continuous agents pass ``action_shape=(act_dim,)`` and
    ``action_dtype=np.float32``.  ``seed`` makes sampling reproducible.
    """

    def __init__(
        self,
        capacity: int,
        obs_shape: tuple[int, ...],
        action_shape: tuple[int, ...] = (),
        action_dtype: Any = np.int32,
        seed: int | None = None,
    ) -> None:
        if capacity <= 0:
            raise InvalidConfiguration(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._size = 0
        self._ptr = 0
        self._rng = np.random.default_rng(seed)

        self._obs = np.zeros((capacity, *obs_shape), dtype=np.float32)
        self._actions = np.zeros((capacity, *action_shape), dtype=action_dtype)
        self._rewards = np.zeros(capacity, dtype=np.float32)
        self._next_obs = np.zeros((capacity, *obs_shape), dtype=np.float32)
        self._terminated = np.zeros(capacity, dtype=np.bool_)

    def push(
        self,
        obs: Any,
        action: Any,
        reward: float,
        next_obs: Any,
        terminated: bool,
    ) -> None:
        """Store a single transition, overwriting the oldest when full."""
        idx = self._ptr
        self._obs[idx] = np.asarray(obs)
        self._actions[idx] = np.asarray(action)
        self._rewards[idx] = reward
        self._next_obs[idx] = np.asarray(next_obs)
        self._terminated[idx] = terminated
        self._ptr = (self._ptr + 1) % self.capacity
        self._size = min(self._size + 1, self.capacity)

    def push_transition(self, t: Transition) -> None:
        self.push(t.obs, t.action, float(t.reward), t.next_obs, bool(t.terminated))

    def sample(self, batch_size: int) -> Transition:
        """Uniformly sample a batch (with replacement) as jax arrays."""
        if self._size == 0:
            raise ValueError("Cannot sample from an empty replay buffer")
        indices = self._rng.integers(0, self._size, size=batch_size)
        return Transition(
            obs=jnp.asarray(self._obs[indices]),
            action=jnp.asarray(self._actions[indices]),
            reward=jnp.asarray(self._rewards[indices]),
            next_obs=jnp.asarray(self._next_obs[indices]),
            terminated=jnp.asarray(self._terminated[indices]),
        )

    def __len__(self) -> int:
        return self._size
