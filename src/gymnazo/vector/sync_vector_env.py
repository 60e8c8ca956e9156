"""Step several independent environments in lockstep in one process."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import jax
import jax.numpy as jnp
import numpy as np

from gymnazo.core import Env
from gymnazo.error import InvalidConfiguration, InvalidSpace
from gymnazo.vector.utils import add_info, batch_space
from gymnazo.wrappers.common import AutoresetMode


class SyncVectorEnv:
    """Runs ``len(env_fns)`` environments sequentially behind a batched API.

    Observations are stacked along a new leading axis; rewards and flags
    are numpy arrays of shape ``(num_envs,)``; infos are merged with
    :func:`gymnazo.vector.utils.add_info`.

    Sub-environments that finish an episode are reset automatically
    according to ``autoreset_mode`` (see :class:`~gymnazo.wrappers.AutoresetMode`);
    the finished episode's last observation and info are reported under
    ``info["final_observation"]`` / ``info["final_info"]``.

    Example::

        envs = SyncVectorEnv([lambda: make("CartPole-v1") for _ in range(4)])
        obs, infos = envs.reset(seed=0)        # env i is seeded with 0 + i
        obs, rewards, terminated, truncated, infos = envs.step(np.ones(4, dtype=np.int32))
    """

    def __init__(
        self,
        env_fns: Sequence[Callable[[], Env]],
        autoreset_mode: AutoresetMode | str = AutoresetMode.NEXT_STEP,
    ) -> None:
        if len(env_fns) == 0:
            raise InvalidConfiguration("SyncVectorEnv needs at least one environment")
        try:
            self.autoreset_mode = AutoresetMode(autoreset_mode)
        except ValueError:
            raise InvalidConfiguration(f"Unknown autoreset mode {autoreset_mode!r}") from None

        self.envs = [fn() for fn in env_fns]
        self.num_envs = len(self.envs)
        first = self.envs[0]
        self.metadata = first.metadata
        self.spec = first.spec
        self.render_mode = first.render_mode

        self.single_observation_space = first.observation_space
        self.single_action_space = first.action_space
        for env in self.envs[1:]:
            if (
                env.observation_space != self.single_observation_space
                or env.action_space != self.single_action_space
            ):
                raise InvalidSpace(
                    "All sub-environments must share observation and action spaces; "
                    f"{env} differs from {first}"
                )
        self.observation_space = batch_space(self.single_observation_space, self.num_envs)
        self.action_space = batch_space(self.single_action_space, self.num_envs)

        self._needs_reset = np.zeros(self.num_envs, dtype=np.bool_)
        self.closed = False

    def _seeds(self, seed: int | Sequence[int | None] | None) -> list[int | None]:
        if seed is None:
            return [None] * self.num_envs
        if isinstance(seed, int):
            return [seed + i for i in range(self.num_envs)]
        seeds = list(seed)
        if len(seeds) != self.num_envs:
            raise InvalidConfiguration(
                f"Expected {self.num_envs} seeds, got {len(seeds)}"
            )
        return seeds

    @staticmethod
    def _stack(observations: list[Any]) -> Any:
        return jax.tree_util.tree_map(lambda *xs: jnp.stack(xs), *observations)

    @staticmethod
    def _unbatch(actions: Any, index: int) -> Any:
        if isinstance(actions, (list, tuple)):
            return actions[index]
        return jax.tree_util.tree_map(lambda a: a[index], actions)

    def reset(
        self,
        *,
        seed: int | Sequence[int | None] | None = None,
        options: dict[str, Any] | None = None,
    ) -> tuple[Any, dict[str, Any]]:
        observations, infos = [], {}
        for i, (env, env_seed) in enumerate(zip(self.envs, self._seeds(seed))):
            obs, info = env.reset(seed=env_seed, options=options)
            observations.append(obs)
            infos = add_info(infos, info, i, self.num_envs)
        self._needs_reset[:] = False
        return self._stack(observations), infos

    def step(self, actions: Any) -> tuple[Any, np.ndarray, np.ndarray, np.ndarray, dict[str, Any]]:
        observations = []
        rewards = np.zeros(self.num_envs, dtype=np.float64)
        terminateds = np.zeros(self.num_envs, dtype=np.bool_)
        truncateds = np.zeros(self.num_envs, dtype=np.bool_)
        infos: dict[str, Any] = {}

        for i, env in enumerate(self.envs):
            action = self._unbatch(actions, i)
            if self.autoreset_mode is AutoresetMode.NEXT_STEP and self._needs_reset[i]:
                obs, info = env.reset()
                reward, terminated, truncated = 0.0, False, False
            else:
                obs, reward, terminated, truncated, info = env.step(action)
                if terminated or truncated:
                    final = {"final_observation": obs, "final_info": info}
                    if self.autoreset_mode is AutoresetMode.SAME_STEP:
                        obs, reset_info = env.reset()
                        info = {**reset_info, **final}
                    else:
                        info = {**info, **final}

            self._needs_reset[i] = (
                self.autoreset_mode is AutoresetMode.NEXT_STEP and (terminated or truncated)
            )
            observations.append(obs)
            rewards[i] = reward
            terminateds[i] = terminated
            truncateds[i] = truncated
            infos = add_info(infos, info, i, self.num_envs)

        return self._stack(observations), rewards, terminateds, truncateds, infos

    def render(self) -> tuple[Any, ...]:
        return tuple(env.render() for env in self.envs)

    def close(self) -> None:
        if self.closed:
            return
        for env in self.envs:
            env.close()
        self.closed = True

    def __enter__(self) -> SyncVectorEnv:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"SyncVectorEnv({self.spec.id if self.spec else 'env'}, num_envs={self.num_envs})"
