"""Wrappers that every registered environment can carry.

- :class:`PassiveEnvChecker` validates the first reset/step/render
- :class:`OrderEnforcing` forbids ``step``/``render`` before ``reset``
- :class:`TimeLimit` truncates episodes after a fixed number of steps
- :class:`AutoReset` starts a new episode when one ends
- :class:`RecordEpisodeStatistics` reports episode return, length and time
"""

from __future__ import annotations

import dataclasses
import enum
import logging
import time
from collections import deque
from typing import Any

from gymnazo import env_checker
from gymnazo.core import Env, ResetResult, StepResult, Wrapper
from gymnazo.error import DuplicateInfoKey, InvalidConfiguration, ResetNeeded

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Passive environment checker
# ---------------------------------------------------------------------------


class PassiveEnvChecker(Wrapper):
    """Checks the inner env's API once, then gets out of the way.

    Spaces are checked at construction.  The first ``reset``, ``step``
    and ``render`` results are checked (see :mod:`gymnazo.env_checker`);
    later calls pass straight through.
    """

    def __init__(self, env: Env) -> None:
        super().__init__(env)
        env_checker.check_spaces(env)
        self.checked_reset = False
        self.checked_step = False
        self.checked_render = False
        if env.spec is not None and env.spec.disable_env_checker:
            self.spec = dataclasses.replace(env.spec, disable_env_checker=False)

    def reset(
        self,
        *,
        seed: int | None = None,
        options: dict[str, Any] | None = None,
    ) -> ResetResult:
        if self.checked_reset:
            return self.env.reset(seed=seed, options=options)
        self.checked_reset = True
        result = self.env.reset(seed=seed, options=options)
        env_checker.check_reset_output(self.env, result)
        return result

    def step(self, action: Any) -> StepResult:
        if self.checked_step:
            return self.env.step(action)
        self.checked_step = True
        env_checker.check_action(self.env, action)
        result = self.env.step(action)
        env_checker.check_step_output(self.env, result)
        return result

    def render(self) -> Any:
        if not self.checked_render:
            self.checked_render = True
            env_checker.check_render_mode(self.env)
        return self.env.render()


# ---------------------------------------------------------------------------
# Order enforcing
# ---------------------------------------------------------------------------


class OrderEnforcing(Wrapper):
    """Raises :class:`~gymnazo.error.ResetNeeded` on ``step`` before the first ``reset``.

    ``render`` is guarded too unless ``disable_render_order_enforcing``
    is set.
    """

    def __init__(self, env: Env, disable_render_order_enforcing: bool = False) -> None:
        super().__init__(env)
        self._has_reset = False
        self._disable_render_order_enforcing = disable_render_order_enforcing
        if env.spec is not None and not env.spec.order_enforce:
            self.spec = dataclasses.replace(env.spec, order_enforce=True)

    @property
    def has_reset(self) -> bool:
        return self._has_reset

    def reset(
        self,
        *,
        seed: int | None = None,
        options: dict[str, Any] | None = None,
    ) -> ResetResult:
        result = self.env.reset(seed=seed, options=options)
        self._has_reset = True
        return result

    def step(self, action: Any) -> StepResult:
        if not self._has_reset:
            raise ResetNeeded("Cannot call env.step() before calling env.reset()")
        return self.env.step(action)

    def render(self) -> Any:
        if not self._disable_render_order_enforcing and not self._has_reset:
            raise ResetNeeded(
                "Cannot call env.render() before calling env.reset(); "
                "pass disable_render_order_enforcing=True to allow it"
            )
        return self.env.render()


# ---------------------------------------------------------------------------
# Time limit
# ---------------------------------------------------------------------------


class TimeLimit(Wrapper):
    """Truncates the episode once ``max_episode_steps`` steps have been taken.

    The step that hits the limit returns ``truncated=True`` and carries
    ``info["TimeLimit.truncated"] = True``; earlier steps carry neither.
    """

    def __init__(self, env: Env, max_episode_steps: int) -> None:
        super().__init__(env)
        if max_episode_steps is None or int(max_episode_steps) <= 0:
            raise InvalidConfiguration(
                f"max_episode_steps must be a positive integer, got {max_episode_steps}"
            )
        self._max_episode_steps = int(max_episode_steps)
        self._elapsed_steps = 0

        if env.spec is not None and env.spec.max_episode_steps != self._max_episode_steps:
            if env.spec.max_episode_steps is not None:
                logger.warning(
                    "Overriding max_episode_steps of %s: %d -> %d",
                    env.spec.id,
                    env.spec.max_episode_steps,
                    self._max_episode_steps,
                )
            self.spec = dataclasses.replace(env.spec, max_episode_steps=self._max_episode_steps)

    @property
    def max_episode_steps(self) -> int:
        return self._max_episode_steps

    @property
    def elapsed_steps(self) -> int:
        return self._elapsed_steps

    def reset(
        self,
        *,
        seed: int | None = None,
        options: dict[str, Any] | None = None,
    ) -> ResetResult:
        self._elapsed_steps = 0
        return self.env.reset(seed=seed, options=options)

    def step(self, action: Any) -> StepResult:
        obs, reward, terminated, truncated, info = self.env.step(action)
        self._elapsed_steps += 1
        if self._elapsed_steps >= self._max_episode_steps:
            truncated = True
            info = {**info, "TimeLimit.truncated": True}
        return obs, reward, terminated, truncated, info


# ---------------------------------------------------------------------------
# Auto reset
# ---------------------------------------------------------------------------


class AutoresetMode(str, enum.Enum):
    """When :class:`AutoReset` starts the next episode.

    - ``NEXT_STEP``: the step after an episode ends resets instead of
      stepping; it returns the reset observation with reward ``0.0``
      and the action is ignored; its info carries
      ``"autoreset": True``.
    - ``SAME_STEP``: the step that ends an episode resets immediately and
      returns the reset observation alongside that step's reward and
      flags.
    - ``DISABLED``: no automatic reset.
    """

    NEXT_STEP = "next_step"
    SAME_STEP = "same_step"
    DISABLED = "disabled"


class AutoReset(Wrapper):
    """Resets the inner env automatically when an episode ends.

    In every mode the step whose episode ended carries the last
    observation and info of that episode in ``info["final_observation"]``
    and ``info["final_info"]``.

    Example (next-step mode)::

        obs, r, terminated, truncated, info = env.step(a)   # episode ends
        info["final_observation"]                            # == obs
        obs, r, terminated, truncated, info = env.step(a)   # reset, r == 0.0
        info["autoreset"]                                    # True

    An outer :class:`RecordEpisodeStatistics` does not count that reset
    step towards the next episode.
    """

    def __init__(self, env: Env, mode: AutoresetMode | str = AutoresetMode.NEXT_STEP) -> None:
        super().__init__(env)
        try:
            self.mode = AutoresetMode(mode)
        except ValueError:
            raise InvalidConfiguration(
                f"Unknown autoreset mode {mode!r}; expected one of "
                f"{[m.value for m in AutoresetMode]}"
            ) from None
        self._needs_reset = False

    def reset(
        self,
        *,
        seed: int | None = None,
        options: dict[str, Any] | None = None,
    ) -> ResetResult:
        self._needs_reset = False
        return self.env.reset(seed=seed, options=options)

    def step(self, action: Any) -> StepResult:
        if self.mode is AutoresetMode.DISABLED:
            return self.env.step(action)

        if self.mode is AutoresetMode.NEXT_STEP and self._needs_reset:
            self._needs_reset = False
            obs, info = self.env.reset()
            return obs, 0.0, False, False, {**info, "autoreset": True}

        obs, reward, terminated, truncated, info = self.env.step(action)
        if not (terminated or truncated):
            return obs, reward, terminated, truncated, info

        final = {"final_observation": obs, "final_info": info}
        if self.mode is AutoresetMode.NEXT_STEP:
            self._needs_reset = True
            return obs, reward, terminated, truncated, {**info, **final}

        obs, reset_info = self.env.reset()
        return obs, reward, terminated, truncated, {**reset_info, **final}


# ---------------------------------------------------------------------------
# Episode statistics
# ---------------------------------------------------------------------------


class RecordEpisodeStatistics(Wrapper):
    """Adds episode return, length and wall time to ``info`` when an episode ends.

    On the final step of every episode::

        info[stats_key] == {"r": <return>, "l": <length>, "t": <seconds>}

    The most recent ``buffer_length`` values are kept in
    ``return_queue``, ``length_queue`` and ``time_queue``.

    Steps tagged ``info["autoreset"]`` (the reset step of an inner
    next-step :class:`AutoReset`) start a new episode and are not counted.
    """

    def __init__(self, env: Env, buffer_length: int = 100, stats_key: str = "episode") -> None:
        super().__init__(env)
        if buffer_length <= 0:
            raise InvalidConfiguration(f"buffer_length must be positive, got {buffer_length}")
        self._stats_key = stats_key
        self.episode_count = 0
        self.episode_start_time = time.perf_counter()
        self.episode_returns = 0.0
        self.episode_lengths = 0
        self.time_queue: deque[float] = deque(maxlen=buffer_length)
        self.return_queue: deque[float] = deque(maxlen=buffer_length)
        self.length_queue: deque[int] = deque(maxlen=buffer_length)

    def _start_episode(self) -> None:
        self.episode_start_time = time.perf_counter()
        self.episode_returns = 0.0
        self.episode_lengths = 0

    def reset(
        self,
        *,
        seed: int | None = None,
        options: dict[str, Any] | None = None,
    ) -> ResetResult:
        result = self.env.reset(seed=seed, options=options)
        self._start_episode()
        return result

    def step(self, action: Any) -> StepResult:
        obs, reward, terminated, truncated, info = self.env.step(action)
        if info.get("autoreset", False):
            self._start_episode()
            return obs, reward, terminated, truncated, info

        self.episode_returns += float(reward)
        self.episode_lengths += 1

        if terminated or truncated:
            if self._stats_key in info:
                raise DuplicateInfoKey(
                    f"Cannot record episode statistics under {self._stats_key!r}: "
                    f"the key is already in info ({sorted(info)})"
                )
            elapsed = round(time.perf_counter() - self.episode_start_time, 6)
            info = {
                **info,
                self._stats_key: {
                    "r": self.episode_returns,
                    "l": self.episode_lengths,
                    "t": elapsed,
                },
            }
            self.time_queue.append(elapsed)
            self.return_queue.append(self.episode_returns)
            self.length_queue.append(self.episode_lengths)
            self.episode_count += 1
            self._start_episode()

        return obs, reward, terminated, truncated, info


# ---------------------------------------------------------------------------
# Standard validation stack
# ---------------------------------------------------------------------------


def wrap_validated(env: Env, max_episode_steps: int | None = None) -> Env:
    """Apply ``PassiveEnvChecker -> OrderEnforcing -> TimeLimit`` (if a limit is given)."""
    env = OrderEnforcing(PassiveEnvChecker(env))
    if max_episode_steps is not None:
        env = TimeLimit(env, max_episode_steps)
    return env
