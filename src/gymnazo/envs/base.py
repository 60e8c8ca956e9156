"""Stateful environments driven by pure-JAX dynamics.

Each concrete environment describes its physics as pure functions of
``(key, state, action, params)`` that are jit-compiled once per instance;
:class:`FunctionalEnv` holds the current state and PRNG key and exposes
the ``reset``/``step`` API of :class:`gymnazo.core.Env`::

    env = CartPole()
    obs, info = env.reset(seed=0)
    obs, reward, terminated, truncated, info = env.step(1)

The pure functions stay usable on their own, e.g. under ``jax.vmap``::

    keys = jax.random.split(jax.random.PRNGKey(0), 8)
    states = jax.vmap(env.reset_state, in_axes=(0, None, None))(keys, env.params, None)
"""

from __future__ import annotations

import abc
import dataclasses
from typing import Any

import equinox as eqx
import jax
import jax.numpy as jnp

from gymnazo.core import Env, ResetResult, StepResult
from gymnazo.error import InvalidConfiguration


class EnvState(eqx.Module):
    """Base class for environment states.

    States are immutable pytrees; ``transition`` returns a new state.
    """


class EnvParams(eqx.Module):
    """Base class for environment parameters (all fields static)."""


class FunctionalEnv(Env):
    """Base for environments whose dynamics are pure JAX functions.

    Subclasses implement:

    - ``default_params() -> EnvParams``
    - ``reset_state(key, params, options) -> EnvState``
    - ``transition(key, state, action, params) -> (state, reward, terminated)``
    - ``observe(state, params) -> observation``
    - ``make_observation_space(params)`` / ``make_action_space(params)``
    """

    metadata: dict[str, Any] = {"render_modes": []}

    def __init__(
        self,
        params: EnvParams | None = None,
        render_mode: str | None = None,
        **overrides: Any,
    ) -> None:
        if render_mode is not None and render_mode not in self.metadata["render_modes"]:
            raise InvalidConfiguration(
                f"{type(self).__name__} does not support render_mode={render_mode!r}; "
                f"supported modes: {self.metadata['render_modes']}"
            )
        self.render_mode = render_mode
        self.params = make_params(params if params is not None else self.default_params(), overrides)
        self.state: EnvState | None = None
        self.observation_space = self.make_observation_space(self.params)
        self.action_space = self.make_action_space(self.params)
        self._transition = jax.jit(self.transition)
        self._observe = jax.jit(self.observe)

    # ------------------------------------------------------------------
    # Pure dynamics
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def default_params(self) -> EnvParams: ...

    @abc.abstractmethod
    def reset_state(
        self,
        key: jax.Array,
        params: EnvParams,
        options: dict[str, Any] | None,
    ) -> EnvState: ...

    @abc.abstractmethod
    def transition(
        self,
        key: jax.Array,
        state: EnvState,
        action: jax.Array,
        params: EnvParams,
    ) -> tuple[EnvState, jax.Array, jax.Array]: ...

    @abc.abstractmethod
    def observe(self, state: EnvState, params: EnvParams) -> Any: ...

    @abc.abstractmethod
    def make_observation_space(self, params: EnvParams): ...

    @abc.abstractmethod
    def make_action_space(self, params: EnvParams): ...

    # ------------------------------------------------------------------
    # Env API
    # ------------------------------------------------------------------

    def reset(
        self,
        *,
        seed: int | None = None,
        options: dict[str, Any] | None = None,
    ) -> ResetResult:
        super().reset(seed=seed)
        self.state = self.reset_state(self._next_key(), self.params, options)
        return self._observe(self.state, self.params), {}

    def step(self, action: Any) -> StepResult:
        self._check_step_allowed()
        self.state, reward, terminated = self._transition(
            self._next_key(), self.state, jnp.asarray(action), self.params
        )
        self._terminated = bool(terminated)
        return self._observe(self.state, self.params), float(reward), self._terminated, False, {}


def reset_bounds(
    options: dict[str, Any] | None,
    default_low: float,
    default_high: float,
) -> tuple[float, float]:
    """Read ``options["low"]`` / ``options["high"]`` for the initial-state range."""
    options = options or {}
    low = float(options.get("low", default_low))
    high = float(options.get("high", default_high))
    if low > high:
        raise InvalidConfiguration(f"Reset bounds must satisfy low <= high, got {low} > {high}")
    return low, high


def make_params(params: EnvParams, overrides: dict[str, Any]) -> EnvParams:
    """Copy of ``params`` with ``overrides`` applied field by field.

    Unknown field names raise :class:`~gymnazo.error.InvalidConfiguration`.
    """
    if not overrides:
        return params
    fields = {f.name for f in dataclasses.fields(params)}
    unknown = sorted(set(overrides) - fields)
    if unknown:
        raise InvalidConfiguration(
            f"Unknown {type(params).__name__} fields: {unknown}; expected some of {sorted(fields)}"
        )
    return dataclasses.replace(params, **overrides)
