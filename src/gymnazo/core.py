"""The ``Env`` state machine and the ``Wrapper`` composition protocol.

An environment moves through three states::

    constructed --reset()--> running --step() ends episode--> done
                                ^                               |
                                +------------reset()------------+

``step`` is only defined while running.  Concrete environments raise
:class:`~gymnazo.error.ResetNeeded` when stepped before the first
``reset`` or after a step that returned ``terminated=True``.

Every environment owns one PRNG key.  ``reset(seed=...)`` replaces it,
``reset()`` keeps it (creating one from OS entropy on first use), and
each random draw consumes a fresh subkey from :meth:`Env._next_key`.

A :class:`Wrapper` owns exactly one inner env and forwards every call to
it; subclasses override only what they change.  Wrappers nest into a
linear chain::

    env = TimeLimit(OrderEnforcing(PassiveEnvChecker(CartPole())), 500)
    str(env)  # '<TimeLimit<OrderEnforcing<PassiveEnvChecker<CartPole>>>>'
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, Any, TypeAlias

import jax

from gymnazo.error import ResetNeeded
from gymnazo.seeding import make_rng, random_seed, split_key
from gymnazo.spaces import Space

if TYPE_CHECKING:
    from gymnazo.envs.registration import EnvSpec

Info: TypeAlias = dict[str, Any]
ResetResult: TypeAlias = tuple[Any, Info]
StepResult: TypeAlias = tuple[Any, float, bool, bool, Info]


class Env(abc.ABC):
    """Base class of every environment.

    Subclasses set ``observation_space`` and ``action_space`` in
    ``__init__`` and implement :meth:`reset` (calling
    ``super().reset(seed=seed)`` first) and :meth:`step`.
    """

    metadata: dict[str, Any] = {"render_modes": []}
    render_mode: str | None = None
    spec: EnvSpec | None = None

    observation_space: Space
    action_space: Space

    _key: jax.Array | None = None
    _has_reset: bool = False
    _terminated: bool = False

    @abc.abstractmethod
    def reset(
        self,
        *,
        seed: int | None = None,
        options: dict[str, Any] | None = None,
    ) -> ResetResult:
        """Start a new episode and return ``(observation, info)``.

        The base implementation only handles seeding and the episode
        flags; overrides must call it before drawing randomness.
        """
        if seed is not None:
            self._key = make_rng(seed)
        elif self._key is None:
            self._key = make_rng(random_seed())
        self._has_reset = True
        self._terminated = False

    @abc.abstractmethod
    def step(self, action: Any) -> StepResult:
        """Advance one timestep.

        Returns ``(observation, reward, terminated, truncated, info)``.
        ``terminated`` means the MDP reached a terminal state (no
        continuation value); ``truncated`` means an external limit ended
        the episode (continuation value still applies).
        """

    def render(self) -> Any:
        """Return a snapshot for the configured ``render_mode`` (``None`` by default)."""
        return None

    def close(self) -> None:
        """Release render resources.  Safe to call any number of times."""

    def _next_key(self) -> jax.Array:
        """Split the env key and return a fresh, single-use subkey."""
        if self._key is None:
            self._key = make_rng(random_seed())
        self._key, subkey = split_key(self._key)
        return subkey

    def _check_step_allowed(self) -> None:
        if not self._has_reset:
            raise ResetNeeded("Cannot call step() before reset()")
        if self._terminated:
            raise ResetNeeded(
                "step() called after the episode terminated; call reset() to start a new episode"
            )

    @property
    def unwrapped(self) -> Env:
        """The innermost, non-wrapper environment."""
        return self

    def has_wrapper_attr(self, name: str) -> bool:
        return hasattr(self, name)

    def get_wrapper_attr(self, name: str) -> Any:
        """Look up *name* on this env (wrappers also search inner envs)."""
        return getattr(self, name)

    def __enter__(self) -> Env:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __str__(self) -> str:
        if self.spec is None:
            return f"<{type(self).__name__} instance>"
        return f"<{type(self).__name__}<{self.spec.id}>>"

    def __repr__(self) -> str:
        return str(self)


class Wrapper(Env):
    """An environment that delegates to one inner environment.

    ``observation_space``, ``action_space`` and ``metadata`` pass through
    unless a subclass assigns its own value.
    """

    def __init__(self, env: Env) -> None:
        if not isinstance(env, Env):
            raise TypeError(f"Wrapper expects an Env, got {type(env).__name__}")
        self.env = env
        self._observation_space: Space | None = None
        self._action_space: Space | None = None
        self._metadata: dict[str, Any] | None = None
        self._spec: EnvSpec | None = None

    # ------------------------------------------------------------------
    # Pass-through attributes
    # ------------------------------------------------------------------

    @property
    def observation_space(self) -> Space:
        if self._observation_space is None:
            return self.env.observation_space
        return self._observation_space

    @observation_space.setter
    def observation_space(self, space: Space) -> None:
        self._observation_space = space

    @property
    def action_space(self) -> Space:
        if self._action_space is None:
            return self.env.action_space
        return self._action_space

    @action_space.setter
    def action_space(self, space: Space) -> None:
        self._action_space = space

    @property
    def metadata(self) -> dict[str, Any]:
        if self._metadata is None:
            return self.env.metadata
        return self._metadata

    @metadata.setter
    def metadata(self, value: dict[str, Any]) -> None:
        self._metadata = value

    @property
    def spec(self) -> EnvSpec | None:
        if self._spec is None:
            return self.env.spec
        return self._spec

    @spec.setter
    def spec(self, value: EnvSpec | None) -> None:
        self._spec = value

    @property
    def render_mode(self) -> str | None:
        return self.env.render_mode

    @property
    def unwrapped(self) -> Env:
        return self.env.unwrapped

    # ------------------------------------------------------------------
    # Env API
    # ------------------------------------------------------------------

    def reset(
        self,
        *,
        seed: int | None = None,
        options: dict[str, Any] | None = None,
    ) -> ResetResult:
        return self.env.reset(seed=seed, options=options)

    def step(self, action: Any) -> StepResult:
        return self.env.step(action)

    def render(self) -> Any:
        return self.env.render()

    def close(self) -> None:
        self.env.close()

    def has_wrapper_attr(self, name: str) -> bool:
        return hasattr(self, name) or self.env.has_wrapper_attr(name)

    def get_wrapper_attr(self, name: str) -> Any:
        if hasattr(self, name):
            return getattr(self, name)
        return self.env.get_wrapper_attr(name)

    def __str__(self) -> str:
        return f"<{type(self).__name__}{self.env}>"


class ObservationWrapper(Wrapper):
    """Wrapper that maps every observation through :meth:`observation`."""

    def reset(
        self,
        *,
        seed: int | None = None,
        options: dict[str, Any] | None = None,
    ) -> ResetResult:
        obs, info = self.env.reset(seed=seed, options=options)
        return self.observation(obs), info

    def step(self, action: Any) -> StepResult:
        obs, reward, terminated, truncated, info = self.env.step(action)
        return self.observation(obs), reward, terminated, truncated, info

    @abc.abstractmethod
    def observation(self, observation: Any) -> Any: ...


class RewardWrapper(Wrapper):
    """Wrapper that maps every reward through :meth:`reward`."""

    def step(self, action: Any) -> StepResult:
        obs, reward, terminated, truncated, info = self.env.step(action)
        return obs, self.reward(reward), terminated, truncated, info

    @abc.abstractmethod
    def reward(self, reward: float) -> float: ...


class ActionWrapper(Wrapper):
    """Wrapper that maps every incoming action through :meth:`action`."""

    def step(self, action: Any) -> StepResult:
        return self.env.step(self.action(action))

    @abc.abstractmethod
    def action(self, action: Any) -> Any: ...
