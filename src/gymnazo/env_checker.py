"""Structural checks run once per environment by ``PassiveEnvChecker``.

Malformed results (wrong tuple arity, non-dict info, non-boolean
termination flags) and actions outside the action space raise.
Suspicious but usable values (an observation outside the declared
space, an unusual reward type) are logged as warnings.
"""

from __future__ import annotations

import logging
import numbers
from typing import TYPE_CHECKING, Any

import numpy as np

from gymnazo.error import InvalidAction, InvalidObservation, InvalidSpace
from gymnazo.spaces import Space

if TYPE_CHECKING:
    from gymnazo.core import Env

logger = logging.getLogger(__name__)


def check_spaces(env: Env) -> None:
    """Both spaces must be declared and be :class:`Space` instances."""
    for attr in ("observation_space", "action_space"):
        space = getattr(env, attr, None)
        if space is None:
            raise InvalidSpace(f"{env} does not declare an {attr}")
        if not isinstance(space, Space):
            raise InvalidSpace(f"{env}.{attr} must be a Space, got {type(space).__name__}")


def check_observation(env: Env, obs: Any, method: str) -> None:
    if not env.observation_space.contains(obs):
        logger.warning(
            "%s: the observation returned by %s() is not within the observation space %r",
            env,
            method,
            env.observation_space,
        )


def check_reset_output(env: Env, result: Any) -> None:
    if not isinstance(result, tuple) or len(result) != 2:
        raise InvalidObservation(
            f"{env}.reset() must return (observation, info), got {type(result).__name__}"
        )
    obs, info = result
    if not isinstance(info, dict):
        raise InvalidObservation(f"{env}.reset() info must be a dict, got {type(info).__name__}")
    check_observation(env, obs, "reset")


def check_action(env: Env, action: Any) -> None:
    if not env.action_space.contains(action):
        raise InvalidAction(f"Action {action!r} is not within the action space {env.action_space!r}")


def _is_bool(value: Any) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return True
    arr = np.asarray(value)
    return arr.shape == () and arr.dtype == np.bool_


def check_step_output(env: Env, result: Any) -> None:
    if not isinstance(result, tuple) or len(result) != 5:
        raise InvalidObservation(
            f"{env}.step() must return (observation, reward, terminated, truncated, info)"
        )
    obs, reward, terminated, truncated, info = result
    for name, flag in (("terminated", terminated), ("truncated", truncated)):
        if not _is_bool(flag):
            raise InvalidObservation(f"{env}.step() {name} must be a bool, got {flag!r}")
    if not isinstance(info, dict):
        raise InvalidObservation(f"{env}.step() info must be a dict, got {type(info).__name__}")
    if not isinstance(reward, numbers.Real) and np.asarray(reward).shape != ():
        logger.warning("%s: step() reward should be a scalar, got %r", env, reward)
    elif not np.isfinite(float(np.asarray(reward))):
        logger.warning("%s: step() returned a non-finite reward %r", env, reward)
    check_observation(env, obs, "step")


def check_render_mode(env: Env) -> None:
    modes = env.metadata.get("render_modes", [])
    if env.render_mode is not None and env.render_mode not in modes:
        logger.warning(
            "%s: render_mode %r is not one of the declared render modes %s",
            env,
            env.render_mode,
            modes,
        )
