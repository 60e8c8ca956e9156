"""SAC-specific state container."""

from __future__ import annotations

from typing import NamedTuple

import chex

from gymnazo.types import OptState, Params


class SACState(NamedTuple):
    """SAC agent state.

    Fields:
        actor_params: Gaussian actor network (Equinox model).
        critic_params: Twin Q-network (Equinox model).
        target_critic_params: Polyak-averaged copy of the critic.
        actor_opt_state / critic_opt_state / alpha_opt_state: Optax states.
        log_alpha: Log of the entropy temperature (scalar array).
        step: Number of updates taken so far.
        rng: PRNG key.
    """

    actor_params: Params
    critic_params: Params
    target_critic_params: Params
    actor_opt_state: OptState
    critic_opt_state: OptState
    log_alpha: chex.Array
    alpha_opt_state: OptState
    step: chex.Array
    rng: chex.PRNGKey
