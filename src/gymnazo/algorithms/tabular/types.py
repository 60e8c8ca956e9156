"""Tabular agent state container."""

from __future__ import annotations

from typing import NamedTuple

import chex


class TabularState(NamedTuple):
    """Tabular agent state.

    Fields:
        q_table: ``(n_states, n_actions)`` action values.
        epsilon: Current exploration rate.
        step: Number of TD updates taken so far.
        rng: PRNG key for exploration.
    """

    q_table: chex.Array
    epsilon: chex.Array
    step: chex.Array
    rng: chex.PRNGKey
