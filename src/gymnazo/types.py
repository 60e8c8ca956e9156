"""Core type definitions for the training stack.

All containers are NamedTuples for zero-overhead JAX pytree compatibility.
"""

from __future__ import annotations

from typing import Any, NamedTuple, TypeAlias

import chex

# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------
Params: TypeAlias = Any  # network parameter pytree
OptState: TypeAlias = Any  # optax optimizer state pytree


class Transition(NamedTuple):
    """A single ``(s, a, r, s', terminated)`` experience tuple.

    ``terminated`` is the MDP termination flag only: a time-limit
    truncation stores ``terminated=False`` so the TD target still
    bootstraps from ``next_obs``.  For batched transitions each field
    carries a leading batch dimension.
    """

    obs: chex.Array
    action: chex.Array
    reward: chex.Array
    next_obs: chex.Array
    terminated: chex.Array


# A batch is a Transition whose fields have a leading batch dimension.
Batch = Transition
