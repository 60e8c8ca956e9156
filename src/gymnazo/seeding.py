"""PRNG key helpers shared by spaces, environments and agents.

Every random draw in gymnazo takes an explicit ``jax.random`` key.
Environments own one key each and split it before every use, so two
environments reset with the same seed replay identical episodes no
matter what the rest of the program does.

Usage::

    from gymnazo.seeding import make_rng, split_key

    rng = make_rng(42)
    rng, sample_key = split_key(rng)
    action = env.action_space.sample(sample_key)
"""

from __future__ import annotations

import secrets

import jax

# Seeds drawn for lazily-seeded environments stay in the int32 range so
# that they can be logged and replayed through ``reset(seed=...)``.
_MAX_SEED = 2**31 - 1


def make_rng(seed: int) -> jax.Array:
    """Create a PRNG key from an integer seed.

    Raises ``ValueError`` for negative seeds, which ``jax.random.PRNGKey``
    would otherwise silently wrap.
    """
    if seed < 0:
        raise ValueError(f"Seed must be a non-negative integer, got {seed}")
    return jax.random.PRNGKey(seed)


def random_seed() -> int:
    """Draw a fresh seed from OS entropy."""
    return secrets.randbelow(_MAX_SEED)


def split_key(rng: jax.Array) -> tuple[jax.Array, jax.Array]:
    """Split *rng* into ``(new_rng, subkey)``.

    The first key replaces the caller's stream; the second is consumed
    once and discarded::

        self._key, subkey = split_key(self._key)
    """
    return tuple(jax.random.split(rng))  # type: ignore[return-value]


def split_keys(rng: jax.Array, n: int) -> tuple[jax.Array, ...]:
    """Split *rng* into ``n + 1`` keys: ``(new_rng, key_1, ..., key_n)``."""
    keys = jax.random.split(rng, n + 1)
    return tuple(keys)  # type: ignore[return-value]


def fold_in(rng: jax.Array, data: int) -> jax.Array:
    """Derive a key by folding *data* into *rng*.

    Used to give each sub-environment of a vector env its own stream::

        env_key = fold_in(rng, env_index)
    """
    return jax.random.fold_in(rng, data)
