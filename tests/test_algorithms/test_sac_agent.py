"""Tests for the SAC agent: networks, config, act and update."""

from __future__ import annotations

import equinox as eqx
import jax
import jax.numpy as jnp
import numpy as np
import pytest

from gymnazo.algorithms.sac import SAC, GaussianActor, SACConfig, SACMetrics, SACState, TwinQNetwork
from gymnazo.algorithms.sac.agent import _sample_action
from gymnazo.types import Transition

RNG = jax.random.PRNGKey(42)
OBS_SHAPE = (4,)
ACTION_DIM = 2
BATCH_SIZE = 16


@pytest.fixture
def config():
    return SACConfig(hidden_sizes=(32, 32), batch_size=BATCH_SIZE)


@pytest.fixture
def state(config):
    return SAC.init(RNG, OBS_SHAPE, ACTION_DIM, config)


@pytest.fixture
def batch():
    k1, k2, k3, k4 = jax.random.split(jax.random.PRNGKey(123), 4)
    return Transition(
        obs=jax.random.normal(k1, (BATCH_SIZE, *OBS_SHAPE)),
        action=jax.random.uniform(k2, (BATCH_SIZE, ACTION_DIM), minval=-1.0, maxval=1.0),
        reward=jax.random.normal(k3, (BATCH_SIZE,)),
        next_obs=jax.random.normal(k4, (BATCH_SIZE, *OBS_SHAPE)),
        terminated=jnp.zeros(BATCH_SIZE, dtype=jnp.bool_),
    )


def _leaves(model):
    return jax.tree_util.tree_leaves(eqx.filter(model, eqx.is_array))


# ── Networks ─────────────────────────────────────────────────────────


class TestNetworks:
    def test_actor_shapes(self):
        actor = GaussianActor(4, 2, (32, 32), key=RNG)
        mean, log_std = actor(jnp.zeros(4))
        assert mean.shape == (2,)
        assert log_std.shape == (2,)

    def test_twin_critic_shapes(self):
        critic = TwinQNetwork(4, 2, (32, 32), key=RNG)
        q1, q2 = critic(jnp.zeros(4), jnp.zeros(2))
        assert q1.shape == () and q2.shape == ()

    def test_twin_critics_are_independent(self):
        critic = TwinQNetwork(4, 2, (32, 32), key=RNG)
        q1, q2 = critic(jnp.ones(4), jnp.ones(2))
        assert float(q1) != float(q2)


# ── Config ───────────────────────────────────────────────────────────


class TestSACConfig:
    def test_with_action_bounds(self):
        config = SACConfig().with_action_bounds(np.array([-2.0, 0.0]), np.array([2.0, 1.0]))
        assert config.action_low == (-2.0, 0.0)
        assert config.action_high == (2.0, 1.0)
        hash(config)

    def test_frozen(self):
        with pytest.raises(AttributeError):
            SACConfig().tau = 0.1  # type: ignore[misc]


# ── Agent ────────────────────────────────────────────────────────────


class TestSACInit:
    def test_returns_state(self, state, config):
        assert isinstance(state, SACState)
        assert int(state.step) == 0
        assert float(jnp.exp(state.log_alpha)) == pytest.approx(config.init_alpha)

    def test_target_matches_critic(self, state):
        for a, b in zip(_leaves(state.critic_params), _leaves(state.target_critic_params)):
            np.testing.assert_array_equal(a, b)


class TestSACAct:
    def test_explore_within_bounds(self, state, config):
        obs = jnp.ones(OBS_SHAPE)
        for _ in range(10):
            action, state = SAC.act(state, obs, config=config, explore=True)
            assert action.shape == (ACTION_DIM,)
            assert jnp.all(action >= -1.0) and jnp.all(action <= 1.0)

    def test_rescaled_bounds(self):
        config = SACConfig(hidden_sizes=(16,)).with_action_bounds([-2.0, 10.0], [2.0, 20.0])
        state = SAC.init(RNG, OBS_SHAPE, ACTION_DIM, config)
        for _ in range(10):
            action, state = SAC.act(state, jnp.ones(OBS_SHAPE), config=config)
            assert -2.0 <= float(action[0]) <= 2.0
            assert 10.0 <= float(action[1]) <= 20.0

    def test_deterministic_is_repeatable(self, state, config):
        obs = jnp.ones(OBS_SHAPE)
        a1, state = SAC.act(state, obs, config=config, explore=False)
        a2, _ = SAC.act(state, obs, config=config, explore=False)
        np.testing.assert_array_equal(a1, a2)

    def test_stochastic_varies(self, state, config):
        obs = jnp.ones(OBS_SHAPE)
        a1, state = SAC.act(state, obs, config=config, explore=True)
        a2, _ = SAC.act(state, obs, config=config, explore=True)
        assert not jnp.array_equal(a1, a2)

    def test_log_prob_finite(self, state, config):
        _, log_prob = _sample_action(state.actor_params, jnp.ones(OBS_SHAPE), RNG, config)
        assert log_prob.shape == ()
        assert jnp.isfinite(log_prob)


class TestSACUpdate:
    def test_returns_metrics(self, state, batch, config):
        new_state, metrics = SAC.update(state, batch, config=config)
        assert isinstance(metrics, SACMetrics)
        for value in metrics:
            assert jnp.isfinite(value)
        assert int(new_state.step) == 1

    def test_alpha_autotune_changes_alpha(self, state, batch, config):
        new_state, _ = SAC.update(state, batch, config=config)
        assert float(new_state.log_alpha) != float(state.log_alpha)

    def test_fixed_alpha(self, batch):
        config = SACConfig(hidden_sizes=(32, 32), autotune_alpha=False, init_alpha=0.2)
        state = SAC.init(RNG, OBS_SHAPE, ACTION_DIM, config)
        new_state, metrics = SAC.update(state, batch, config=config)
        assert float(new_state.log_alpha) == float(state.log_alpha)
        assert float(metrics.alpha) == pytest.approx(0.2)
        assert float(metrics.alpha_loss) == 0.0

    def test_polyak_target(self, state, batch, config):
        new_state, _ = SAC.update(state, batch, config=config)
        tau = config.tau
        for old, online, target in zip(
            _leaves(state.target_critic_params),
            _leaves(new_state.critic_params),
            _leaves(new_state.target_critic_params),
        ):
            np.testing.assert_allclose(target, tau * online + (1 - tau) * old, rtol=1e-5, atol=1e-6)

    def test_critic_loss_decreases(self, batch):
        config = SACConfig(hidden_sizes=(32, 32), critic_lr=1e-3, autotune_alpha=False, init_alpha=0.1)
        state = SAC.init(RNG, OBS_SHAPE, ACTION_DIM, config)
        losses = []
        for _ in range(50):
            state, metrics = SAC.update(state, batch, config=config)
            losses.append(float(metrics.critic_loss))
        assert losses[-1] < losses[0]
