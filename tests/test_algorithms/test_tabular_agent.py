"""Tests for tabular Q-learning / SARSA: indexing, act, update and training."""

import jax
import jax.numpy as jnp
import numpy as np
import pytest

from gymnazo.algorithms.tabular import Tabular, TabularConfig, TabularState, num_states, state_index
from gymnazo.envs import make
from gymnazo.envs.cliff_walking import START_STATE
from gymnazo.error import InvalidSpace
from gymnazo.runner import RunnerConfig, evaluate, table_policy, train_tabular
from gymnazo.spaces import Box, Discrete, Tuple

RNG = jax.random.PRNGKey(0)


class TestStateIndex:
    def test_discrete(self):
        space = Discrete(5, start=2)
        assert num_states(space) == 5
        assert state_index(space, 2) == 0
        assert state_index(space, jnp.int32(6)) == 4

    def test_tuple_is_row_major(self):
        space = Tuple((Discrete(32), Discrete(11), Discrete(2)))
        assert num_states(space) == 32 * 11 * 2
        assert state_index(space, (0, 0, 0)) == 0
        assert state_index(space, (0, 0, 1)) == 1
        assert state_index(space, (0, 1, 0)) == 2
        assert state_index(space, (31, 10, 1)) == 32 * 11 * 2 - 1

    def test_indices_are_unique(self):
        space = Tuple((Discrete(3), Discrete(4)))
        indices = {state_index(space, (a, b)) for a in range(3) for b in range(4)}
        assert indices == set(range(12))

    @pytest.mark.parametrize("space", [Box(0.0, 1.0, (2,)), Tuple((Discrete(2), Box(0.0, 1.0, (1,))))])
    def test_rejects_non_discrete(self, space):
        with pytest.raises(InvalidSpace):
            num_states(space)


class TestTabularConfig:
    def test_defaults(self):
        config = TabularConfig()
        assert config.update_rule == "q_learning"

    def test_unknown_rule(self):
        with pytest.raises(ValueError):
            TabularConfig(update_rule="expected_sarsa")

    def test_bad_epsilon(self):
        with pytest.raises(ValueError):
            TabularConfig(epsilon_start=0.01, epsilon_min=0.1)


class TestTabularAgent:
    def test_init(self):
        state = Tabular.init(RNG, 10, 3, TabularConfig())
        assert isinstance(state, TabularState)
        assert state.q_table.shape == (10, 3)
        assert float(state.epsilon) == 1.0
        assert int(state.step) == 0

    def test_greedy_act(self):
        config = TabularConfig()
        state = Tabular.init(RNG, 4, 3, config)
        state = state._replace(q_table=state.q_table.at[2, 1].set(5.0))
        action, new_state = Tabular.act(state, jnp.int32(2), config=config, explore=False)
        assert int(action) == 1
        assert jnp.array_equal(new_state.rng, state.rng)

    def test_explore_consumes_key(self):
        config = TabularConfig()
        state = Tabular.init(RNG, 4, 3, config)
        action, new_state = Tabular.act(state, jnp.int32(0), config=config, explore=True)
        assert 0 <= int(action) < 3
        assert not jnp.array_equal(new_state.rng, state.rng)

    def test_zero_epsilon_is_greedy(self):
        config = TabularConfig(epsilon_start=0.0, epsilon_min=0.0)
        state = Tabular.init(RNG, 4, 3, config)
        state = state._replace(q_table=state.q_table.at[0, 2].set(1.0))
        for _ in range(20):
            action, state = Tabular.act(state, jnp.int32(0), config=config, explore=True)
            assert int(action) == 2

    def _update(self, rule, terminated=False):
        config = TabularConfig(update_rule=rule, lr=0.5, gamma=0.9)
        state = Tabular.init(RNG, 3, 2, config)
        q = state.q_table.at[1].set(jnp.array([2.0, 4.0]))
        state = state._replace(q_table=q)
        return Tabular.update(
            state,
            jnp.int32(0),
            jnp.int32(0),
            jnp.float32(1.0),
            jnp.int32(1),
            jnp.int32(0),
            jnp.bool_(terminated),
            config=config,
        )

    def test_q_learning_bootstraps_from_max(self):
        state, metrics = self._update("q_learning")
        # 0 + 0.5 * (1 + 0.9 * 4 - 0)
        assert float(state.q_table[0, 0]) == pytest.approx(2.3)
        assert float(metrics.td_error) == pytest.approx(4.6)
        assert int(state.step) == 1

    def test_sarsa_bootstraps_from_next_action(self):
        state, _ = self._update("sarsa")
        # 0 + 0.5 * (1 + 0.9 * 2 - 0)
        assert float(state.q_table[0, 0]) == pytest.approx(1.4)

    @pytest.mark.parametrize("rule", ["q_learning", "sarsa"])
    def test_terminal_does_not_bootstrap(self, rule):
        state, _ = self._update(rule, terminated=True)
        assert float(state.q_table[0, 0]) == pytest.approx(0.5)

    def test_end_episode_decays_to_floor(self):
        config = TabularConfig(epsilon_start=0.1, epsilon_decay=0.5, epsilon_min=0.04)
        state = Tabular.init(RNG, 2, 2, config)
        state = Tabular.end_episode(state, config)
        assert float(state.epsilon) == pytest.approx(0.05)
        state = Tabular.end_episode(state, config)
        assert float(state.epsilon) == pytest.approx(0.04)


class TestTrainTabular:
    @pytest.mark.parametrize("rule", ["q_learning", "sarsa"])
    def test_learns_cliff_walking(self, rule):
        config = TabularConfig(update_rule=rule, lr=0.5, gamma=1.0, epsilon_start=0.1, epsilon_decay=1.0)
        result = train_tabular(
            make("CliffWalking-v1", max_episode_steps=200),
            tabular_config=config,
            runner_config=RunnerConfig(total_timesteps=15_000, log_interval=5_000, seed=0),
        )
        assert len(result.episode_returns) > 0
        assert len(result.metrics_log) == 3
        assert int(result.agent_state.step) == 15_000

        env = make("CliffWalking-v1", max_episode_steps=50)
        policy = table_policy(result.agent_state, env.observation_space, config)
        final = evaluate(env, policy, n_episodes=1, seed=0)
        # Reaching the goal without falling off the cliff keeps the return above -50.
        assert final.mean_return > -50.0
        assert final.mean_length < 50

    def test_tuple_observations(self):
        config = TabularConfig()
        result = train_tabular(
            make("Blackjack-v1"),
            tabular_config=config,
            runner_config=RunnerConfig(total_timesteps=300, log_interval=100, seed=1),
        )
        assert result.agent_state.q_table.shape == (32 * 11 * 2, 2)
        assert len(result.episode_returns) > 0
        assert float(result.agent_state.epsilon) < 1.0

    def test_eval_and_checkpoint(self, tmp_path):
        config = TabularConfig()
        result = train_tabular(
            make("FrozenLake-v1", is_slippery=False),
            tabular_config=config,
            runner_config=RunnerConfig(
                total_timesteps=200,
                log_interval=100,
                eval_every=100,
                eval_episodes=2,
                checkpoint_dir=str(tmp_path),
                checkpoint_interval=100,
            ),
            eval_env=make("FrozenLake-v1", is_slippery=False),
        )
        assert [step for step, _ in result.eval_log] == [100, 200]
        assert (tmp_path / "step_200").is_dir()

    def test_rejects_continuous_env(self):
        with pytest.raises(InvalidSpace):
            train_tabular(
                make("Pendulum-v1"),
                tabular_config=TabularConfig(),
                runner_config=RunnerConfig(total_timesteps=10),
            )

    def test_policy_reads_q_table(self):
        env = make("CliffWalking-v1")
        config = TabularConfig()
        state = Tabular.init(RNG, 48, 4, config)
        state = state._replace(q_table=state.q_table.at[START_STATE, 2].set(1.0))
        policy = table_policy(state, env.observation_space, config)
        assert policy(np.int32(START_STATE)) == 2
