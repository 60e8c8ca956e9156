"""Smoke tests for the DQN/SAC training loops and the evaluator."""

import json

import numpy as np
import pytest

from gymnazo.algorithms.dqn import DQNConfig, DQNState
from gymnazo.algorithms.sac import SACConfig, SACState
from gymnazo.checkpoint import latest_step, load_checkpoint, load_metadata
from gymnazo.envs import make
from gymnazo.error import InvalidSpace
from gymnazo.runner import (
    EvalMetrics,
    RunnerConfig,
    deterministic_policy,
    evaluate,
    greedy_policy,
    train_dqn,
    train_sac,
)

SMALL_DQN = DQNConfig(hidden_sizes=(16,), batch_size=16, target_update_freq=50, epsilon_decay_steps=200)
SMALL_SAC = SACConfig(hidden_sizes=(16,), batch_size=16)


class TestRunnerConfig:
    def test_defaults(self):
        config = RunnerConfig()
        assert config.total_timesteps == 100_000
        assert config.checkpoint_dir is None

    @pytest.mark.parametrize("field", ["total_timesteps", "train_freq", "log_interval"])
    def test_rejects_non_positive(self, field):
        with pytest.raises(ValueError):
            RunnerConfig(**{field: 0})


class TestEvaluate:
    def test_fixed_length_episodes(self, make_counting_env):
        env = make_counting_env(terminate_at=5, reward=2.0)
        result = evaluate(env, lambda obs: 0, n_episodes=3, seed=0)
        assert isinstance(result, EvalMetrics)
        assert result.mean_return == 10.0
        assert result.std_return == 0.0
        assert result.mean_length == 5.0
        assert result.episode_returns == (10.0, 10.0, 10.0)
        assert env.reset_calls == 3

    def test_max_steps(self, make_counting_env):
        env = make_counting_env(terminate_at=None)
        result = evaluate(env, lambda obs: 1, n_episodes=2, max_steps=3)
        assert result.mean_length == 3.0

    def test_truncation_ends_episode(self):
        env = make("Pendulum-v1", max_episode_steps=4)
        result = evaluate(env, lambda obs: np.zeros(1, dtype=np.float32), n_episodes=2, seed=1)
        assert result.mean_length == 4.0

    def test_invalid_episode_count(self, make_counting_env):
        with pytest.raises(ValueError):
            evaluate(make_counting_env(), lambda obs: 0, n_episodes=0)


class TestTrainDQN:
    def test_smoke(self, tmp_path):
        runner_config = RunnerConfig(
            total_timesteps=300,
            buffer_size=1_000,
            warmup_steps=50,
            log_interval=50,
            eval_every=150,
            eval_episodes=2,
            metrics_path=str(tmp_path / "metrics.jsonl"),
            checkpoint_dir=str(tmp_path / "ckpt"),
            checkpoint_interval=100,
        )
        records = []
        result = train_dqn(
            make("CartPole-v1"),
            dqn_config=SMALL_DQN,
            runner_config=runner_config,
            eval_env=make("CartPole-v1"),
            callback=lambda step, state, record: records.append(step),
        )

        assert isinstance(result.agent_state, DQNState)
        assert int(result.agent_state.step) == 251
        assert len(result.episode_returns) > 0
        assert all(r > 0 for r in result.episode_returns)
        assert [r["step"] for r in result.metrics_log] == [50, 100, 150, 200, 250, 300]
        assert records == [50, 100, 150, 200, 250, 300]
        assert [step for step, _ in result.eval_log] == [150, 300]

        lines = (tmp_path / "metrics.jsonl").read_text().splitlines()
        rows = [json.loads(line) for line in lines]
        assert any("loss" in row for row in rows)
        assert any("eval_return" in row for row in rows)

        assert latest_step(tmp_path / "ckpt") == 300
        assert load_metadata(tmp_path / "ckpt", step=300)["algorithm"] == "dqn"
        restored = load_checkpoint(tmp_path / "ckpt", result.agent_state, step=300)
        assert int(restored.step) == int(result.agent_state.step)

    def test_greedy_policy(self):
        result = train_dqn(
            make("CartPole-v1"),
            dqn_config=SMALL_DQN,
            runner_config=RunnerConfig(total_timesteps=20, warmup_steps=10, log_interval=10),
        )
        policy = greedy_policy(result.agent_state, SMALL_DQN)
        assert policy(np.zeros(4, dtype=np.float32)) in (0, 1)

    def test_requires_discrete_actions(self, make_box_env):
        with pytest.raises(InvalidSpace):
            train_dqn(make_box_env(), dqn_config=SMALL_DQN, runner_config=RunnerConfig(total_timesteps=1))


class TestTrainSAC:
    def test_smoke(self):
        runner_config = RunnerConfig(total_timesteps=250, buffer_size=1_000, warmup_steps=64, log_interval=50)
        result = train_sac(make("Pendulum-v1"), sac_config=SMALL_SAC, runner_config=runner_config)

        assert isinstance(result.agent_state, SACState)
        assert int(result.agent_state.step) == 250 - 64 + 1
        # Pendulum only ends through the 200-step time limit.
        assert len(result.episode_returns) == 1
        assert result.episode_returns[0] < 0.0
        assert [r["step"] for r in result.metrics_log] == [100, 150, 200, 250]
        assert all(np.isfinite(r["critic_loss"]) for r in result.metrics_log)

    def test_deterministic_policy_within_bounds(self):
        env = make("Pendulum-v1")
        result = train_sac(
            env,
            sac_config=SMALL_SAC,
            runner_config=RunnerConfig(total_timesteps=20, warmup_steps=16, log_interval=10),
        )
        config = SMALL_SAC.with_action_bounds(env.action_space.low, env.action_space.high)
        policy = deterministic_policy(result.agent_state, config, (1,))
        action = policy(np.zeros(3, dtype=np.float32))
        assert action.shape == (1,)
        assert -2.0 <= float(action[0]) <= 2.0

    def test_requires_box_actions(self, make_counting_env):
        with pytest.raises(InvalidSpace):
            train_sac(make_counting_env(), sac_config=SMALL_SAC, runner_config=RunnerConfig(total_timesteps=1))
