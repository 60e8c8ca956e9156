"""Tests for PassiveEnvChecker, OrderEnforcing, TimeLimit, AutoReset and RecordEpisodeStatistics."""

import logging

import numpy as np
import pytest

from gymnazo.error import DuplicateInfoKey, InvalidAction, InvalidConfiguration, ResetNeeded
from gymnazo.wrappers import (
    AutoReset,
    AutoresetMode,
    OrderEnforcing,
    PassiveEnvChecker,
    RecordEpisodeStatistics,
    TimeLimit,
    TransformObservation,
    wrap_validated,
)


class TestPassiveEnvChecker:
    def test_invalid_first_action_rejected(self, make_counting_env):
        env = PassiveEnvChecker(make_counting_env())
        env.reset(seed=0)
        with pytest.raises(InvalidAction):
            env.step(5)

    def test_only_first_step_is_checked(self, make_counting_env):
        env = PassiveEnvChecker(make_counting_env())
        env.reset(seed=0)
        env.step(1)
        env.step(5)  # passes straight through after the first check
        assert env.unwrapped.actions == [1, 5]

    def test_observation_outside_space_warns(self, make_counting_env, caplog):
        inner = TransformObservation(make_counting_env(), lambda obs: obs - 1.0)
        env = PassiveEnvChecker(inner)
        with caplog.at_level(logging.WARNING, logger="gymnazo.env_checker"):
            env.reset(seed=0)
        assert "not within the observation space" in caplog.text


class TestOrderEnforcing:
    def test_step_before_reset(self, make_counting_env):
        env = OrderEnforcing(make_counting_env())
        assert not env.has_reset
        with pytest.raises(ResetNeeded):
            env.step(0)

    def test_render_before_reset(self, make_counting_env):
        env = OrderEnforcing(make_counting_env(render_mode="ansi"))
        with pytest.raises(ResetNeeded):
            env.render()

    def test_render_allowed_when_disabled(self, make_counting_env):
        env = OrderEnforcing(
            make_counting_env(render_mode="ansi"), disable_render_order_enforcing=True
        )
        assert env.render() == "count=0"


class TestTimeLimit:
    def test_truncates_exactly_at_limit(self, make_counting_env):
        env = TimeLimit(make_counting_env(terminate_at=None), max_episode_steps=3)
        env.reset(seed=0)
        for _ in range(2):
            _, _, terminated, truncated, info = env.step(0)
            assert not terminated
            assert not truncated
            assert "TimeLimit.truncated" not in info
        _, _, terminated, truncated, info = env.step(0)
        assert truncated
        assert not terminated
        assert info["TimeLimit.truncated"] is True

    def test_reset_clears_counter(self, make_counting_env):
        env = TimeLimit(make_counting_env(terminate_at=None), max_episode_steps=2)
        env.reset(seed=0)
        env.step(0)
        assert env.elapsed_steps == 1
        env.reset()
        assert env.elapsed_steps == 0

    def test_termination_on_last_step_keeps_both_flags(self, make_counting_env):
        env = TimeLimit(make_counting_env(terminate_at=2), max_episode_steps=2)
        env.reset(seed=0)
        env.step(0)
        _, _, terminated, truncated, _ = env.step(0)
        assert terminated and truncated

    @pytest.mark.parametrize("limit", [0, -3])
    def test_rejects_non_positive_limit(self, make_counting_env, limit):
        with pytest.raises(InvalidConfiguration):
            TimeLimit(make_counting_env(), max_episode_steps=limit)


class TestAutoReset:
    def test_next_step_mode(self, make_counting_env):
        inner = make_counting_env(terminate_at=2)
        env = AutoReset(inner)
        env.reset(seed=0)
        env.step(0)
        obs, reward, terminated, truncated, info = env.step(0)
        assert terminated
        np.testing.assert_array_equal(info["final_observation"], obs)
        assert info["final_info"]["count"] == 2

        obs, reward, terminated, truncated, info = env.step(1)
        assert obs[0] == 0.0
        assert reward == 0.0
        assert not terminated and not truncated
        assert info == {"reset": True, "autoreset": True}
        assert inner.actions == [0, 0]  # the reset step ignores its action

    def test_same_step_mode(self, make_counting_env):
        env = AutoReset(make_counting_env(terminate_at=2), mode=AutoresetMode.SAME_STEP)
        env.reset(seed=0)
        env.step(0)
        obs, reward, terminated, _, info = env.step(0)
        assert terminated
        assert reward == 1.0
        assert obs[0] == 0.0
        assert info["final_observation"][0] == 2.0
        assert info["reset"] is True

    def test_disabled_mode_passes_through(self, make_counting_env):
        env = AutoReset(make_counting_env(terminate_at=1), mode="disabled")
        env.reset(seed=0)
        _, _, terminated, _, info = env.step(0)
        assert terminated
        assert "final_observation" not in info
        with pytest.raises(ResetNeeded):
            env.step(0)

    def test_unknown_mode(self, make_counting_env):
        with pytest.raises(InvalidConfiguration):
            AutoReset(make_counting_env(), mode="sometimes")

    def test_runs_many_episodes(self, make_counting_env):
        inner = make_counting_env(terminate_at=3)
        env = AutoReset(inner, mode=AutoresetMode.SAME_STEP)
        env.reset(seed=0)
        for _ in range(10):
            env.step(0)
        assert inner.reset_calls == 4


class TestRecordEpisodeStatistics:
    def test_constant_reward_episode(self, make_counting_env):
        env = RecordEpisodeStatistics(make_counting_env(terminate_at=10, reward=1.0))
        env.reset(seed=0)
        for _ in range(9):
            _, _, terminated, _, info = env.step(0)
            assert "episode" not in info
        _, _, terminated, _, info = env.step(0)
        assert terminated
        assert info["episode"]["r"] == 10.0
        assert info["episode"]["l"] == 10
        assert info["episode"]["t"] >= 0.0
        assert list(env.return_queue) == [10.0]
        assert env.episode_count == 1

    def test_counts_truncated_episodes(self, make_counting_env):
        env = RecordEpisodeStatistics(TimeLimit(make_counting_env(terminate_at=None), 4))
        env.reset(seed=0)
        for _ in range(4):
            _, _, _, truncated, info = env.step(0)
        assert truncated
        assert info["episode"]["l"] == 4

    def test_skips_next_step_reset_over_autoreset(self, make_counting_env):
        env = RecordEpisodeStatistics(AutoReset(make_counting_env(terminate_at=2)))
        env.reset(seed=0)
        lengths = []
        for _ in range(9):
            _, _, _, _, info = env.step(0)
            if "episode" in info:
                lengths.append(info["episode"]["l"])
        # Each 3-step cycle is two env steps plus one reset step.
        assert lengths == [2, 2, 2]
        assert list(env.return_queue) == [2.0, 2.0, 2.0]

    def test_autoreset_step_is_not_counted(self, make_counting_env):
        env = RecordEpisodeStatistics(AutoReset(make_counting_env(terminate_at=2)))
        env.reset(seed=0)
        env.step(0)
        env.step(0)
        _, reward, _, _, info = env.step(0)
        assert info["autoreset"] is True
        assert env.episode_lengths == 0
        assert env.episode_returns == 0.0

    def test_duplicate_info_key(self, make_counting_env):
        env = RecordEpisodeStatistics(make_counting_env(terminate_at=1), stats_key="count")
        env.reset(seed=0)
        with pytest.raises(DuplicateInfoKey):
            env.step(0)

    def test_buffer_length_bounds_queues(self, make_counting_env):
        env = RecordEpisodeStatistics(make_counting_env(terminate_at=1), buffer_length=2)
        for _ in range(3):
            env.reset()
            env.step(0)
        assert len(env.length_queue) == 2


class TestWrapValidated:
    def test_stack_order(self, make_counting_env):
        env = wrap_validated(make_counting_env(), max_episode_steps=5)
        assert str(env) == "<TimeLimit<OrderEnforcing<PassiveEnvChecker<CountingEnv instance>>>>"

    def test_without_limit(self, make_counting_env):
        env = wrap_validated(make_counting_env())
        assert isinstance(env, OrderEnforcing)
