"""Tests for the wrappers that keep state across steps."""

import numpy as np
import pytest

from gymnazo.error import InvalidConfiguration, InvalidSpace
from gymnazo.envs import FrozenLake
from gymnazo.wrappers import (
    FramePadding,
    FrameSkip,
    FrameStackObservation,
    NormalizeObservation,
    NormalizeReward,
    RunningMeanStd,
)


class TestRunningMeanStd:
    def test_mean_and_unbiased_variance(self):
        rms = RunningMeanStd(())
        for x in [1.0, 2.0, 3.0, 4.0]:
            rms.update(x)
        assert rms.count == 4
        assert rms.mean == pytest.approx(2.5)
        assert rms.var == pytest.approx(np.var([1, 2, 3, 4], ddof=1))

    def test_variance_is_one_before_two_samples(self):
        rms = RunningMeanStd((2,))
        np.testing.assert_array_equal(rms.var, [1.0, 1.0])
        rms.update(np.array([3.0, 4.0]))
        np.testing.assert_array_equal(rms.var, [1.0, 1.0])
        np.testing.assert_array_equal(rms.mean, [3.0, 4.0])


class TestNormalizeObservation:
    def test_normalises_with_running_stats(self, make_counting_env):
        env = NormalizeObservation(make_counting_env())
        obs, _ = env.reset(seed=0)
        assert float(obs[0]) == pytest.approx(0.0)
        obs, *_ = env.step(0)
        # Seen 0 and 1: mean 0.5, unbiased std sqrt(0.5)
        assert float(obs[0]) == pytest.approx(0.5 / np.sqrt(0.5), rel=1e-5)
        assert obs.dtype == np.float32

    def test_frozen_statistics(self, make_counting_env):
        env = NormalizeObservation(make_counting_env())
        env.reset(seed=0)
        env.update_running_mean = False
        env.step(0)
        assert env.obs_rms.count == 1

    def test_space_is_unbounded_float(self, make_counting_env):
        env = NormalizeObservation(make_counting_env())
        assert env.observation_space.shape == (1,)
        assert not env.observation_space.is_bounded("above")

    def test_requires_tensor_space(self, make_counting_env):
        inner = make_counting_env()
        from gymnazo.spaces import Text

        inner.observation_space = Text(3)
        with pytest.raises(InvalidSpace):
            NormalizeObservation(inner)


class TestNormalizeReward:
    def test_first_reward_scaled_by_unit_variance(self, make_counting_env):
        env = NormalizeReward(make_counting_env(reward=2.0), gamma=0.9)
        env.reset(seed=0)
        _, reward, *_ = env.step(0)
        assert reward == pytest.approx(2.0, rel=1e-6)

    def test_discounted_return_tracked(self, make_counting_env):
        env = NormalizeReward(make_counting_env(reward=1.0), gamma=0.5)
        env.reset(seed=0)
        env.step(0)
        env.step(0)
        assert env._discounted_return == pytest.approx(1.5)
        env.reset()
        assert env._discounted_return == 0.0

    def test_return_cleared_at_episode_end(self, make_counting_env):
        env = NormalizeReward(make_counting_env(terminate_at=2), gamma=0.99)
        env.reset(seed=0)
        env.step(0)
        env.step(0)
        assert env._discounted_return == 0.0
        assert env.return_rms.count == 2

    @pytest.mark.parametrize("gamma", [-0.1, 1.5])
    def test_gamma_range(self, make_counting_env, gamma):
        with pytest.raises(InvalidConfiguration):
            NormalizeReward(make_counting_env(), gamma=gamma)


class TestFrameStackObservation:
    def test_shape_and_space(self, make_counting_env):
        env = FrameStackObservation(make_counting_env(), stack_size=4)
        assert env.observation_space.shape == (4, 1)
        obs, _ = env.reset(seed=0)
        assert obs.shape == (4, 1)
        assert env.observation_space.contains(obs)

    def test_newest_frame_last(self, make_counting_env):
        env = FrameStackObservation(make_counting_env(), stack_size=3, padding=FramePadding.ZERO)
        obs, _ = env.reset(seed=0)
        np.testing.assert_array_equal(obs[:, 0], [0.0, 0.0, 0.0])
        env.step(0)
        obs, *_ = env.step(0)
        np.testing.assert_array_equal(obs[:, 0], [0.0, 1.0, 2.0])
        obs, *_ = env.step(0)
        np.testing.assert_array_equal(obs[:, 0], [1.0, 2.0, 3.0])

    def test_reset_padding_repeats_first_observation(self, make_counting_env):
        inner = make_counting_env()
        env = FrameStackObservation(inner, stack_size=2, padding="reset")
        env.reset(seed=0)
        env.step(0)
        obs, _ = env.reset()
        np.testing.assert_array_equal(obs[:, 0], [0.0, 0.0])

    def test_invalid_arguments(self, make_counting_env):
        with pytest.raises(InvalidConfiguration):
            FrameStackObservation(make_counting_env(), stack_size=0)
        with pytest.raises(InvalidConfiguration):
            FrameStackObservation(make_counting_env(), stack_size=2, padding="mirror")
        with pytest.raises(InvalidSpace):
            FrameStackObservation(FrozenLake(), stack_size=2)


class TestFrameSkip:
    def test_rewards_summed(self, make_counting_env):
        env = FrameSkip(make_counting_env(terminate_at=None, reward=0.5), skip=4)
        env.reset(seed=0)
        obs, reward, *_ = env.step(0)
        assert reward == pytest.approx(2.0)
        assert obs[0] == 4.0

    def test_stops_at_termination(self, make_counting_env):
        inner = make_counting_env(terminate_at=5)
        env = FrameSkip(inner, skip=3)
        env.reset(seed=0)
        env.step(0)
        obs, reward, terminated, _, _ = env.step(0)
        assert terminated
        assert reward == 2.0
        assert obs[0] == 5.0
        assert len(inner.actions) == 5

    def test_invalid_skip(self, make_counting_env):
        with pytest.raises(InvalidConfiguration):
            FrameSkip(make_counting_env(), skip=0)
