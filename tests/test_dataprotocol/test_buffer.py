import numpy as np
import pytest

from gymnazo.dataprotocol import ReplayBuffer, Transition
from gymnazo.error import InvalidConfiguration


def _push_range(buf: ReplayBuffer, n: int) -> None:
    for i in range(n):
        buf.push(
            obs=np.array([i, i], dtype=np.float32),
            action=i % 4,
            reward=float(i),
            next_obs=np.array([i + 1, i + 1], dtype=np.float32),
            terminated=i % 5 == 4,
        )


class TestReplayBuffer:
    def test_push_and_len(self):
        buf = ReplayBuffer(capacity=10, obs_shape=(2,))
        assert len(buf) == 0
        _push_range(buf, 2)
        assert len(buf) == 2

    def test_capacity_wraps(self):
        buf = ReplayBuffer(capacity=3, obs_shape=(2,), seed=0)
        _push_range(buf, 5)
        assert len(buf) == 3
        # Only the three most recent transitions remain.
        batch = buf.sample(64)
        assert set(np.asarray(batch.reward).tolist()) <= {2.0, 3.0, 4.0}

    def test_sample_shapes_and_dtypes(self):
        buf = ReplayBuffer(capacity=100, obs_shape=(2,))
        _push_range(buf, 20)
        batch = buf.sample(batch_size=8)
        assert isinstance(batch, Transition)
        assert batch.obs.shape == (8, 2)
        assert batch.action.shape == (8,)
        assert batch.action.dtype == np.int32
        assert batch.reward.shape == (8,)
        assert batch.next_obs.shape == (8, 2)
        assert batch.terminated.dtype == np.bool_

    def test_sample_is_consistent(self):
        buf = ReplayBuffer(capacity=100, obs_shape=(2,), seed=1)
        _push_range(buf, 50)
        batch = buf.sample(batch_size=16)
        obs = np.asarray(batch.obs)
        np.testing.assert_array_equal(obs[:, 0], np.asarray(batch.reward))
        np.testing.assert_array_equal(np.asarray(batch.next_obs), obs + 1)
        np.testing.assert_array_equal(np.asarray(batch.terminated), obs[:, 0] % 5 == 4)

    def test_seeded_sampling(self):
        a = ReplayBuffer(capacity=100, obs_shape=(2,), seed=3)
        b = ReplayBuffer(capacity=100, obs_shape=(2,), seed=3)
        _push_range(a, 30)
        _push_range(b, 30)
        np.testing.assert_array_equal(a.sample(10).reward, b.sample(10).reward)

    def test_continuous_actions(self):
        buf = ReplayBuffer(capacity=10, obs_shape=(3,), action_shape=(2,), action_dtype=np.float32)
        buf.push(np.zeros(3), np.array([0.5, -0.5]), 1.0, np.ones(3), False)
        batch = buf.sample(4)
        assert batch.action.shape == (4, 2)
        assert batch.action.dtype == np.float32

    def test_push_transition(self):
        buf = ReplayBuffer(capacity=10, obs_shape=(2,))
        buf.push_transition(Transition(np.zeros(2), 1, 2.0, np.ones(2), True))
        batch = buf.sample(1)
        assert int(batch.action[0]) == 1
        assert bool(batch.terminated[0])

    def test_sample_empty_raises(self):
        buf = ReplayBuffer(capacity=10, obs_shape=(2,))
        with pytest.raises(ValueError):
            buf.sample(1)

    def test_invalid_capacity(self):
        with pytest.raises(InvalidConfiguration):
            ReplayBuffer(capacity=0, obs_shape=(2,))
