"""Root test configuration and shared toy environments.

Pins JAX to the CPU backend *before* JAX is imported anywhere, so the
suite behaves the same on machines with accelerators.
"""

import os

os.environ.setdefault("JAX_PLATFORMS", "cpu")

import numpy as np  # noqa: E402
import pytest  # noqa: E402

from gymnazo.core import Env  # noqa: E402
from gymnazo.spaces import Box, Discrete  # noqa: E402


class CountingEnv(Env):
    """Observation is the step count; constant reward; terminates at ``terminate_at``."""

    metadata = {"render_modes": ["ansi"]}

    def __init__(self, terminate_at: int | None = 10, reward: float = 1.0, render_mode=None):
        self.terminate_at = terminate_at
        self.reward_value = reward
        self.render_mode = render_mode
        self.observation_space = Box(0.0, np.inf, (1,), dtype=np.float32)
        self.action_space = Discrete(2)
        self.count = 0
        self.actions = []
        self.reset_calls = 0

    def _obs(self):
        return np.array([self.count], dtype=np.float32)

    def reset(self, *, seed=None, options=None):
        super().reset(seed=seed)
        self.count = 0
        self.reset_calls += 1
        return self._obs(), {"reset": True}

    def step(self, action):
        self._check_step_allowed()
        self.actions.append(action)
        self.count += 1
        terminated = self.terminate_at is not None and self.count >= self.terminate_at
        self._terminated = terminated
        return self._obs(), self.reward_value, terminated, False, {"count": self.count}

    def render(self):
        if self.render_mode == "ansi":
            return f"count={self.count}"
        return None


class BoxActionEnv(Env):
    """Continuous-action env that records the last action it received."""

    def __init__(self, low=-1.0, high=1.0, shape=(2,)):
        self.observation_space = Box(-1.0, 1.0, (3,), dtype=np.float32)
        self.action_space = Box(low, high, shape, dtype=np.float32)
        self.last_action = None

    def reset(self, *, seed=None, options=None):
        super().reset(seed=seed)
        return np.zeros(3, dtype=np.float32), {}

    def step(self, action):
        self._check_step_allowed()
        self.last_action = np.asarray(action)
        return np.zeros(3, dtype=np.float32), 0.0, False, False, {}


@pytest.fixture
def make_counting_env():
    return CountingEnv


@pytest.fixture
def make_box_env():
    return BoxActionEnv
