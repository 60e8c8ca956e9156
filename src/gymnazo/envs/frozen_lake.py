"""FrozenLake: cross a frozen lake from start to goal without falling into a hole.

The lake is a grid of tiles::

    S  start        F  frozen (walkable)
    H  hole (ends)  G  goal (ends, reward 1)

On a slippery lake the agent moves in the intended direction with
probability ``success_rate`` and in each perpendicular direction with
probability ``(1 - success_rate) / 2``.
"""

from __future__ import annotations

from typing import Any, NamedTuple

import equinox as eqx
import jax
import jax.numpy as jnp
import numpy as np

from gymnazo.core import Env, ResetResult, StepResult
from gymnazo.envs.base import EnvParams, make_params
from gymnazo.error import InvalidAction, InvalidConfiguration
from gymnazo.seeding import make_rng, random_seed, split_key
from gymnazo.spaces import Discrete

LEFT = 0
DOWN = 1
RIGHT = 2
UP = 3

_ACTION_NAMES = ("Left", "Down", "Right", "Up")

MAPS: dict[str, list[str]] = {
    "4x4": ["SFFF", "FHFH", "FFFH", "HFFG"],
    "8x8": [
        "SFFFFFFF",
        "FFFFFFFF",
        "FFFHFFFF",
        "FFFFFHFF",
        "FFFHFFFF",
        "FHHFFFHF",
        "FHFFHFHF",
        "FFFHFFFG",
    ],
}


class Transition(NamedTuple):
    prob: float
    next_state: int
    reward: float
    terminated: bool


def _has_path(board: list[list[str]]) -> bool:
    """Depth-first search from the top-left corner to any goal tile."""
    size = len(board)
    frontier = [(0, 0)]
    discovered: set[tuple[int, int]] = set()
    while frontier:
        r, c = frontier.pop()
        if (r, c) in discovered:
            continue
        discovered.add((r, c))
        for dr, dc in ((1, 0), (0, 1), (-1, 0), (0, -1)):
            nr, nc = r + dr, c + dc
            if not (0 <= nr < size and 0 <= nc < size):
                continue
            if board[nr][nc] == "G":
                return True
            if board[nr][nc] != "H":
                frontier.append((nr, nc))
    return False


def generate_random_map(size: int = 8, p: float = 0.8, key: jax.Array | None = None) -> list[str]:
    """Generate a random ``size x size`` map that has a path from start to goal.

    Each tile is frozen with probability ``p`` and a hole otherwise; maps
    are redrawn until the goal is reachable.

    Example::

        desc = generate_random_map(size=6, key=jax.random.PRNGKey(0))
        env = FrozenLake(desc=desc)
    """
    if size < 2:
        raise InvalidConfiguration(f"size must be >= 2, got {size}")
    if not 0.0 < p <= 1.0:
        raise InvalidConfiguration(f"p must be in (0, 1], got {p}")
    if key is None:
        key = make_rng(random_seed())

    while True:
        key, draw_key = split_key(key)
        frozen = np.asarray(jax.random.uniform(draw_key, (size, size)) < p)
        board = [["F" if f else "H" for f in row] for row in frozen]
        board[0][0] = "S"
        board[-1][-1] = "G"
        if _has_path(board):
            return ["".join(row) for row in board]


def _as_desc(desc: Any) -> tuple[str, ...] | None:
    return None if desc is None else tuple("".join(row) for row in desc)


class FrozenLakeParams(EnvParams):
    desc: tuple[str, ...] | None = eqx.field(static=True, default=None, converter=_as_desc)
    map_name: str | None = eqx.field(static=True, default="4x4")
    is_slippery: bool = eqx.field(static=True, default=True)
    success_rate: float = eqx.field(static=True, default=1.0 / 3.0)
    # Rewards for reaching the goal, a hole, a frozen tile.
    reward_schedule: tuple[float, float, float] = eqx.field(static=True, default=(1.0, 0.0, 0.0))

    def __check_init__(self) -> None:
        if self.desc is None and self.map_name is not None and self.map_name not in MAPS:
            raise InvalidConfiguration(
                f"Unknown map_name {self.map_name!r}; expected one of {sorted(MAPS)}"
            )
        if not 0.0 <= self.success_rate <= 1.0:
            raise InvalidConfiguration(f"success_rate must be in [0, 1], got {self.success_rate}")


class FrozenLake(Env):
    """Grid navigation on a (possibly slippery) frozen lake.

    Observation: ``row * ncol + col`` as a ``Discrete(nrow * ncol)`` index
    Actions: ``0`` left, ``1`` down, ``2`` right, ``3`` up
    Reward: ``1`` on reaching the goal, ``0`` otherwise.

    The map comes from ``desc`` if given, else from ``map_name``; with
    neither, a random 8x8 map is generated.  ``P[s][a]`` lists the
    possible :class:`Transition` outcomes of taking action ``a`` in
    state ``s``; ``info["prob"]`` reports the probability of the outcome
    that happened.

    Example::

        env = FrozenLake(map_name="8x8", is_slippery=False)
    """

    metadata = {"render_modes": ["ansi"]}

    def __init__(
        self,
        params: FrozenLakeParams | None = None,
        render_mode: str | None = None,
        **overrides: Any,
    ) -> None:
        if render_mode is not None and render_mode not in self.metadata["render_modes"]:
            raise InvalidConfiguration(
                f"FrozenLake does not support render_mode={render_mode!r}; "
                f"supported modes: {self.metadata['render_modes']}"
            )
        self.params = make_params(params if params is not None else FrozenLakeParams(), overrides)
        desc = self.params.desc
        if desc is None:
            desc = MAPS[self.params.map_name] if self.params.map_name is not None else generate_random_map()

        if len(desc) == 0 or len({len(row) for row in desc}) != 1:
            raise InvalidConfiguration("FrozenLake maps must be non-empty and rectangular")
        self.desc = np.array([list(row) for row in desc], dtype="<U1")
        if not np.isin(self.desc, list("SFHG")).all():
            raise InvalidConfiguration("FrozenLake maps may only contain S, F, H and G tiles")
        if not (self.desc == "S").any():
            raise InvalidConfiguration("FrozenLake map has no start tile")
        self.nrow, self.ncol = self.desc.shape

        self.render_mode = render_mode
        self.is_slippery = self.params.is_slippery
        self.success_rate = self.params.success_rate
        self.reward_schedule = self.params.reward_schedule

        self.observation_space = Discrete(self.nrow * self.ncol)
        self.action_space = Discrete(4)
        self.initial_state_distrib = (self.desc == "S").ravel().astype(np.float64)
        self.initial_state_distrib /= self.initial_state_distrib.sum()
        self.P = self._build_transitions()

        self.s = int(np.argmax(self.initial_state_distrib))
        self.last_action: int | None = None

    # ------------------------------------------------------------------
    # Transition table
    # ------------------------------------------------------------------

    def _move(self, row: int, col: int, action: int) -> tuple[int, int]:
        if action == LEFT:
            col = max(col - 1, 0)
        elif action == DOWN:
            row = min(row + 1, self.nrow - 1)
        elif action == RIGHT:
            col = min(col + 1, self.ncol - 1)
        elif action == UP:
            row = max(row - 1, 0)
        return row, col

    def _outcome(self, row: int, col: int, action: int, prob: float) -> Transition:
        new_row, new_col = self._move(row, col, action)
        tile = self.desc[new_row, new_col]
        goal_reward, hole_reward, frozen_reward = self.reward_schedule
        if tile == "G":
            reward = goal_reward
        elif tile == "H":
            reward = hole_reward
        else:
            reward = frozen_reward
        return Transition(prob, new_row * self.ncol + new_col, float(reward), tile in "GH")

    def _build_transitions(self) -> dict[int, dict[int, list[Transition]]]:
        fail_prob = (1.0 - self.success_rate) / 2.0
        table: dict[int, dict[int, list[Transition]]] = {}
        for row in range(self.nrow):
            for col in range(self.ncol):
                s = row * self.ncol + col
                table[s] = {}
                for a in range(4):
                    if self.desc[row, col] in "GH":
                        table[s][a] = [Transition(1.0, s, 0.0, True)]
                    elif self.is_slippery:
                        table[s][a] = [
                            self._outcome(row, col, b, self.success_rate if b == a else fail_prob)
                            for b in ((a - 1) % 4, a, (a + 1) % 4)
                        ]
                    else:
                        table[s][a] = [self._outcome(row, col, a, 1.0)]
        return table

    # ------------------------------------------------------------------
    # Env API
    # ------------------------------------------------------------------

    def reset(
        self,
        *,
        seed: int | None = None,
        options: dict[str, Any] | None = None,
    ) -> ResetResult:
        super().reset(seed=seed)
        logits = jnp.log(jnp.asarray(self.initial_state_distrib) + 1e-12)
        self.s = int(jax.random.categorical(self._next_key(), logits))
        self.last_action = None
        return jnp.int32(self.s), {"prob": 1.0}

    def step(self, action: Any) -> StepResult:
        self._check_step_allowed()
        a = int(action)
        if a not in self.P[self.s]:
            raise InvalidAction(f"FrozenLake action must be in [0, 4), got {action!r}")

        transitions = self.P[self.s][a]
        if len(transitions) == 1:
            outcome = transitions[0]
        else:
            probs = jnp.asarray([t.prob for t in transitions])
            idx = int(jax.random.categorical(self._next_key(), jnp.log(probs + 1e-9)))
            outcome = transitions[idx]

        self.s = outcome.next_state
        self.last_action = a
        self._terminated = outcome.terminated
        return jnp.int32(self.s), outcome.reward, outcome.terminated, False, {"prob": outcome.prob}

    def render(self) -> str | None:
        if self.render_mode != "ansi":
            return None
        return self.render_text()

    def render_text(self) -> str:
        """Text picture of the lake; the agent is ``P`` (``X`` when in a hole)."""
        row, col = divmod(self.s, self.ncol)
        lines = []
        if self.last_action is not None:
            lines.append(f"  ({_ACTION_NAMES[self.last_action]})")
        for r in range(self.nrow):
            tiles = list(self.desc[r])
            if r == row:
                tiles[col] = "X" if tiles[col] == "H" else "P"
            lines.append(" ".join(tiles))
        return "\n".join(lines) + "\n"
