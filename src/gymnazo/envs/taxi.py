"""Taxi: pick up a passenger and drop them off at their destination.

The 5x5 map has four coloured stands (R, G, Y, B) and some walls::

    +---------+
    |R: | : :G|
    | : | : : |
    | : : : : |
    | | : | : |
    |Y| : |B: |
    +---------+

States encode ``((taxi_row * 5 + taxi_col) * 5 + passenger_loc) * 4 + destination``
where ``passenger_loc`` 0-3 is a stand and 4 means inside the taxi.
"""

from __future__ import annotations

from typing import Any

import jax
import jax.numpy as jnp
import numpy as np

from gymnazo.core import Env, ResetResult, StepResult
from gymnazo.envs.frozen_lake import Transition
from gymnazo.error import InvalidAction, InvalidConfiguration
from gymnazo.spaces import Discrete

SOUTH = 0
NORTH = 1
EAST = 2
WEST = 3
PICKUP = 4
DROPOFF = 5

_ACTION_NAMES = ("South", "North", "East", "West", "Pickup", "Dropoff")

MAP = (
    "+---------+",
    "|R: | : :G|",
    "| : | : : |",
    "| : : : : |",
    "| | : | : |",
    "|Y| : |B: |",
    "+---------+",
)
LOCS = ((0, 0), (0, 4), (4, 0), (4, 3))
IN_TAXI = 4

_MAX_ROW = 4
_MAX_COL = 4
_NUM_STATES = 500

# Rainy moves: (intended, slip one way, slip the other way).
_RAINY_MOVES = {
    SOUTH: ((1, 0), (0, -1), (0, 1)),
    NORTH: ((-1, 0), (0, -1), (0, 1)),
    EAST: ((0, 1), (1, 0), (-1, 0)),
    WEST: ((0, -1), (1, 0), (-1, 0)),
}


def encode(taxi_row: int, taxi_col: int, pass_loc: int, dest_idx: int) -> int:
    return ((taxi_row * 5 + taxi_col) * 5 + pass_loc) * 4 + dest_idx


def decode(state: int) -> tuple[int, int, int, int]:
    """Inverse of :func:`encode`: ``(taxi_row, taxi_col, pass_loc, dest_idx)``."""
    state, dest_idx = divmod(state, 4)
    state, pass_loc = divmod(state, 5)
    taxi_row, taxi_col = divmod(state, 5)
    return taxi_row, taxi_col, pass_loc, dest_idx


class Taxi(Env):
    """Taxi pickup and dropoff on a small walled grid.

    Observation: ``Discrete(500)`` encoded state (see :func:`encode`)
    Actions: ``0`` south, ``1`` north, ``2`` east, ``3`` west, ``4`` pickup, ``5`` dropoff
    Reward: ``-1`` per step, ``+20`` for a correct dropoff, ``-10`` for an
    illegal pickup or dropoff
    Termination: the passenger is dropped off at their destination

    Episodes start from a uniformly drawn state where the passenger
    waits at a stand other than the destination.  Every ``info`` carries
    ``prob`` and an ``action_mask`` (int8, one entry per action) of the
    actions that change the state.

    Options:
        is_rainy: moves succeed with probability 0.8 and slip sideways
            with probability 0.1 each.
        fickle_passenger: with probability 0.3 per episode, the passenger
            picks a new destination on the first move after pickup.
    """

    metadata = {"render_modes": ["ansi"]}

    def __init__(
        self,
        render_mode: str | None = None,
        is_rainy: bool = False,
        fickle_passenger: bool = False,
    ) -> None:
        if render_mode is not None and render_mode not in self.metadata["render_modes"]:
            raise InvalidConfiguration(
                f"Taxi does not support render_mode={render_mode!r}; "
                f"supported modes: {self.metadata['render_modes']}"
            )
        self.render_mode = render_mode
        self.is_rainy = is_rainy
        self.fickle_passenger = fickle_passenger
        self.desc = np.array([list(row) for row in MAP], dtype="<U1")

        self.observation_space = Discrete(_NUM_STATES)
        self.action_space = Discrete(6)

        self.initial_state_distrib = np.zeros(_NUM_STATES, dtype=np.float64)
        self.P: dict[int, dict[int, list[Transition]]] = {}
        for row in range(5):
            for col in range(5):
                for pass_loc in range(5):
                    for dest_idx in range(4):
                        state = encode(row, col, pass_loc, dest_idx)
                        if pass_loc < IN_TAXI and pass_loc != dest_idx:
                            self.initial_state_distrib[state] = 1.0
                        build = self._rainy_transitions if is_rainy else self._dry_transitions
                        self.P[state] = {
                            a: build(row, col, pass_loc, dest_idx, a) for a in range(6)
                        }
        self.initial_state_distrib /= self.initial_state_distrib.sum()

        self.s = 0
        self.last_action: int | None = None
        self.fickle_step = False

    # ------------------------------------------------------------------
    # Transition table
    # ------------------------------------------------------------------

    def _can_move_east(self, row: int, col: int) -> bool:
        return self.desc[1 + row, 2 * col + 2] == ":"

    def _can_move_west(self, row: int, col: int) -> bool:
        return self.desc[1 + row, 2 * col] == ":"

    @staticmethod
    def _pickup(taxi_loc: tuple[int, int], pass_loc: int, reward: float) -> tuple[int, float]:
        if pass_loc < IN_TAXI and taxi_loc == LOCS[pass_loc]:
            return IN_TAXI, reward
        return pass_loc, -10.0

    @staticmethod
    def _dropoff(
        taxi_loc: tuple[int, int], pass_loc: int, dest_idx: int, reward: float
    ) -> tuple[int, float, bool]:
        if pass_loc == IN_TAXI and taxi_loc == LOCS[dest_idx]:
            return dest_idx, 20.0, True
        if pass_loc == IN_TAXI and taxi_loc in LOCS:
            return LOCS.index(taxi_loc), reward, False
        return pass_loc, -10.0, False

    def _dry_transitions(
        self, row: int, col: int, pass_loc: int, dest_idx: int, action: int
    ) -> list[Transition]:
        new_row, new_col, new_pass = row, col, pass_loc
        reward, terminated = -1.0, False
        if action == SOUTH:
            new_row = min(row + 1, _MAX_ROW)
        elif action == NORTH:
            new_row = max(row - 1, 0)
        elif action == EAST and self._can_move_east(row, col):
            new_col = min(col + 1, _MAX_COL)
        elif action == WEST and self._can_move_west(row, col):
            new_col = max(col - 1, 0)
        elif action == PICKUP:
            new_pass, reward = self._pickup((row, col), pass_loc, reward)
        elif action == DROPOFF:
            new_pass, reward, terminated = self._dropoff((row, col), pass_loc, dest_idx, reward)
        return [Transition(1.0, encode(new_row, new_col, new_pass, dest_idx), reward, terminated)]

    def _slip(self, row: int, col: int, move: tuple[int, int]) -> tuple[int, int]:
        dr, dc = move
        new_row = min(max(row + dr, 0), _MAX_ROW)
        new_col = min(max(col + dc, 0), _MAX_COL)
        if dc > 0 and not self._can_move_east(row, col):
            return row, col
        if dc < 0 and not self._can_move_west(row, col):
            return row, col
        return new_row, new_col

    def _rainy_transitions(
        self, row: int, col: int, pass_loc: int, dest_idx: int, action: int
    ) -> list[Transition]:
        if action not in _RAINY_MOVES:
            return self._dry_transitions(row, col, pass_loc, dest_idx, action)

        blocked = (action == EAST and not self._can_move_east(row, col)) or (
            action == WEST and not self._can_move_west(row, col)
        )
        if blocked:
            return [Transition(1.0, encode(row, col, pass_loc, dest_idx), -1.0, False)]

        intended, left, right = _RAINY_MOVES[action]
        outcomes = []
        for prob, pos in (
            (0.8, self._slip(row, col, intended)),
            (0.1, self._slip(row, col, left)),
            (0.1, self._slip(row, col, right)),
        ):
            outcomes.append(Transition(prob, encode(*pos, pass_loc, dest_idx), -1.0, False))
        return outcomes

    def action_mask(self, state: int) -> np.ndarray:
        """Int8 mask of the actions that change ``state``."""
        mask = np.zeros(6, dtype=np.int8)
        taxi_row, taxi_col, pass_loc, _ = decode(state)
        taxi_loc = (taxi_row, taxi_col)
        mask[SOUTH] = taxi_row < _MAX_ROW
        mask[NORTH] = taxi_row > 0
        mask[EAST] = taxi_col < _MAX_COL and self._can_move_east(taxi_row, taxi_col)
        mask[WEST] = taxi_col > 0 and self._can_move_west(taxi_row, taxi_col)
        mask[PICKUP] = pass_loc < IN_TAXI and taxi_loc == LOCS[pass_loc]
        mask[DROPOFF] = pass_loc == IN_TAXI and taxi_loc in LOCS
        return mask

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
        self.fickle_step = self.fickle_passenger and bool(
            jax.random.uniform(self._next_key()) < 0.3
        )
        return jnp.int32(self.s), {"prob": 1.0, "action_mask": self.action_mask(self.s)}

    def step(self, action: Any) -> StepResult:
        self._check_step_allowed()
        a = int(action)
        if a not in self.P[self.s]:
            raise InvalidAction(f"Taxi action must be in [0, 6), got {action!r}")

        transitions = self.P[self.s][a]
        if len(transitions) == 1:
            outcome = transitions[0]
        else:
            probs = jnp.asarray([t.prob for t in transitions])
            idx = int(jax.random.categorical(self._next_key(), jnp.log(probs + 1e-9)))
            outcome = transitions[idx]

        old_row, old_col, old_pass, old_dest = decode(self.s)
        taxi_row, taxi_col, pass_loc, dest_idx = decode(outcome.next_state)
        moved = (taxi_row, taxi_col) != (old_row, old_col)
        if self.fickle_step and old_pass == IN_TAXI and moved:
            self.fickle_step = False
            choices = [i for i in range(len(LOCS)) if i != old_dest]
            dest_idx = choices[int(jax.random.randint(self._next_key(), (), 0, len(choices)))]
            self.s = encode(taxi_row, taxi_col, pass_loc, dest_idx)
        else:
            self.s = outcome.next_state

        self.last_action = a
        self._terminated = outcome.terminated
        info = {"prob": outcome.prob, "action_mask": self.action_mask(self.s)}
        return jnp.int32(self.s), outcome.reward, outcome.terminated, False, info

    def render(self) -> str | None:
        if self.render_mode != "ansi":
            return None
        out = self.desc.copy()
        taxi_row, taxi_col, pass_loc, dest_idx = decode(self.s)
        if pass_loc < IN_TAXI:
            out[1 + taxi_row, 2 * taxi_col + 1] = "T"
            pi, pj = LOCS[pass_loc]
            out[1 + pi, 2 * pj + 1] = "P"
        else:
            out[1 + taxi_row, 2 * taxi_col + 1] = "@"
        di, dj = LOCS[dest_idx]
        if out[1 + di, 2 * dj + 1] not in ("T", "@", "P"):
            out[1 + di, 2 * dj + 1] = "D"
        lines = ["".join(row) for row in out]
        if self.last_action is not None:
            lines.append(f"  ({_ACTION_NAMES[self.last_action]})")
        return "\n".join(lines) + "\n"
