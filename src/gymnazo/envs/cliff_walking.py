"""CliffWalking: walk along a cliff edge from start to goal.

The 4x12 grid (Sutton & Barto, example 6.6)::

    o  o  o  o  o  o  o  o  o  o  o  o
    o  o  o  o  o  o  o  o  o  o  o  o
    o  o  o  o  o  o  o  o  o  o  o  o
    S  C  C  C  C  C  C  C  C  C  C  G

Stepping onto the cliff ``C`` costs ``-100`` and sends the agent back to
``S`` without ending the episode.
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

UP = 0
RIGHT = 1
DOWN = 2
LEFT = 3

_DELTAS = ((-1, 0), (0, 1), (1, 0), (0, -1))

NROW = 4
NCOL = 12
START_STATE = 36
GOAL_STATE = 47


class CliffWalking(Env):
    """Shortest-path grid world with a cliff along the bottom row.

    Observation: ``row * 12 + col`` as a ``Discrete(48)`` index, starting at ``36``
    Actions: ``0`` up, ``1`` right, ``2`` down, ``3`` left
    Reward: ``-1`` per step, ``-100`` for stepping onto the cliff
    Termination: reaching the goal (state ``47``)

    With ``is_slippery=True`` the agent moves in the intended direction
    or either perpendicular one, each with probability 1/3.
    """

    metadata = {"render_modes": ["ansi"]}

    def __init__(self, render_mode: str | None = None, is_slippery: bool = False) -> None:
        if render_mode is not None and render_mode not in self.metadata["render_modes"]:
            raise InvalidConfiguration(
                f"CliffWalking does not support render_mode={render_mode!r}; "
                f"supported modes: {self.metadata['render_modes']}"
            )
        self.render_mode = render_mode
        self.is_slippery = is_slippery

        self.cliff = np.zeros((NROW, NCOL), dtype=bool)
        self.cliff[3, 1:-1] = True

        self.observation_space = Discrete(NROW * NCOL)
        self.action_space = Discrete(4)
        self.P = {
            s: {a: self._transitions(*divmod(s, NCOL), a) for a in range(4)}
            for s in range(NROW * NCOL)
        }

        self.s = START_STATE
        self.last_action: int | None = None

    def _transitions(self, row: int, col: int, action: int) -> list[Transition]:
        actions = [(action + 3) % 4, action, (action + 1) % 4] if self.is_slippery else [action]
        prob = 1.0 / len(actions)
        outcomes = []
        for a in actions:
            dr, dc = _DELTAS[a]
            new_row = min(max(row + dr, 0), NROW - 1)
            new_col = min(max(col + dc, 0), NCOL - 1)
            if self.cliff[new_row, new_col]:
                outcomes.append(Transition(prob, START_STATE, -100.0, False))
            else:
                new_state = new_row * NCOL + new_col
                outcomes.append(Transition(prob, new_state, -1.0, new_state == GOAL_STATE))
        return outcomes

    def reset(
        self,
        *,
        seed: int | None = None,
        options: dict[str, Any] | None = None,
    ) -> ResetResult:
        super().reset(seed=seed)
        self.s = START_STATE
        self.last_action = None
        return jnp.int32(self.s), {"prob": 1.0}

    def step(self, action: Any) -> StepResult:
        self._check_step_allowed()
        a = int(action)
        if a not in self.P[self.s]:
            raise InvalidAction(f"CliffWalking action must be in [0, 4), got {action!r}")

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
        lines = []
        for row in range(NROW):
            cells = []
            for col in range(NCOL):
                state = row * NCOL + col
                if state == self.s:
                    cells.append(" x ")
                elif state == GOAL_STATE:
                    cells.append(" G ")
                elif state == START_STATE:
                    cells.append(" S ")
                elif self.cliff[row, col]:
                    cells.append(" C ")
                else:
                    cells.append(" o ")
            lines.append("".join(cells))
        return "\n".join(lines) + "\n"
