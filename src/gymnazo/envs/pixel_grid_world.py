"""Grid navigation with RGB image observations.

The grid is rendered as an RGB image where:

- **Black** ``(0, 0, 0)``: empty cell
- **White** ``(255, 255, 255)``: the agent
- **Green** ``(0, 255, 0)``: the goal

Each cell is ``cell_px x cell_px`` pixels, so the full image size is
``(size * cell_px, size * cell_px, 3)``.  Pairs naturally with
``GrayscaleObservation``, ``ResizeObservation`` and
``FrameStackObservation``.
"""

from __future__ import annotations

from typing import Any

import equinox as eqx
import jax
import jax.numpy as jnp

from gymnazo.envs.base import EnvParams, EnvState, FunctionalEnv
from gymnazo.spaces import Box, Discrete

# Directional deltas: up, right, down, left
_DR = jnp.array([-1, 0, 1, 0], dtype=jnp.int32)
_DC = jnp.array([0, 1, 0, -1], dtype=jnp.int32)


class GridState(EnvState):
    row: jax.Array
    col: jax.Array


class PixelGridWorldParams(EnvParams):
    size: int = eqx.field(static=True, default=5)
    cell_px: int = eqx.field(static=True, default=8)


class PixelGridWorld(FunctionalEnv):
    """Walk from the top-left cell to the bottom-right goal.

    Observation: ``uint8`` RGB image of shape ``(size*cell_px, size*cell_px, 3)``.
    Actions: ``0``=up, ``1``=right, ``2``=down, ``3``=left.
    Reward: ``+1`` on reaching the goal, ``-0.01`` per step otherwise.
    """

    metadata = {"render_modes": ["rgb_array"]}

    def default_params(self) -> PixelGridWorldParams:
        return PixelGridWorldParams()

    def reset_state(
        self,
        key: jax.Array,
        params: PixelGridWorldParams,
        options: dict[str, Any] | None,
    ) -> GridState:
        return GridState(row=jnp.int32(0), col=jnp.int32(0))

    def transition(
        self,
        key: jax.Array,
        state: GridState,
        action: jax.Array,
        params: PixelGridWorldParams,
    ) -> tuple[GridState, jax.Array, jax.Array]:
        row = jnp.clip(state.row + _DR[action], 0, params.size - 1)
        col = jnp.clip(state.col + _DC[action], 0, params.size - 1)
        at_goal = (row == params.size - 1) & (col == params.size - 1)
        reward = jnp.where(at_goal, jnp.float32(1.0), jnp.float32(-0.01))
        return GridState(row=row, col=col), reward, at_goal

    def observe(self, state: GridState, params: PixelGridWorldParams) -> jax.Array:
        """Render the grid as an (H, W, 3) uint8 image."""
        size = params.size
        img = size * params.cell_px

        # Row/col cell index of every pixel, broadcast to (img, img)
        row_grid = (jnp.arange(img) // params.cell_px)[:, None]
        col_grid = (jnp.arange(img) // params.cell_px)[None, :]

        agent_mask = (row_grid == state.row) & (col_grid == state.col)
        goal_mask = (row_grid == size - 1) & (col_grid == size - 1)

        r = jnp.where(agent_mask, jnp.uint8(255), jnp.uint8(0))
        g = jnp.where(agent_mask | goal_mask, jnp.uint8(255), jnp.uint8(0))
        b = jnp.where(agent_mask, jnp.uint8(255), jnp.uint8(0))
        return jnp.stack([r, g, b], axis=-1)

    def make_observation_space(self, params: PixelGridWorldParams) -> Box:
        img = params.size * params.cell_px
        return Box(0, 255, (img, img, 3), dtype=jnp.uint8)

    def make_action_space(self, params: PixelGridWorldParams) -> Discrete:
        return Discrete(4)

    def render(self) -> jax.Array | None:
        if self.render_mode != "rgb_array" or self.state is None:
            return None
        return self._observe(self.state, self.params)
