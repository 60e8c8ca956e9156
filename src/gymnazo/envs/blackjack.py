"""Blackjack against a fixed-policy dealer, drawn from an infinite deck."""

from __future__ import annotations

from typing import Any

import jax
import jax.numpy as jnp

from gymnazo.core import Env, ResetResult, StepResult
from gymnazo.error import InvalidAction, InvalidConfiguration
from gymnazo.spaces import Discrete, Tuple

STICK = 0
HIT = 1

# 1 = ace, face cards count 10.
DECK = (1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 10, 10, 10)


def usable_ace(hand: list[int]) -> bool:
    return 1 in hand and sum(hand) + 10 <= 21


def sum_hand(hand: list[int]) -> int:
    return sum(hand) + 10 if usable_ace(hand) else sum(hand)


def is_bust(hand: list[int]) -> bool:
    return sum_hand(hand) > 21


def score(hand: list[int]) -> int:
    return 0 if is_bust(hand) else sum_hand(hand)


def is_natural(hand: list[int]) -> bool:
    return sorted(hand) == [1, 10]


def _compare(a: int, b: int) -> float:
    return float(a > b) - float(a < b)


class Blackjack(Env):
    """Beat the dealer by getting closer to 21 without going over.

    Observation: ``(player_sum, dealer_card, usable_ace)`` in
    ``Tuple(Discrete(32), Discrete(11), Discrete(2))``; the dealer card is
    1-10 with 1 for an ace.
    Actions: ``0`` stick, ``1`` hit
    Reward: ``+1`` win, ``-1`` loss, ``0`` draw

    The player is dealt two cards and tops up to at least 12 before the
    first decision.  Hitting past 21 loses immediately.  On stick the
    dealer draws until reaching 17 and the hands are compared.

    ``natural=True`` pays ``1.5`` for winning with a natural blackjack.
    ``sab=True`` follows Sutton & Barto: a natural beats any non-natural
    dealer hand for ``+1`` and ``natural`` is ignored.
    """

    metadata = {"render_modes": ["ansi"]}

    def __init__(self, render_mode: str | None = None, natural: bool = False, sab: bool = False) -> None:
        if render_mode is not None and render_mode not in self.metadata["render_modes"]:
            raise InvalidConfiguration(
                f"Blackjack does not support render_mode={render_mode!r}; "
                f"supported modes: {self.metadata['render_modes']}"
            )
        self.render_mode = render_mode
        self.natural = natural
        self.sab = sab
        self.observation_space = Tuple((Discrete(32), Discrete(11), Discrete(2)))
        self.action_space = Discrete(2)
        self.player: list[int] = []
        self.dealer: list[int] = []

    def _draw_card(self) -> int:
        return DECK[int(jax.random.randint(self._next_key(), (), 0, len(DECK)))]

    def _get_obs(self) -> tuple[jax.Array, jax.Array, jax.Array]:
        return (
            jnp.int32(sum_hand(self.player)),
            jnp.int32(self.dealer[0]),
            jnp.int32(usable_ace(self.player)),
        )

    def reset(
        self,
        *,
        seed: int | None = None,
        options: dict[str, Any] | None = None,
    ) -> ResetResult:
        super().reset(seed=seed)
        self.dealer = [self._draw_card(), self._draw_card()]
        self.player = [self._draw_card(), self._draw_card()]
        while sum_hand(self.player) < 12:
            self.player.append(self._draw_card())
        return self._get_obs(), {}

    def step(self, action: Any) -> StepResult:
        self._check_step_allowed()
        a = int(action)
        if a not in (STICK, HIT):
            raise InvalidAction(f"Blackjack action must be 0 (stick) or 1 (hit), got {action!r}")

        if a == HIT:
            self.player.append(self._draw_card())
            terminated = is_bust(self.player)
            reward = -1.0 if terminated else 0.0
        else:
            terminated = True
            while sum_hand(self.dealer) < 17:
                self.dealer.append(self._draw_card())
            reward = _compare(score(self.player), score(self.dealer))
            if self.sab and is_natural(self.player) and not is_natural(self.dealer):
                reward = 1.0
            elif not self.sab and self.natural and is_natural(self.player) and reward == 1.0:
                reward = 1.5

        self._terminated = terminated
        return self._get_obs(), reward, terminated, False, {}

    def render(self) -> str | None:
        if self.render_mode != "ansi":
            return None
        return (
            f"Player: {self.player} (sum {sum_hand(self.player)})\n"
            f"Dealer shows: {self.dealer[0]}\n"
        )
