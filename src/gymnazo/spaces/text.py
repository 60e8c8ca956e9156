"""Bounded-length strings over a fixed character set."""

from __future__ import annotations

import string
from typing import Any

import equinox as eqx
import jax
import numpy as np

from gymnazo.error import InvalidConfiguration
from gymnazo.spaces.space import Space

ALPHANUMERIC = string.ascii_letters + string.digits


class Text(Space):
    """Strings of ``min_length`` to ``max_length`` characters from ``charset``.

    Samples are plain Python ``str``.  The charset is de-duplicated
    keeping first occurrences, and character indices (used by
    flattening) follow that order.
    """

    max_length: int = eqx.field(static=True)
    min_length: int = eqx.field(static=True)
    charset: str = eqx.field(static=True)

    def __init__(
        self,
        max_length: int,
        *,
        min_length: int = 1,
        charset: str = ALPHANUMERIC,
    ) -> None:
        charset = "".join(dict.fromkeys(charset))
        if not charset:
            raise InvalidConfiguration("Text requires a non-empty charset")
        if min_length < 0 or max_length < min_length:
            raise InvalidConfiguration(
                f"Text requires 0 <= min_length <= max_length, got {min_length}, {max_length}"
            )
        self.max_length = int(max_length)
        self.min_length = int(min_length)
        self.charset = charset

    def character_index(self, char: str) -> int:
        return self.charset.index(char)

    def sample(
        self,
        key: jax.Array,
        mask: Any | None = None,
        probability: Any | None = None,
    ) -> str:
        self._reject_sampling_args(mask, probability)
        length_key, char_key = jax.random.split(key)
        length = int(jax.random.randint(length_key, (), self.min_length, self.max_length + 1))
        indices = np.asarray(
            jax.random.randint(char_key, (self.max_length,), 0, len(self.charset))
        )
        return "".join(self.charset[i] for i in indices[:length])

    def contains(self, x: Any) -> bool:
        if not isinstance(x, str):
            return False
        if not self.min_length <= len(x) <= self.max_length:
            return False
        return all(c in self.charset for c in x)

    def __repr__(self) -> str:
        return f"Text({self.min_length}, {self.max_length}, charset={self.charset!r})"
