"""Observation and action spaces.

Quick start::

    import jax
    from gymnazo import spaces

    space = spaces.Dict({"position": spaces.Box(-1.0, 1.0, (2,)), "gear": spaces.Discrete(3)})
    x = space.sample(jax.random.PRNGKey(0))
    assert space.contains(x)

    flat = spaces.flatten(space, x)          # shape (5,)
    assert spaces.flatdim(space) == 5
    restored = spaces.unflatten(space, flat)
"""

from gymnazo.spaces.box import Box
from gymnazo.spaces.dict import Dict
from gymnazo.spaces.discrete import Discrete
from gymnazo.spaces.graph import Graph, GraphSample
from gymnazo.spaces.multi_binary import MultiBinary
from gymnazo.spaces.multi_discrete import MultiDiscrete
from gymnazo.spaces.sequence import Sequence, SequenceSample
from gymnazo.spaces.space import Space, TensorSpace
from gymnazo.spaces.text import Text
from gymnazo.spaces.tuple import Tuple
from gymnazo.spaces.utils import flatdim, flatten, flatten_space, unflatten

__all__ = [
    # Base classes
    "Space",
    "TensorSpace",
    # Tensor spaces
    "Box",
    "Discrete",
    "MultiBinary",
    "MultiDiscrete",
    # Composite spaces
    "Dict",
    "Tuple",
    # Structured spaces
    "Graph",
    "GraphSample",
    "Sequence",
    "SequenceSample",
    "Text",
    # Flattening
    "flatdim",
    "flatten",
    "flatten_space",
    "unflatten",
]
