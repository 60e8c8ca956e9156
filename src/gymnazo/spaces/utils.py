"""Flattening structured samples into numeric vectors and back.

``flatten_space(space)`` gives the canonical flat form of a space,
``flatten(space, x)`` encodes a sample and ``unflatten(space, flat)``
decodes it, so that ``unflatten(space, flatten(space, x)) == x`` for
every member ``x``.

Encodings:

- ``Box``: reshaped to 1-D, dtype kept
- ``Discrete``: one-hot of length ``n``
- ``MultiDiscrete``: concatenated one-hots, one per entry
- ``MultiBinary``: reshaped to 1-D float32
- ``Text``: charset index per character as float32, padded with ``-1``
- ``Tuple`` / ``Dict``: concatenation of the children (``Dict`` in key order)
- ``Sequence`` / ``Graph``: stay padded structures whose rows are flattened

Each function dispatches on the space type with
:func:`functools.singledispatch`; register an implementation to support
a custom space.
"""

from __future__ import annotations

import math
from functools import singledispatch
from typing import Any

import jax
import jax.numpy as jnp
import numpy as np

from gymnazo.error import UnsupportedSpace
from gymnazo.spaces.box import Box
from gymnazo.spaces.dict import Dict
from gymnazo.spaces.discrete import Discrete
from gymnazo.spaces.graph import Graph, GraphSample
from gymnazo.spaces.multi_binary import MultiBinary
from gymnazo.spaces.multi_discrete import MultiDiscrete
from gymnazo.spaces.sequence import Sequence, SequenceSample
from gymnazo.spaces.space import Space
from gymnazo.spaces.text import Text
from gymnazo.spaces.tuple import Tuple


def _unsupported(space: Any, operation: str) -> UnsupportedSpace:
    return UnsupportedSpace(f"{operation} is not defined for {type(space).__name__}: {space!r}")


# ---------------------------------------------------------------------------
# flatdim
# ---------------------------------------------------------------------------


def flatdim(space: Space) -> int:
    """Length of the vector produced by :func:`flatten`.

    Only defined for spaces that flatten to a ``Box``.
    """
    if not space.is_np_flattenable:
        raise _unsupported(space, "flatdim")
    return math.prod(flatten_space(space).shape)


# ---------------------------------------------------------------------------
# flatten_space
# ---------------------------------------------------------------------------


@singledispatch
def flatten_space(space: Space) -> Space:
    """Return the flat counterpart of *space*."""
    raise _unsupported(space, "flatten_space")


@flatten_space.register(Box)
def _flatten_space_box(space: Box) -> Box:
    return Box(space._np_low().ravel(), space._np_high().ravel(), dtype=space.dtype)


@flatten_space.register(Discrete)
def _flatten_space_discrete(space: Discrete) -> Box:
    return Box(0.0, 1.0, (space.n,), dtype=jnp.float32)


@flatten_space.register(MultiDiscrete)
def _flatten_space_multi_discrete(space: MultiDiscrete) -> Box:
    return Box(0.0, 1.0, (int(space.nvec.sum()),), dtype=jnp.float32)


@flatten_space.register(MultiBinary)
def _flatten_space_multi_binary(space: MultiBinary) -> Box:
    return Box(0.0, 1.0, (math.prod(space.shape),), dtype=jnp.float32)


@flatten_space.register(Text)
def _flatten_space_text(space: Text) -> Box:
    return Box(-1.0, float(len(space.charset) - 1), (space.max_length,), dtype=jnp.float32)


def _concat_boxes(spaces: list[Space]) -> Box:
    boxes = [flatten_space(s) for s in spaces]
    for s, box in zip(spaces, boxes, strict=True):
        if not isinstance(box, Box):
            raise _unsupported(s, "Box flattening")
    if not boxes:
        return Box(np.zeros(0), np.zeros(0), dtype=jnp.float32)
    return Box(
        np.concatenate([b._np_low() for b in boxes]),
        np.concatenate([b._np_high() for b in boxes]),
        dtype=np.result_type(*[b.dtype for b in boxes]),
    )


@flatten_space.register(Tuple)
def _flatten_space_tuple(space: Tuple) -> Box:
    return _concat_boxes(list(space.spaces))


@flatten_space.register(Dict)
def _flatten_space_dict(space: Dict) -> Box:
    return _concat_boxes(list(space.spaces.values()))


@flatten_space.register(Sequence)
def _flatten_space_sequence(space: Sequence) -> Sequence:
    return Sequence(
        flatten_space(space.space), space.max_length, min_length=space.min_length
    )


@flatten_space.register(Graph)
def _flatten_space_graph(space: Graph) -> Graph:
    return Graph(
        flatten_space(space.node_space),
        flatten_space(space.edge_space),
        space.max_nodes,
        space.max_edges,
        allow_self_loops=space.allow_self_loops,
        directed=space.directed,
    )


# ---------------------------------------------------------------------------
# Row-wise encoding for tensor spaces
#
# ``values`` always carries a leading batch axis, which lets the same code
# serve single samples, Sequence rows and Graph node/edge rows.
# ---------------------------------------------------------------------------


@singledispatch
def _flatten_rows(space: Space, values: jax.Array) -> jax.Array:
    raise _unsupported(space, "flatten")


@_flatten_rows.register(Box)
def _(space: Box, values: jax.Array) -> jax.Array:
    values = jnp.asarray(values, dtype=space.dtype)
    return values.reshape(values.shape[0], math.prod(space.shape))


@_flatten_rows.register(Discrete)
def _(space: Discrete, values: jax.Array) -> jax.Array:
    values = jnp.asarray(values)
    return jax.nn.one_hot(values - space.start, space.n, dtype=jnp.float32)


@_flatten_rows.register(MultiDiscrete)
def _(space: MultiDiscrete, values: jax.Array) -> jax.Array:
    values = jnp.asarray(values)
    values = values.reshape(values.shape[0], math.prod(space.shape))
    nvec = space.nvec.ravel()
    return jnp.concatenate(
        [jax.nn.one_hot(values[:, i], int(n), dtype=jnp.float32) for i, n in enumerate(nvec)],
        axis=-1,
    )


@_flatten_rows.register(MultiBinary)
def _(space: MultiBinary, values: jax.Array) -> jax.Array:
    values = jnp.asarray(values, dtype=jnp.float32)
    return values.reshape(values.shape[0], math.prod(space.shape))


@singledispatch
def _unflatten_rows(space: Space, rows: jax.Array) -> jax.Array:
    raise _unsupported(space, "unflatten")


@_unflatten_rows.register(Box)
def _(space: Box, rows: jax.Array) -> jax.Array:
    rows = jnp.asarray(rows)
    return rows.reshape(rows.shape[0], *space.shape).astype(space.dtype)


@_unflatten_rows.register(Discrete)
def _(space: Discrete, rows: jax.Array) -> jax.Array:
    return (space.start + jnp.argmax(jnp.asarray(rows), axis=-1)).astype(jnp.int32)


@_unflatten_rows.register(MultiDiscrete)
def _(space: MultiDiscrete, rows: jax.Array) -> jax.Array:
    rows = jnp.asarray(rows)
    nvec = space.nvec.ravel()
    offsets = np.concatenate([[0], np.cumsum(nvec)])
    entries = [
        jnp.argmax(rows[:, offsets[i] : offsets[i + 1]], axis=-1) for i in range(len(nvec))
    ]
    values = jnp.stack(entries, axis=-1).astype(jnp.int32)
    return values.reshape(rows.shape[0], *space.shape)


@_unflatten_rows.register(MultiBinary)
def _(space: MultiBinary, rows: jax.Array) -> jax.Array:
    rows = jnp.asarray(rows)
    return (rows >= 0.5).astype(jnp.int8).reshape(rows.shape[0], *space.shape)


# ---------------------------------------------------------------------------
# flatten
# ---------------------------------------------------------------------------


@singledispatch
def flatten(space: Space, x: Any) -> Any:
    """Encode a member *x* of *space* in the flat form of :func:`flatten_space`."""
    raise _unsupported(space, "flatten")


@flatten.register(Box)
@flatten.register(Discrete)
@flatten.register(MultiDiscrete)
@flatten.register(MultiBinary)
def _flatten_tensor(space: Space, x: Any) -> jax.Array:
    return _flatten_rows(space, jnp.asarray(x)[None])[0]


@flatten.register(Text)
def _flatten_text(space: Text, x: str) -> jax.Array:
    indices = np.full(space.max_length, -1.0, dtype=np.float32)
    for i, char in enumerate(x):
        indices[i] = space.character_index(char)
    return jnp.asarray(indices)


@flatten.register(Tuple)
def _flatten_tuple(space: Tuple, x: tuple[Any, ...]) -> jax.Array:
    parts = [flatten(s, part) for s, part in zip(space.spaces, x, strict=True)]
    return _concat_flat(space, parts)


@flatten.register(Dict)
def _flatten_dict(space: Dict, x: dict[str, Any]) -> jax.Array:
    parts = [flatten(s, x[name]) for name, s in space.spaces.items()]
    return _concat_flat(space, parts)


def _concat_flat(space: Space, parts: list[jax.Array]) -> jax.Array:
    dtype = flatten_space(space).dtype
    if not parts:
        return jnp.zeros(0, dtype=dtype)
    return jnp.concatenate(parts).astype(dtype)


@flatten.register(Sequence)
def _flatten_sequence(space: Sequence, x: SequenceSample) -> SequenceSample:
    values, mask = x
    return SequenceSample(values=_flatten_rows(space.space, values), mask=jnp.asarray(mask))


@flatten.register(Graph)
def _flatten_graph(space: Graph, x: GraphSample) -> GraphSample:
    nodes, edges, links, node_mask, edge_mask = x
    return GraphSample(
        nodes=_flatten_rows(space.node_space, nodes),
        edges=_flatten_rows(space.edge_space, edges),
        edge_links=jnp.asarray(links),
        node_mask=jnp.asarray(node_mask),
        edge_mask=jnp.asarray(edge_mask),
    )


# ---------------------------------------------------------------------------
# unflatten
# ---------------------------------------------------------------------------


@singledispatch
def unflatten(space: Space, x: Any) -> Any:
    """Decode a flat value produced by :func:`flatten` back into a member of *space*."""
    raise _unsupported(space, "unflatten")


@unflatten.register(Box)
@unflatten.register(Discrete)
@unflatten.register(MultiDiscrete)
@unflatten.register(MultiBinary)
def _unflatten_tensor(space: Space, x: Any) -> jax.Array:
    return _unflatten_rows(space, jnp.asarray(x)[None])[0]


@unflatten.register(Text)
def _unflatten_text(space: Text, x: Any) -> str:
    chars = []
    for value in np.asarray(x):
        index = int(value)
        if index < 0:
            break
        chars.append(space.charset[index])
    return "".join(chars)


def _split_flat(spaces: list[Space], x: Any) -> list[jax.Array]:
    x = jnp.asarray(x)
    sizes = [flatdim(s) for s in spaces]
    offsets = np.concatenate([[0], np.cumsum(sizes)]).astype(int)
    return [x[offsets[i] : offsets[i + 1]] for i in range(len(spaces))]


@unflatten.register(Tuple)
def _unflatten_tuple(space: Tuple, x: Any) -> tuple[Any, ...]:
    parts = _split_flat(list(space.spaces), x)
    return tuple(unflatten(s, part) for s, part in zip(space.spaces, parts, strict=True))


@unflatten.register(Dict)
def _unflatten_dict(space: Dict, x: Any) -> dict[str, Any]:
    parts = _split_flat(list(space.spaces.values()), x)
    return {
        name: unflatten(s, part)
        for (name, s), part in zip(space.spaces.items(), parts, strict=True)
    }


@unflatten.register(Sequence)
def _unflatten_sequence(space: Sequence, x: SequenceSample) -> SequenceSample:
    values, mask = x
    return SequenceSample(values=_unflatten_rows(space.space, values), mask=jnp.asarray(mask))


@unflatten.register(Graph)
def _unflatten_graph(space: Graph, x: GraphSample) -> GraphSample:
    nodes, edges, links, node_mask, edge_mask = x
    return GraphSample(
        nodes=_unflatten_rows(space.node_space, nodes),
        edges=_unflatten_rows(space.edge_space, edges),
        edge_links=jnp.asarray(links),
        node_mask=jnp.asarray(node_mask),
        edge_mask=jnp.asarray(edge_mask),
    )
