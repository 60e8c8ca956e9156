"""Graphs with node and edge features, padded to fixed capacity."""

from __future__ import annotations

from typing import Any, NamedTuple

import equinox as eqx
import jax
import jax.numpy as jnp
import numpy as np

from gymnazo.error import InvalidConfiguration
from gymnazo.spaces.sequence import prefix_length
from gymnazo.spaces.space import Space, TensorSpace


class GraphSample(NamedTuple):
    """Padded graph.

    ``edge_links[i] = (source, target)`` for every valid edge; padded
    rows hold ``-1``.  Both masks are prefix masks.
    """

    nodes: jax.Array
    edges: jax.Array
    edge_links: jax.Array
    node_mask: jax.Array
    edge_mask: jax.Array


class Graph(Space):
    """Graphs of up to ``max_nodes`` nodes and ``max_edges`` edges.

    Node and edge features come from tensor spaces.  Sampling draws a
    node count in ``[1, max_nodes]`` and an edge count in
    ``[0, max_edges]``, then endpoints among the valid nodes.  With
    ``allow_self_loops=False`` a colliding target is moved to the next
    node, and a single-node graph gets no edges.
    """

    node_space: TensorSpace
    edge_space: TensorSpace
    max_nodes: int = eqx.field(static=True)
    max_edges: int = eqx.field(static=True)
    allow_self_loops: bool = eqx.field(static=True)
    directed: bool = eqx.field(static=True)

    def __init__(
        self,
        node_space: TensorSpace,
        edge_space: TensorSpace,
        max_nodes: int,
        max_edges: int,
        *,
        allow_self_loops: bool = True,
        directed: bool = True,
    ) -> None:
        for name, space in (("node_space", node_space), ("edge_space", edge_space)):
            if not isinstance(space, TensorSpace):
                raise InvalidConfiguration(
                    f"Graph {name} must be a tensor space, got {type(space).__name__}"
                )
        if max_nodes < 0 or max_edges < 0:
            raise InvalidConfiguration(
                f"Graph capacities must be >= 0, got max_nodes={max_nodes}, max_edges={max_edges}"
            )
        self.node_space = node_space
        self.edge_space = edge_space
        self.max_nodes = int(max_nodes)
        self.max_edges = int(max_edges)
        self.allow_self_loops = bool(allow_self_loops)
        self.directed = bool(directed)

    @property
    def is_np_flattenable(self) -> bool:
        return False

    def _edge_capacity(self, n_nodes: int) -> int:
        if n_nodes == 0 or (n_nodes == 1 and not self.allow_self_loops):
            return 0
        return self.max_edges

    def sample(
        self,
        key: jax.Array,
        mask: Any | None = None,
        probability: Any | None = None,
    ) -> GraphSample:
        self._reject_sampling_args(mask, probability)
        n_key, e_key, node_key, edge_key, src_key, dst_key = jax.random.split(key, 6)

        n_nodes = int(
            jax.random.randint(n_key, (), min(1, self.max_nodes), self.max_nodes + 1)
        )
        n_edges = int(jax.random.randint(e_key, (), 0, self._edge_capacity(n_nodes) + 1))

        nodes = self.node_space.sample_batch(node_key, self.max_nodes)
        edges = self.edge_space.sample_batch(edge_key, self.max_edges)
        node_mask = jnp.arange(self.max_nodes) < n_nodes
        edge_mask = jnp.arange(self.max_edges) < n_edges

        if n_edges > 0:
            src = jax.random.randint(src_key, (self.max_edges,), 0, n_nodes)
            dst = jax.random.randint(dst_key, (self.max_edges,), 0, n_nodes)
            if not self.allow_self_loops:
                dst = jnp.where(src == dst, (dst + 1) % n_nodes, dst)
            links = jnp.stack([src, dst], axis=-1)
        else:
            links = jnp.zeros((self.max_edges, 2), dtype=jnp.int32)
        links = jnp.where(edge_mask[:, None], links, -1).astype(jnp.int32)

        return GraphSample(
            nodes=nodes,
            edges=edges,
            edge_links=links,
            node_mask=node_mask,
            edge_mask=edge_mask,
        )

    def contains(self, x: Any) -> bool:
        if not isinstance(x, tuple) or len(x) != 5:
            return False
        nodes, edges, links, node_mask, edge_mask = (np.asarray(part) for part in x)
        if (
            nodes.shape != (self.max_nodes, *self.node_space.shape)
            or edges.shape != (self.max_edges, *self.edge_space.shape)
            or links.shape != (self.max_edges, 2)
            or node_mask.shape != (self.max_nodes,)
            or edge_mask.shape != (self.max_edges,)
        ):
            return False

        n_nodes = prefix_length(node_mask)
        n_edges = prefix_length(edge_mask)
        if n_nodes is None or n_edges is None:
            return False

        valid, padded = links[:n_edges], links[n_edges:]
        if np.any(padded != -1):
            return False
        if np.any((valid < 0) | (valid >= n_nodes)):
            return False
        if not self.allow_self_loops and np.any(valid[:, 0] == valid[:, 1]):
            return False

        return all(self.node_space.contains(nodes[i]) for i in range(n_nodes)) and all(
            self.edge_space.contains(edges[i]) for i in range(n_edges)
        )

    def __repr__(self) -> str:
        return (
            f"Graph({self.node_space!r}, {self.edge_space!r}, max_nodes={self.max_nodes}, "
            f"max_edges={self.max_edges})"
        )
