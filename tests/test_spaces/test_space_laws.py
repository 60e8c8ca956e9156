"""Sample / contains / flatten laws checked over many keys for every space kind."""

import jax
import numpy as np
import pytest

from gymnazo.spaces import (
    Box,
    Dict,
    Discrete,
    Graph,
    GraphSample,
    MultiBinary,
    MultiDiscrete,
    Sequence,
    SequenceSample,
    Text,
    Tuple,
    flatten,
    flatten_space,
    unflatten,
)

N_KEYS = 25

SPACES = {
    "discrete": Discrete(5),
    "discrete_start": Discrete(4, start=-2),
    "box": Box(-1.0, 1.0, (2, 3)),
    "box_int": Box(0, 10, (3,), dtype=np.int32),
    "box_unbounded": Box(-np.inf, np.inf, (2,)),
    "box_half_bounded": Box(np.array([0.0, -np.inf]), np.array([np.inf, 1.0])),
    "multi_discrete": MultiDiscrete([2, 3, 4]),
    "multi_binary": MultiBinary(5),
    "multi_binary_2d": MultiBinary((2, 3)),
    "text": Text(6),
    "text_small_charset": Text(4, min_length=0, charset="abc"),
    "tuple": Tuple((Discrete(3), Box(-1.0, 1.0, (2,)), Text(3))),
    "dict": Dict(
        {
            "pos": Box(-5.0, 5.0, (2,)),
            "label": Text(5, charset="xyz"),
            "flags": MultiBinary(3),
        }
    ),
    "nested": Dict(
        {
            "inner": Tuple(
                (Discrete(2), Dict({"name": Text(3), "count": Box(0, 7, (2,), dtype=np.int32)}))
            ),
            "mode": MultiDiscrete([3, 3]),
        }
    ),
}

PADDED_SPACES = {
    "sequence_box": Sequence(Box(-1.0, 1.0, (2,)), max_length=5),
    "sequence_discrete": Sequence(Discrete(4, start=1), max_length=4, min_length=1),
    "graph": Graph(Box(0.0, 1.0, (3,)), Discrete(3), max_nodes=5, max_edges=6),
    "graph_no_self_loops": Graph(
        Discrete(4), Box(-1.0, 1.0, (1,)), max_nodes=4, max_edges=5, allow_self_loops=False
    ),
    "graph_multi_binary": Graph(MultiBinary(2), MultiDiscrete([2, 2]), max_nodes=3, max_edges=3),
}


def _keys():
    return [jax.random.PRNGKey(seed) for seed in range(N_KEYS)]


def assert_same_value(a, b):
    """Structural equality for samples: same tree shape, equal leaves."""
    leaves_a, tree_a = jax.tree_util.tree_flatten(a)
    leaves_b, tree_b = jax.tree_util.tree_flatten(b)
    assert tree_a == tree_b
    for x, y in zip(leaves_a, leaves_b):
        if isinstance(x, str) or isinstance(y, str):
            assert x == y
        else:
            np.testing.assert_array_equal(np.asarray(x), np.asarray(y))


def assert_same_padded(space, a, b):
    """Equality of the valid rows of Sequence / Graph samples."""
    if isinstance(space, Sequence):
        mask = np.asarray(a.mask)
        np.testing.assert_array_equal(mask, np.asarray(b.mask))
        np.testing.assert_array_equal(np.asarray(a.values)[mask], np.asarray(b.values)[mask])
        return
    node_mask = np.asarray(a.node_mask)
    edge_mask = np.asarray(a.edge_mask)
    np.testing.assert_array_equal(node_mask, np.asarray(b.node_mask))
    np.testing.assert_array_equal(edge_mask, np.asarray(b.edge_mask))
    np.testing.assert_array_equal(np.asarray(a.nodes)[node_mask], np.asarray(b.nodes)[node_mask])
    np.testing.assert_array_equal(np.asarray(a.edges)[edge_mask], np.asarray(b.edges)[edge_mask])
    np.testing.assert_array_equal(np.asarray(a.edge_links), np.asarray(b.edge_links))


@pytest.mark.parametrize("name", sorted(SPACES))
class TestFlattenableSpaceLaws:
    def test_samples_are_members(self, name):
        space = SPACES[name]
        for key in _keys():
            assert space.contains(space.sample(key))

    def test_flattened_samples_are_in_flat_space(self, name):
        space = SPACES[name]
        flat_space = flatten_space(space)
        for key in _keys():
            assert flat_space.contains(flatten(space, space.sample(key)))

    def test_round_trip(self, name):
        space = SPACES[name]
        for key in _keys():
            sample = space.sample(key)
            restored = unflatten(space, flatten(space, sample))
            assert_same_value(restored, sample)
            assert space.contains(restored)


@pytest.mark.parametrize("name", sorted(PADDED_SPACES))
class TestPaddedSpaceLaws:
    def test_samples_are_members(self, name):
        space = PADDED_SPACES[name]
        for key in _keys():
            sample = space.sample(key)
            assert isinstance(sample, (SequenceSample, GraphSample))
            assert space.contains(sample)

    def test_flattened_samples_are_in_flat_space(self, name):
        space = PADDED_SPACES[name]
        flat_space = flatten_space(space)
        for key in _keys():
            assert flat_space.contains(flatten(space, space.sample(key)))

    def test_round_trip(self, name):
        space = PADDED_SPACES[name]
        for key in _keys():
            sample = space.sample(key)
            restored = unflatten(space, flatten(space, sample))
            assert type(restored) is type(sample)
            assert_same_padded(space, restored, sample)
            assert space.contains(restored)


def test_graph_unflatten_restores_node_values():
    space = Graph(Discrete(4, start=1), Discrete(2), max_nodes=3, max_edges=2)
    sample = space.sample(jax.random.PRNGKey(11))
    flat = flatten(space, sample)
    assert np.asarray(flat.nodes).shape == (3, 4)
    restored = unflatten(space, flat)
    valid = np.asarray(sample.node_mask)
    np.testing.assert_array_equal(np.asarray(restored.nodes)[valid], np.asarray(sample.nodes)[valid])
    assert np.all(np.asarray(restored.nodes)[valid] >= 1)
