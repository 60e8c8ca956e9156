"""Tests for Tuple, Dict, Text, Sequence and Graph."""

import jax
import numpy as np
import pytest

from gymnazo.error import InvalidConfiguration
from gymnazo.spaces import Box, Dict, Discrete, Graph, GraphSample, Sequence, Text, Tuple

KEY = jax.random.PRNGKey(1)


class TestTuple:
    def test_sample_is_member(self):
        space = Tuple((Discrete(2), Box(-1.0, 1.0, (3,))))
        sample = space.sample(KEY)
        assert isinstance(sample, tuple)
        assert len(sample) == 2
        assert space.contains(sample)

    def test_indexing_and_len(self):
        space = Tuple([Discrete(2), Discrete(3)])
        assert len(space) == 2
        assert space[1] == Discrete(3)

    def test_rejects_non_space(self):
        with pytest.raises(InvalidConfiguration):
            Tuple((Discrete(2), 3))

    def test_masks_forwarded_per_element(self):
        space = Tuple((Discrete(3), Discrete(2)))
        sample = space.sample(KEY, mask=(np.array([0, 0, 1], np.int8), None))
        assert int(sample[0]) == 2

    def test_contains_wrong_length(self):
        space = Tuple((Discrete(2), Discrete(2)))
        assert not space.contains((0,))
        assert not space.contains(0)


class TestDict:
    def test_keys_are_sorted(self):
        space = Dict({"position": Box(-1.0, 1.0, (2,)), "gear": Discrete(3)})
        assert list(space.keys()) == ["gear", "position"]
        assert list(space.sample(KEY)) == ["gear", "position"]

    def test_kwargs_constructor(self):
        space = Dict(a=Discrete(2), b=Discrete(3))
        assert len(space) == 2
        assert space["b"] == Discrete(3)

    def test_contains(self):
        space = Dict({"a": Discrete(2)})
        assert space.contains({"a": 1})
        assert not space.contains({"a": 2})
        assert not space.contains({"a": 1, "b": 0})
        assert not space.contains([1])

    def test_mask_keys_must_match(self):
        space = Dict({"a": Discrete(2), "b": Discrete(2)})
        with pytest.raises(ValueError):
            space.sample(KEY, mask={"a": np.ones(2, np.int8)})


class TestText:
    def test_sample_length_and_charset(self):
        space = Text(5, min_length=2, charset="abc")
        for k in jax.random.split(KEY, 20):
            s = space.sample(k)
            assert isinstance(s, str)
            assert 2 <= len(s) <= 5
            assert set(s) <= set("abc")

    def test_contains(self):
        space = Text(3, charset="ab")
        assert space.contains("ab")
        assert not space.contains("abc")
        assert not space.contains("abab")
        assert not space.contains("")
        assert not space.contains(1)

    def test_charset_deduplicated(self):
        assert Text(3, charset="aab").charset == "ab"

    def test_invalid_lengths(self):
        with pytest.raises(InvalidConfiguration):
            Text(2, min_length=3)
        with pytest.raises(InvalidConfiguration):
            Text(2, charset="")


class TestSequence:
    def test_sample_is_member_with_prefix_mask(self):
        space = Sequence(Box(0.0, 1.0, (2,)), max_length=4, min_length=1)
        values, mask = space.sample(KEY)
        assert values.shape == (4, 2)
        mask = np.asarray(mask)
        length = int(mask.sum())
        assert 1 <= length <= 4
        assert mask[:length].all()
        assert space.contains((values, mask))

    def test_non_prefix_mask_rejected(self):
        space = Sequence(Discrete(3), max_length=3)
        values = np.zeros(3, dtype=np.int32)
        assert not space.contains((values, np.array([True, False, True])))

    def test_requires_tensor_element_space(self):
        with pytest.raises(InvalidConfiguration):
            Sequence(Text(3), max_length=2)


class TestGraph:
    def test_sample_is_member(self):
        space = Graph(Box(-1.0, 1.0, (3,)), Discrete(4), max_nodes=5, max_edges=6)
        sample = space.sample(KEY)
        assert isinstance(sample, GraphSample)
        assert sample.nodes.shape == (5, 3)
        assert sample.edge_links.shape == (6, 2)
        assert space.contains(sample)

    def test_padded_links_are_minus_one(self):
        space = Graph(Discrete(2), Discrete(2), max_nodes=3, max_edges=4)
        sample = space.sample(KEY)
        n_edges = int(np.asarray(sample.edge_mask).sum())
        assert np.all(np.asarray(sample.edge_links)[n_edges:] == -1)

    def test_single_node_without_self_loops_has_no_edges(self):
        space = Graph(Discrete(2), Discrete(2), max_nodes=1, max_edges=3, allow_self_loops=False)
        for k in jax.random.split(KEY, 5):
            sample = space.sample(k)
            assert not np.asarray(sample.edge_mask).any()

    def test_no_self_loops_when_disallowed(self):
        space = Graph(Discrete(2), Discrete(2), max_nodes=4, max_edges=8, allow_self_loops=False)
        for k in jax.random.split(KEY, 10):
            sample = space.sample(k)
            n_edges = int(np.asarray(sample.edge_mask).sum())
            links = np.asarray(sample.edge_links)[:n_edges]
            assert np.all(links[:, 0] != links[:, 1])

    def test_link_to_invalid_node_rejected(self):
        space = Graph(Discrete(2), Discrete(2), max_nodes=2, max_edges=1)
        sample = GraphSample(
            nodes=np.zeros(2, np.int32),
            edges=np.zeros(1, np.int32),
            edge_links=np.array([[0, 1]], np.int32),
            node_mask=np.array([True, False]),
            edge_mask=np.array([True]),
        )
        assert not space.contains(sample)

    def test_negative_capacity_rejected(self):
        with pytest.raises(InvalidConfiguration):
            Graph(Discrete(2), Discrete(2), max_nodes=-1, max_edges=0)
