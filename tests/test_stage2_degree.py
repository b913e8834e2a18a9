import numpy as np
import pytest

from conftest import make_store
from graphrank.stage1_load import load_graph
from graphrank.stage2_degree import IS_SINK, OUT_DEGREE, RANK, build_out_degree_index, degree_stats


@pytest.fixture
def index(scenario_store, edge_schema):
    return build_out_degree_index(scenario_store, load_graph(scenario_store, edge_schema))


def test_out_degree_counts_distinct_edges(index):
    expected = {"A": 0, "B": 1, "C": 1, "D": 2, "E": 3, "F": 2,
                "G": 2, "H": 2, "I": 2, "J": 1, "K": 1}
    assert index.out_degree.to_dict() == expected


def test_in_degree(index):
    assert index.in_degree["B"] == 7
    assert index.in_degree["G"] == 0


def test_sinks(index):
    assert list(index.sinks) == ["A"]


def test_self_loop_node_is_not_a_sink(edge_schema):
    store = make_store([("a", "a"), ("b", "a")])
    index = build_out_degree_index(store, load_graph(store, edge_schema))
    assert index.out_degree["a"] == 1
    assert len(index.sinks) == 0


def test_duplicate_edges_do_not_inflate_degree(edge_schema):
    store = make_store([("a", "b"), ("a", "b"), ("a", "c")])
    index = build_out_degree_index(store, load_graph(store, edge_schema))
    assert index.out_degree["a"] == 2


def test_initial_ranks_are_uniform(index):
    ranks = index.initial_ranks()
    assert ranks.dtype == np.float64
    assert np.allclose(ranks.to_numpy(), 1.0 / 11)
    assert ranks.sum() == pytest.approx(1.0)


def test_entries_sink_flag_matches_out_degree(index):
    entries = index.entries(index.initial_ranks())
    assert entries.columns.tolist() == ['node', RANK, OUT_DEGREE, IS_SINK]
    assert (entries[IS_SINK] == (entries[OUT_DEGREE] == 0)).all()


def test_degree_stats():
    stats = degree_stats([0, 1, 2, 3, 4])
    assert stats["Min"] == 0
    assert stats["Max"] == 4
    assert stats["Median"] == "2.00"
    assert stats["Zero"] == 1
