import pandas as pd
import pytest

from graphrank.config import PageRankConfig
from graphrank.errors import CollisionError
from graphrank.stage1_load import load_graph
from graphrank.stage2_degree import build_out_degree_index
from graphrank.stage3_pagerank import PageRankEngine
from graphrank.stage4_materialize import materialize_result, summary_name


@pytest.fixture
def run(scenario_store, edge_schema):
    graph = load_graph(scenario_store, edge_schema)
    index = build_out_degree_index(scenario_store, graph)
    result = PageRankEngine(scenario_store, graph, index, PageRankConfig(epsilon=1e-8)).run()
    return scenario_store, graph, result


def test_writes_ranks_and_summary(run):
    store, graph, result = run
    stored = materialize_result(store, 'pr', result, graph=graph)

    assert stored.columns.tolist() == ['node', 'rank']
    assert len(stored) == 11
    assert stored['rank'].sum() == pytest.approx(1.0)
    assert store.get('pr').equals(stored)

    summary = store.get(summary_name('pr')).iloc[0]
    assert summary['iterations'] == result.iterations
    assert bool(summary['converged']) is True
    assert summary['termination'] == 'converged'
    assert summary['nodes'] == 11
    assert summary['edges'] == graph.n_edges


def test_replaces_prior_contents_by_default(run):
    store, graph, result = run
    store.materialize('pr', pd.DataFrame({'stale': [1, 2, 3]}))
    materialize_result(store, 'pr', result)
    assert store.get('pr').columns.tolist() == ['node', 'rank']


def test_strict_create_collides_with_existing_output(run):
    store, graph, result = run
    store.materialize('pr', pd.DataFrame({'stale': [1]}))
    with pytest.raises(CollisionError):
        materialize_result(store, 'pr', result, overwrite=False)
    assert store.get('pr').columns.tolist() == ['stale']
    assert not store.exists(summary_name('pr'))


def test_protected_summary_blocks_both_writes(run):
    store, graph, result = run
    store.materialize(summary_name('pr'), pd.DataFrame({'old': [1]}))
    store.protect(summary_name('pr'))
    with pytest.raises(CollisionError):
        materialize_result(store, 'pr', result)
    assert not store.exists('pr')
