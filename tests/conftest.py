import pandas as pd
import pytest

from graphrank.store import EdgeSchema, TableStore, VertexSchema
from graphrank.utils import set_verbose

# 11-node reference graph; sink A, 2-cycle B <-> C, leaves G..K.
SCENARIO_EDGES = [
    ("B", "C"), ("C", "B"),
    ("D", "A"), ("D", "B"),
    ("E", "B"), ("E", "D"), ("E", "F"),
    ("F", "B"), ("F", "E"),
    ("G", "B"), ("G", "E"),
    ("H", "B"), ("H", "E"),
    ("I", "B"), ("I", "E"),
    ("J", "E"),
    ("K", "E"),
]

SCENARIO_RANKS = {
    "A": 0.0328, "B": 0.3842, "C": 0.3431, "D": 0.0391, "E": 0.0809, "F": 0.0391,
    "G": 0.0162, "H": 0.0162, "I": 0.0162, "J": 0.0162, "K": 0.0162,
}


@pytest.fixture(autouse=True)
def quiet():
    set_verbose(False)
    yield
    set_verbose(True)


def make_store(edges, vertices=None, src='src', dst='dst'):
    """Store with an `edges` relation (and optionally a `vertices` relation)."""
    store = TableStore()
    store.materialize('edges', pd.DataFrame(list(edges), columns=[src, dst]))
    if vertices is not None:
        store.materialize('vertices', pd.DataFrame({'id': list(vertices)}))
    return store


@pytest.fixture
def scenario_store():
    return make_store(SCENARIO_EDGES)


@pytest.fixture
def edge_schema():
    return EdgeSchema('edges', 'src', 'dst')


@pytest.fixture
def vertex_schema():
    return VertexSchema('vertices', 'id')
