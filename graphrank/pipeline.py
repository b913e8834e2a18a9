# pipeline.py
#
# Project: graphrank - PageRank over tabular edge relations
#
# Description:
#   End-to-end PageRank run over relations held in a TableStore:
#     Stage 1 (load) -> Stage 2 (out-degree) -> Stage 3 (iterate) -> Stage 4 (write)
#
#   Parameters are validated before anything is read.  Intermediate state
#   (graph, degree index, rank snapshots) lives in memory only; the store is
#   written once, by Stage 4, after every earlier stage has succeeded.

from graphrank.config import PageRankConfig
from graphrank.stage1_load import load_graph
from graphrank.stage2_degree import build_out_degree_index
from graphrank.stage3_pagerank import compute_pagerank
from graphrank.stage4_materialize import materialize_result


def pagerank(store, edge_schema, output, config=None, vertex_schema=None, stop_event=None):
    """
    Compute PageRank over `edge_schema` and materialize it under `output`.

    Args:
        store (TableStore): Holds the input relations; receives the output
        edge_schema (EdgeSchema): Edge relation with its src/dst columns
        output (str): Output relation name (summary goes to `<output>_summary`)
        config (PageRankConfig|None): Run parameters
        vertex_schema (VertexSchema|None): Optional relation of node ids,
            used to include isolated nodes
        stop_event (threading.Event|None): Cooperative stop, checked once per
            iteration

    Returns:
        PageRankResult

    Raises:
        InvalidInputError: bad parameters, unknown relation/column, empty graph
        ComputationError: a rank value became non-finite
        CollisionError: the output relation may not be replaced
    """
    config = (config or PageRankConfig()).validate()

    graph = load_graph(store, edge_schema, vertex_schema)
    index = build_out_degree_index(store, graph)
    result = compute_pagerank(store, graph, index, config, stop_event=stop_event)
    materialize_result(store, output, result, graph=graph, overwrite=config.overwrite)

    return result
