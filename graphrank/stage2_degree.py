# stage2_degree.py
#
# Project: graphrank - PageRank over tabular edge relations
#
# Description:
#   Stage 2 - Out-degree index.  Out-degree and sink membership are
#   structural properties of the graph, so they are computed once here and
#   reused unmodified by every iteration of Stage 3.

from dataclasses import dataclass

import numpy as np
import pandas as pd

from graphrank.stage1_load import DST, NODE, SRC
from graphrank.utils import print_stage, print_step, print_side_by_side_boxes, Timer

OUT_DEGREE = 'out_degree'
IN_DEGREE = 'in_degree'
IS_SINK = 'is_sink'
RANK = 'rank'


@dataclass(frozen=True)
class OutDegreeIndex:
    """
    Per-node out-degree and sink flag.

    Attributes:
        out_degree: node -> number of distinct out-edges (int64, indexed by node)
        in_degree: node -> number of distinct in-edges (diagnostics only)
        sinks: nodes with out_degree == 0
    """
    out_degree: pd.Series
    in_degree: pd.Series
    sinks: pd.Index

    @property
    def nodes(self):
        return self.out_degree.index

    @property
    def n_nodes(self):
        return len(self.out_degree)

    @property
    def is_sink(self):
        return (self.out_degree == 0).rename(IS_SINK)

    def initial_ranks(self):
        """Uniform starting vector, 1/N for every node."""
        n = self.n_nodes
        return pd.Series(np.full(n, 1.0 / n, dtype=np.float64), index=self.nodes, name=RANK)

    def frame(self):
        """Index as a relation with columns node, out_degree."""
        return self.out_degree.rename(OUT_DEGREE).rename_axis(NODE).reset_index()

    def entries(self, ranks):
        """
        RankEntry relation: node, rank, out_degree, is_sink.

        Args:
            ranks (pd.Series): node -> rank, same index as this index
        """
        return pd.DataFrame({
            NODE: self.nodes,
            RANK: ranks.reindex(self.nodes).to_numpy(dtype=np.float64),
            OUT_DEGREE: self.out_degree.to_numpy(),
            IS_SINK: self.is_sink.to_numpy(),
        })


def _count_by(store, graph, column):
    counts = store.grouped_count(graph.edges, column, name='n')
    return (
        counts.set_index(column)['n']
        .reindex(graph.nodes, fill_value=0)
        .astype(np.int64)
    )


def build_out_degree_index(store, graph):
    """
    Compute out-degree (grouped count of distinct edges by source) and the
    sink set for every node of `graph`.

    Args:
        store (TableStore): Store providing the grouped-count primitive
        graph (Graph): Output of Stage 1

    Returns:
        OutDegreeIndex
    """
    print_stage("Degree", "Computing out-degree index")

    with Timer("Total Stage 2"):
        print_step("Grouping edges by source...")
        out_degree = _count_by(store, graph, SRC).rename(OUT_DEGREE)

        print_step("Grouping edges by destination...")
        in_degree = _count_by(store, graph, DST).rename(IN_DEGREE)

        sinks = out_degree.index[out_degree.to_numpy() == 0]
        index = OutDegreeIndex(out_degree=out_degree, in_degree=in_degree, sinks=sinks)

        print_side_by_side_boxes(
            "Out-degree", degree_stats(out_degree.to_numpy()),
            "In-degree", degree_stats(in_degree.to_numpy()),
        )
        print_step(f"{len(sinks)} sink node(s) out of {index.n_nodes}")

    return index


def degree_stats(degrees):
    """
    Summary statistics for a degree distribution.

    Args:
        degrees (array-like[int]): One degree per node (non-empty)

    Returns:
        dict: Display-ready statistics
    """
    values = np.asarray(degrees)

    return {
        "Min": int(np.min(values)),
        "Max": int(np.max(values)),
        "Average": f"{np.mean(values):.2f}",
        "Median": f"{np.median(values):.2f}",
        "P20": f"{np.percentile(values, 20):.2f}",
        "P40": f"{np.percentile(values, 40):.2f}",
        "P60": f"{np.percentile(values, 60):.2f}",
        "P80": f"{np.percentile(values, 80):.2f}",
        "Zero": int(np.count_nonzero(values == 0)),
    }
