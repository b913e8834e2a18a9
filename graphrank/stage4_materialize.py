# stage4_materialize.py
#
# Project: graphrank - PageRank over tabular edge relations
#
# Description:
#   Stage 4 - Persist the final rank vector under the caller's output name,
#   plus a one-row `<output>_summary` relation describing the run.
#
#   Default policy replaces whatever the destination held before.  With
#   overwrite=False (strict create), or when the store marks a destination
#   as protected, an existing destination raises CollisionError.  Both
#   destinations are checked before either is written.

import numpy as np
import pandas as pd

from graphrank.errors import CollisionError
from graphrank.stage1_load import NODE
from graphrank.stage2_degree import RANK
from graphrank.utils import print_stage, print_step, print_success, Timer

SUMMARY_SUFFIX = '_summary'


def summary_name(output):
    return f"{output}{SUMMARY_SUFFIX}"


def rank_frame(result):
    """node, rank relation for a PageRankResult."""
    ranks = result.ranks
    return pd.DataFrame({
        NODE: ranks.index,
        RANK: ranks.to_numpy(dtype=np.float64),
    })


def summary_frame(result, graph=None):
    """One-row relation with the run's termination status and parameters."""
    row = {
        'iterations': result.iterations,
        'converged': result.converged,
        'termination': result.termination.value,
        'final_delta': result.delta,
        'damping_factor': result.damping_factor,
        'epsilon': result.epsilon,
        'rank_sum': float(result.ranks.sum()),
    }
    if graph is not None:
        row['nodes'] = graph.n_nodes
        row['edges'] = graph.n_edges
    return pd.DataFrame([row])


def _check_destination(store, name, overwrite):
    if store.is_protected(name):
        raise CollisionError(f"Output relation {name!r} is protected")
    if not overwrite and store.exists(name):
        raise CollisionError(f"Output relation {name!r} already exists")


def materialize_result(store, output, result, graph=None, overwrite=True):
    """
    Write the final ranks to `output` and the run summary to `output_summary`.

    Args:
        store (TableStore): Destination store
        output (str): Output relation name
        result (PageRankResult): Output of Stage 3
        graph (Graph|None): Adds node/edge counts to the summary when given
        overwrite (bool): Replace existing relations (False = strict create)

    Returns:
        pd.DataFrame: the materialized node, rank relation

    Raises:
        CollisionError: destination protected, or exists with overwrite=False
    """
    print_stage("Materialize", f"Writing ranks to relation {output!r}")

    with Timer("Total Stage 4"):
        ranks = rank_frame(result)
        summary = summary_frame(result, graph)

        for name in (output, summary_name(output)):
            _check_destination(store, name, overwrite)

        print_step(f"{len(ranks)} rows -> {output!r}")
        stored = store.materialize(output, ranks, replace=overwrite)
        store.materialize(summary_name(output), summary, replace=overwrite)
        print_success(f"Summary -> {summary_name(output)!r}")

    return stored
