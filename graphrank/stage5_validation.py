# stage5_validation.py
#
# Project: graphrank - PageRank over tabular edge relations
#
# Description:
#   Stage 5 (optional) - Cross-check a PageRankResult against networkx.pagerank
#   run on the same node and edge sets.
#
#   NetworkX spreads dangling mass uniformly and counts self-loops in the
#   out-degree, exactly as Stage 3 does, so the two vectors should agree to
#   within the convergence tolerances of both runs.
#
# References:
#   [1] Spearman, C. (1904). American Journal of Psychology, 15(1), 72-101.
#   [2] Kendall, M. (1938). Biometrika, 30(1/2), 81-93.

import os

import numpy as np
from scipy.stats import kendalltau, spearmanr
import matplotlib
matplotlib.use('Agg')  # non-interactive backend for saving to file
import matplotlib.pyplot as plt
import networkx as nx

from graphrank.stage1_load import DST, SRC
from graphrank.utils import print_stage, print_step, print_success, print_summary_box, Timer

PLOT_NAME = 'pagerank_vs_networkx.png'


def build_networkx_graph(graph):
    """DiGraph with every node of `graph` (isolated ones included) and its edges."""
    G = nx.DiGraph()
    G.add_nodes_from(graph.nodes)
    G.add_edges_from(zip(graph.edges[SRC], graph.edges[DST]))
    return G


def compare_rankings(ranks, reference, top_k=5):
    """
    Agreement between two node -> score mappings over the nodes of `ranks`.

    Args:
        ranks (pd.Series): node -> score (graphrank)
        reference (dict): node -> score (e.g. NetworkX)
        top_k (int): Size of the top-k overlap

    Returns:
        dict: mae, max_error, worst_node, spearman, kendall, top_k_overlap.
              Correlations are NaN when either vector is constant.
    """
    ours = ranks.to_numpy(dtype=np.float64)
    theirs = np.array([reference[node] for node in ranks.index], dtype=np.float64)
    errors = np.abs(ours - theirs)

    spearman = kendall = float('nan')
    if len(ours) > 1 and np.ptp(ours) > 0 and np.ptp(theirs) > 0:
        spearman = float(spearmanr(ours, theirs)[0])
        kendall = float(kendalltau(ours, theirs)[0])

    k = min(top_k, len(ours))
    ours_top = set(ranks.index[np.argsort(-ours, kind='stable')[:k]])
    theirs_top = set(ranks.index[np.argsort(-theirs, kind='stable')[:k]])

    return {
        "mae": float(errors.mean()),
        "max_error": float(errors.max()),
        "worst_node": ranks.index[int(errors.argmax())],
        "spearman": spearman,
        "kendall": kendall,
        "top_k_overlap": len(ours_top & theirs_top),
    }


def save_score_plot(ranks, reference, out_dir):
    """Scatter of graphrank vs NetworkX scores; points on y = x agree."""
    theirs = [reference[node] for node in ranks.index]
    lo = min(min(theirs), ranks.min())
    hi = max(max(theirs), ranks.max())

    fig, ax = plt.subplots(figsize=(6, 6))
    ax.scatter(theirs, ranks.to_numpy(), s=6, alpha=0.5)
    ax.plot([lo, hi], [lo, hi], 'r--', linewidth=1)
    ax.set_xlabel('networkx.pagerank')
    ax.set_ylabel('graphrank')
    ax.set_title('PageRank score agreement')

    os.makedirs(out_dir, exist_ok=True)
    path = os.path.join(out_dir, PLOT_NAME)
    fig.savefig(path, dpi=120, bbox_inches='tight')
    plt.close(fig)
    return path


def verify_with_networkx(graph, result, top_k=5, plot_dir=None):
    """
    Compare a PageRankResult with networkx.pagerank on the same graph.

    Returns the `compare_rankings` metrics plus `plot` (saved path or None).
    """
    print_stage("Verify", "Comparing with NetworkX PageRank")

    with Timer("NetworkX verification"):
        G = build_networkx_graph(graph)
        print_step(f"NetworkX graph: {G.number_of_nodes()} nodes, {G.number_of_edges()} edges")
        reference = nx.pagerank(G, alpha=result.damping_factor, max_iter=1000, tol=1.0e-12)

        metrics = compare_rankings(result.ranks, reference, top_k=top_k)
        print_summary_box("Validation Metrics", {
            "MAE": f"{metrics['mae']:.2e}",
            "Max error": f"{metrics['max_error']:.2e} (Node {metrics['worst_node']})",
            "Spearman rho [1]": f"{metrics['spearman']:.6f}",
            "Kendall tau  [2]": f"{metrics['kendall']:.6f}",
            f"Top-{top_k} overlap": metrics['top_k_overlap'],
        })

        metrics["plot"] = None
        if plot_dir is not None and graph.n_nodes > 1:
            metrics["plot"] = save_score_plot(result.ranks, reference, plot_dir)
            print_success(f"Plot saved to {metrics['plot']}")

    return metrics
