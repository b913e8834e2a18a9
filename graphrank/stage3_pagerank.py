# stage3_pagerank.py
#
# Project: graphrank - PageRank over tabular edge relations
#
# Description:
#   Stage 3 - PageRank via damped power iteration over the edge relation.
#
# References:
#   [1] Page, L., Brin, S., Motwani, R., & Winograd, T. (1999).
#       "The PageRank Citation Ranking: Bringing Order to the Web."
#       http://ilpubs.stanford.edu:8090/422/1/1999-66.pdf
#
#   [2] Langville, A. & Meyer, C. (2004).
#       "A Survey of Eigenvector Methods of Web Information Retrieval."
#       http://citeseer.ist.psu.edu/713792.html
#
# Each iteration computes, for every node v:
#
#   new[v] = (1-d)/N  +  d * Σ_{(u,v)} r[u] / C(u)  +  d * Σ_{s sink} r[s] / N
#
#   (1-d)/N        - random-surfer teleport term.  [ref: [1] §2.1]
#   Σ r[u]/C(u)    - incoming rank: edges joined with the current ranks and
#                    the out-degree index, then grouped-summed by destination.
#   sink term      - rank held by dangling nodes, spread uniformly.
#
# The engine is a small state machine.  `step` is a pure function of the
# previous IterationState and returns either Continue(next_state) or
# Done(final_state, termination); the previous rank vector is never touched.
#
# The incoming-rank aggregation may be split into edge shards that are
# summed concurrently and merged with a second grouped sum.  Addition order
# then varies, so results agree up to rounding rather than bit for bit.

import enum
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Tuple

import numpy as np
import pandas as pd

from graphrank.config import PageRankConfig
from graphrank.errors import ComputationError
from graphrank.stage1_load import DST, NODE, SRC
from graphrank.stage2_degree import OUT_DEGREE, RANK
from graphrank.utils import print_stage, print_step, print_success, print_summary_box, print_warning, Timer

SHARE = 'share'


class Termination(enum.Enum):
    CONVERGED = 'converged'
    MAX_ITER = 'max_iter'
    STOPPED = 'stopped'


@dataclass(frozen=True)
class IterationState:
    """Snapshot of the rank vector after `iteration` completed passes."""
    ranks: pd.Series
    iteration: int = 0
    delta: float = math.inf
    deltas: Tuple[float, ...] = ()


@dataclass(frozen=True)
class Continue:
    state: IterationState


@dataclass(frozen=True)
class Done:
    state: IterationState
    termination: Termination

    @property
    def converged(self):
        return self.termination is Termination.CONVERGED


@dataclass(frozen=True)
class PageRankResult:
    """
    Final rank vector plus run diagnostics.

    `converged` is False when the run ended on max_iter (or a stop request);
    that is an informational status, the ranks are still the answer.
    """
    ranks: pd.Series
    iterations: int
    delta: float
    termination: Termination
    damping_factor: float
    epsilon: float
    deltas: Tuple[float, ...] = field(default=())

    @property
    def converged(self):
        return self.termination is Termination.CONVERGED

    def top(self, k=5):
        return self.ranks.sort_values(ascending=False, kind='mergesort').head(k)


class PageRankEngine:
    """
    Damped power iteration over a Graph and its OutDegreeIndex.

    The engine owns the rank vector and the out-degree index for the whole
    run.  Use `run()` for the common case, or drive `step()` manually.
    """

    def __init__(self, store, graph, index, config=None, stop_event=None, report_every=10):
        self.config = (config or PageRankConfig()).validate()
        self._store = store
        self._index = index
        self._nodes = index.nodes
        self._n = index.n_nodes
        self._d = float(self.config.damping_factor)
        self.epsilon = self.config.resolve_epsilon(self._n)
        self._stop_event = stop_event
        self._report_every = report_every
        self._sink_mask = index.is_sink.to_numpy()
        self._pool = None

        # Edges joined once with the (iteration invariant) out-degree index.
        weighted = store.join(graph.edges, index.frame(), SRC, NODE)
        weighted = weighted.loc[:, [SRC, DST, OUT_DEGREE]]
        n_shards = max(1, min(self.config.shards, len(weighted)))
        self._shards = [
            weighted.iloc[bounds].reset_index(drop=True)
            for bounds in _shard_slices(len(weighted), n_shards)
        ]

    @property
    def n_shards(self):
        return len(self._shards)

    def initial_state(self):
        return IterationState(ranks=self._index.initial_ranks())

    def _partial_incoming(self, shard, rank_frame):
        """Grouped sum of r[u]/C(u) by destination for one edge shard."""
        joined = self._store.join(shard, rank_frame, SRC, NODE)
        joined[SHARE] = joined[RANK] / joined[OUT_DEGREE]
        return self._store.grouped_sum(joined, DST, SHARE)

    def _incoming(self, ranks):
        """d * Σ r[u]/C(u) for every node (0.0 where nothing flows in)."""
        rank_frame = ranks.rename(RANK).rename_axis(NODE).reset_index()

        if self._pool is not None and self.n_shards > 1:
            partials = list(self._pool.map(
                lambda shard: self._partial_incoming(shard, rank_frame), self._shards
            ))
        else:
            partials = [self._partial_incoming(shard, rank_frame) for shard in self._shards]

        if len(partials) == 1:
            merged = partials[0]
        else:
            merged = self._store.grouped_sum(pd.concat(partials, ignore_index=True), DST, SHARE)

        incoming = merged.set_index(DST)[SHARE].reindex(self._nodes, fill_value=0.0)
        return self._d * incoming.to_numpy(dtype=np.float64)

    def step(self, state):
        """
        Run one iteration from `state`.

        Returns:
            Continue(next_state) or Done(final_state, termination)

        Raises:
            ComputationError: a rank became NaN or infinite
        """
        old = state.ranks.to_numpy(dtype=np.float64)
        n, d = self._n, self._d

        sink_mass = d * old[self._sink_mask].sum() / n
        teleport = (1.0 - d) / n
        values = teleport + self._incoming(state.ranks) + sink_mass

        if not np.isfinite(values).all():
            bad = self._nodes[~np.isfinite(values)]
            raise ComputationError(
                f"Non-finite rank at iteration {state.iteration + 1} "
                f"for node(s) {list(bad[:5])}"
            )

        delta = float(np.abs(values - old).sum())
        nxt = IterationState(
            ranks=pd.Series(values, index=self._nodes, name=RANK),
            iteration=state.iteration + 1,
            delta=delta,
            deltas=state.deltas + (delta,),
        )

        if delta < self.epsilon:
            return Done(nxt, Termination.CONVERGED)
        if nxt.iteration >= self.config.max_iter:
            return Done(nxt, Termination.MAX_ITER)
        if self._stop_event is not None and self._stop_event.is_set():
            return Done(nxt, Termination.STOPPED)
        return Continue(nxt)

    def iterate(self):
        """
        Yield every completed IterationState; the last one yielded is final.

        The generator's return value (StopIteration.value) is the Done outcome.
        """
        outcome = Continue(self.initial_state())
        while isinstance(outcome, Continue):
            outcome = self.step(outcome.state)
            yield outcome.state
            if self._report_every and outcome.state.iteration % self._report_every == 0:
                print_step(f"Iteration {outcome.state.iteration}: delta={outcome.state.delta:.3e}")
        return outcome

    def run(self):
        """Iterate to a terminal state and return a PageRankResult."""
        workers = self.n_shards
        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                self._pool = pool
                try:
                    outcome = self._drain()
                finally:
                    self._pool = None
        else:
            outcome = self._drain()

        final = outcome.state
        return PageRankResult(
            ranks=final.ranks,
            iterations=final.iteration,
            delta=final.delta,
            termination=outcome.termination,
            damping_factor=self._d,
            epsilon=self.epsilon,
            deltas=final.deltas,
        )

    def _drain(self):
        gen = self.iterate()
        while True:
            try:
                next(gen)
            except StopIteration as stop:
                return stop.value


def _shard_slices(total, n_shards):
    """Contiguous, near-equal slices covering range(total)."""
    if total == 0:
        return [slice(0, 0)]
    bounds = np.linspace(0, total, n_shards + 1).astype(int)
    return [slice(int(lo), int(hi)) for lo, hi in zip(bounds[:-1], bounds[1:])]


def compute_pagerank(store, graph, index, config=None, stop_event=None):
    """
    Compute PageRank for `graph`.

    Args:
        store (TableStore): Store providing join / grouped-sum primitives
        graph (Graph): Output of Stage 1
        index (OutDegreeIndex): Output of Stage 2
        config (PageRankConfig|None): Run parameters (validated here)
        stop_event (threading.Event|None): When set, the run ends after the
            iteration in progress completes

    Returns:
        PageRankResult
    """
    print_stage("PageRank", "Computing PageRank scores")

    with Timer("Total Stage 3"):
        engine = PageRankEngine(store, graph, index, config, stop_event=stop_event)
        print_step(
            f"d={engine.config.damping_factor}, max_iter={engine.config.max_iter}, "
            f"epsilon={engine.epsilon:.3e}, shards={engine.n_shards}"
        )
        result = engine.run()

        if result.termination is Termination.CONVERGED:
            print_success(f"Converged after {result.iterations} iterations")
        elif result.termination is Termination.STOPPED:
            print_warning(f"Stopped on request after {result.iterations} iterations")
        else:
            print_warning(
                f"Did not reach epsilon={result.epsilon:.3e} in {result.iterations} iterations"
            )
        print_step(f"Final delta={result.delta:.10f}, rank sum={result.ranks.sum():.12f}")

        print_summary_box("Top 5 Nodes by PageRank", {
            f"Node {node}": f"{score:.8f}" for node, score in result.top(5).items()
        })

    return result
