# config.py
#
# Project: graphrank - PageRank over tabular edge relations
#
# Description:
#   Run parameters for a PageRank computation and their command-line binding.
#   Validation happens here, before any relation is read or any iteration
#   runs, so a bad parameter never leaves partial output behind.

import math
import numbers
from dataclasses import dataclass
from typing import Optional

from graphrank.errors import InvalidInputError

DEFAULT_DAMPING = 0.85
DEFAULT_MAX_ITER = 100


@dataclass(frozen=True)
class PageRankConfig:
    """
    Parameters of one PageRank run.

    Attributes:
        damping_factor: probability of following an out-edge, in (0, 1)
        max_iter: upper bound on the number of iterations, >= 1
        epsilon: L1 convergence threshold, > 0.  None means 1/(N*1000),
                 resolved once the node count N is known.
        shards: number of edge partitions aggregated concurrently per iteration
        overwrite: replace an existing output relation (False = strict create)
    """
    damping_factor: float = DEFAULT_DAMPING
    max_iter: int = DEFAULT_MAX_ITER
    epsilon: Optional[float] = None
    shards: int = 1
    overwrite: bool = True

    def validate(self):
        """Raise InvalidInputError if any parameter is out of range."""
        d = self.damping_factor
        if isinstance(d, bool) or not isinstance(d, numbers.Real) or not 0.0 < d < 1.0:
            raise InvalidInputError(f"damping_factor must be in (0, 1), got {d!r}")

        if isinstance(self.max_iter, bool) or not isinstance(self.max_iter, numbers.Integral) \
                or self.max_iter < 1:
            raise InvalidInputError(f"max_iter must be an integer >= 1, got {self.max_iter!r}")

        if self.epsilon is not None:
            eps = self.epsilon
            if isinstance(eps, bool) or not isinstance(eps, numbers.Real) \
                    or not math.isfinite(eps) or eps <= 0:
                raise InvalidInputError(f"epsilon must be a positive number, got {eps!r}")

        if isinstance(self.shards, bool) or not isinstance(self.shards, numbers.Integral) \
                or self.shards < 1:
            raise InvalidInputError(f"shards must be an integer >= 1, got {self.shards!r}")
        return self

    def resolve_epsilon(self, n_nodes):
        """Effective convergence threshold for a graph with `n_nodes` nodes."""
        if self.epsilon is not None:
            return float(self.epsilon)
        return 1.0 / (n_nodes * 1000)


def add_arguments(parser):
    """Register PageRank parameters on an argparse parser."""
    group = parser.add_argument_group("PageRank parameters")
    group.add_argument('--damping', type=float, default=DEFAULT_DAMPING,
                       help="Damping factor in (0, 1) (default: 0.85)")
    group.add_argument('--max-iter', type=int, default=DEFAULT_MAX_ITER,
                       help="Maximum number of iterations (default: 100)")
    group.add_argument('--epsilon', type=float, default=None,
                       help="L1 convergence threshold (default: 1/(N*1000))")
    group.add_argument('--shards', type=int, default=1,
                       help="Edge partitions aggregated in parallel per iteration")
    group.add_argument('--no-overwrite', action='store_true',
                       help="Fail instead of replacing an existing output relation")
    return parser


def from_args(args):
    """Build a validated PageRankConfig from parsed argparse arguments."""
    return PageRankConfig(
        damping_factor=args.damping,
        max_iter=args.max_iter,
        epsilon=args.epsilon,
        shards=args.shards,
        overwrite=not args.no_overwrite,
    ).validate()
