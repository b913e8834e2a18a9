# errors.py
#
# Project: graphrank - PageRank over tabular edge relations
#
# Description:
#   Exception hierarchy shared by every stage.  Input and parameter problems
#   are detected before the iteration loop starts; numerical problems are
#   detected per iteration and abort the run.


class GraphRankError(Exception):
    """Base class for all graphrank errors."""


class InvalidInputError(GraphRankError, ValueError):
    """Empty graph, unknown relation/column, or a parameter out of range."""


class CollisionError(GraphRankError):
    """Destination relation exists and may not be overwritten."""


class ComputationError(GraphRankError, ArithmeticError):
    """A rank value became non-finite during iteration."""
