# store.py
#
# Project: graphrank - PageRank over tabular edge relations
#
# Description:
#   In-memory tabular store used as the storage/query collaborator of the
#   PageRank stages.  Relations are pandas DataFrames held under a name.
#
#   The stages only need a handful of relational primitives:
#     - distinct projection over one or more columns
#     - grouped count / grouped sum
#     - equi-join between two relations
#     - materialize a frame under a name (replacing prior contents)
#     - drop a named relation
#
#   Callers refer to relations and columns through EdgeSchema / VertexSchema.
#   Column names are checked against the stored frame and then used as
#   pandas labels, so no query text is ever assembled from caller input.

import threading
from dataclasses import dataclass

import pandas as pd

from graphrank.errors import CollisionError, InvalidInputError


@dataclass(frozen=True)
class EdgeSchema:
    """Reference to an edge relation and its source/destination columns."""
    table: str
    src: str
    dst: str

    def resolve(self, store):
        """Check the reference against `store` and return the edge frame."""
        frame = store.get(self.table)
        store.column(self.table, self.src)
        store.column(self.table, self.dst)
        return frame


@dataclass(frozen=True)
class VertexSchema:
    """Reference to a vertex relation and its id column."""
    table: str
    id: str

    def resolve(self, store):
        frame = store.get(self.table)
        store.column(self.table, self.id)
        return frame


class TableStore:
    """
    Named relations backed by pandas DataFrames.

    Frames handed to `materialize` are copied on the way in, and frames
    returned by `get` must be treated as read-only by callers.  Name-level
    operations are serialized with a lock so a reader never observes a
    half-replaced relation.
    """

    def __init__(self):
        self._tables = {}
        self._protected = set()
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def names(self):
        with self._lock:
            return sorted(self._tables)

    def exists(self, name):
        with self._lock:
            return name in self._tables

    def get(self, name):
        with self._lock:
            try:
                return self._tables[name]
            except KeyError:
                raise InvalidInputError(f"Relation {name!r} does not exist") from None

    def column(self, name, column):
        """Resolve `column` of relation `name`, failing if it is unknown."""
        frame = self.get(name)
        if column not in frame.columns:
            raise InvalidInputError(
                f"Relation {name!r} has no column {column!r} "
                f"(columns: {', '.join(map(str, frame.columns))})"
            )
        return frame[column]

    def protect(self, name):
        """Mark `name` as non-overwritable; later writes raise CollisionError."""
        with self._lock:
            self._protected.add(name)

    def is_protected(self, name):
        with self._lock:
            return name in self._protected

    def materialize(self, name, frame, replace=True):
        """
        Store `frame` under `name`.

        Args:
            name (str): Destination relation name
            frame (pd.DataFrame): Contents to store
            replace (bool): Replace prior contents when `name` exists.
                With replace=False an existing relation is a collision.

        Raises:
            CollisionError: `name` is protected, or exists and replace=False
        """
        stored = frame.reset_index(drop=True).copy()
        with self._lock:
            if name in self._protected:
                raise CollisionError(f"Relation {name!r} is protected")
            if not replace and name in self._tables:
                raise CollisionError(f"Relation {name!r} already exists")
            self._tables[name] = stored
        return stored

    def drop(self, name, missing_ok=True):
        with self._lock:
            if name in self._protected:
                raise CollisionError(f"Relation {name!r} is protected")
            if name not in self._tables:
                if missing_ok:
                    return
                raise InvalidInputError(f"Relation {name!r} does not exist")
            del self._tables[name]

    def export_csv(self, name, path, sep=','):
        """Write relation `name` to a delimited text file."""
        self.get(name).to_csv(path, sep=sep, index=False)
        return path

    # ------------------------------------------------------------------
    # Relational primitives
    # ------------------------------------------------------------------

    def _frame(self, relation):
        if isinstance(relation, str):
            return self.get(relation)
        return relation

    def distinct(self, relation, columns):
        """Distinct projection, keeping first-appearance order."""
        frame = self._frame(relation)
        return frame.loc[:, list(columns)].drop_duplicates().reset_index(drop=True)

    def grouped_count(self, relation, by, name='count'):
        frame = self._frame(relation)
        return frame.groupby(by, sort=False).size().rename(name).reset_index()

    def grouped_sum(self, relation, by, value, name=None):
        frame = self._frame(relation)
        summed = frame.groupby(by, sort=False)[value].sum()
        return summed.rename(name or value).reset_index()

    def join(self, left, right, left_on, right_on, how='inner'):
        """Equi-join of two relations; right-side duplicate labels get a suffix."""
        return pd.merge(
            self._frame(left),
            self._frame(right),
            left_on=left_on,
            right_on=right_on,
            how=how,
            suffixes=('', '_r'),
            sort=False,
        )
