# stage1_load.py
#
# Project: graphrank - PageRank over tabular edge relations
#
# Description:
#   Stage 1 - Read edge-list files into the store and derive the canonical
#   graph (distinct node set + distinct edge set) from an edge relation.
#
#   Edge lists may be split into several shard files.  They are read with a
#   thread pool (I/O bound) and concatenated in the order they were given,
#   so the resulting relation does not depend on which read finished first.

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import numpy as np
import pandas as pd
from tqdm import tqdm

from graphrank.errors import InvalidInputError
from graphrank.utils import is_verbose, print_stage, print_step, print_success, print_summary_box, Timer

SRC = 'src'
DST = 'dst'
NODE = 'node'


@dataclass(frozen=True)
class Graph:
    """
    Canonical graph derived from an edge relation.

    Attributes:
        nodes: distinct node identifiers, first-appearance order
        edges: distinct (src, dst) pairs, columns SRC and DST
    """
    nodes: pd.Index
    edges: pd.DataFrame

    @property
    def n_nodes(self):
        return len(self.nodes)

    @property
    def n_edges(self):
        return len(self.edges)


# ===================================================================
# Reading edge-list files
# ===================================================================

def _read_table(path, sep, header=True, names=None):
    """
    Read one delimited file; an empty file gives an empty frame with `names`.

    Raises:
        InvalidInputError: the file is missing, unreadable or malformed
    """
    try:
        return pd.read_csv(
            path,
            sep=sep,
            header=0 if header else None,
            names=None if header else names,
            comment='#',
            skipinitialspace=True,
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame(columns=list(names or ()))
    except pd.errors.ParserError as exc:
        raise InvalidInputError(f"Cannot parse {path}: {exc}") from exc
    except OSError as exc:
        raise InvalidInputError(f"Cannot read {path}: {exc}") from exc


def read_vertex_file(path, sep=',', id_column='id'):
    """
    Read a delimited vertex file (with header) holding an `id_column`.

    Returns:
        pd.DataFrame: the file's rows; empty (with `id_column`) for an empty file
    """
    return _read_table(path, sep, header=True, names=(id_column,))


def read_edge_files(paths, sep=',', header=True, names=(SRC, DST), max_workers=None):
    """
    Read one or more delimited edge-list files into a single DataFrame.

    Args:
        paths (list[str]): Shard files, concatenated in the given order
        sep (str): Field delimiter
        header (bool): Files carry a header line with column names
        names (tuple[str, str]): Column names used when header=False
        max_workers (int|None): Thread pool size (default: min(32, cpu+4))

    Returns:
        pd.DataFrame: all rows of all files
    """
    paths = list(paths)
    if not paths:
        raise InvalidInputError("No edge-list files given")
    missing = [p for p in paths if not os.path.isfile(p)]
    if missing:
        raise InvalidInputError(f"Edge-list file(s) not found: {', '.join(missing)}")

    if max_workers is None:
        max_workers = min(32, (os.cpu_count() or 4) + 4)
    max_workers = max(1, min(max_workers, len(paths)))
    print_step(f"Reading {len(paths)} file(s) with {max_workers} threads...")

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [pool.submit(_read_table, p, sep, header, list(names)) for p in paths]
        frames = []
        with tqdm(
            total=len(futures),
            desc="  Reading",
            unit="file",
            bar_format="  {l_bar}{bar:30}{r_bar}",
            ncols=90,
            disable=not is_verbose(),
        ) as pbar:
            # Collect in submission order; the shard order is part of the input.
            for future in futures:
                frames.append(future.result())
                pbar.update(1)

    return pd.concat(frames, ignore_index=True)


# ===================================================================
# Graph derivation
# ===================================================================

def _restore_ids(ids):
    """
    Undo pandas' int -> float64 widening caused by missing values.

    A float id column whose remaining values are all integral goes back to
    int64, so ids join against integer-typed relations again.
    """
    if len(ids) and pd.api.types.is_float_dtype(ids.dtype) \
            and np.isfinite(ids).all() and (ids == np.floor(ids)).all():
        return ids.astype(np.int64)
    return ids


def load_graph(store, edge_schema, vertex_schema=None):
    """
    Derive the node set and deduplicated edge set from an edge relation.

    Node set = distinct values appearing as source or destination, plus the
    ids of the optional vertex relation (so isolated nodes can be expressed).
    Edge set = distinct (source, destination) pairs; self-loops are kept.
    Rows with a missing endpoint are ignored.

    Args:
        store (TableStore): Store holding the relations
        edge_schema (EdgeSchema): Edge relation and its src/dst columns
        vertex_schema (VertexSchema|None): Optional vertex relation

    Returns:
        Graph

    Raises:
        InvalidInputError: unknown relation/column, or the node set is empty
    """
    print_stage("Load", f"Deriving graph from relation {edge_schema.table!r}")

    with Timer("Total Stage 1"):
        raw = edge_schema.resolve(store)
        vertices = vertex_schema.resolve(store) if vertex_schema is not None else None

        print_step("Projecting distinct edges...")
        pairs = store.distinct(raw, [edge_schema.src, edge_schema.dst])
        pairs = pairs.rename(columns={edge_schema.src: SRC, edge_schema.dst: DST})
        dropped = int(pairs.isna().any(axis=1).sum())
        edges = pairs.dropna().reset_index(drop=True)
        edges = edges.assign(**{SRC: _restore_ids(edges[SRC]), DST: _restore_ids(edges[DST])})

        print_step("Projecting distinct nodes...")
        parts = []
        if vertices is not None:
            parts.append(_restore_ids(vertices[vertex_schema.id].dropna()))
        parts.append(edges[SRC])
        parts.append(edges[DST])
        endpoints = pd.concat(parts, ignore_index=True).rename(NODE).to_frame()
        nodes = pd.Index(store.distinct(endpoints, [NODE])[NODE], name=NODE)

        if len(nodes) == 0:
            raise InvalidInputError(
                f"Relation {edge_schema.table!r} yields an empty node set"
            )

        self_loops = int((edges[SRC] == edges[DST]).sum())
        print_summary_box("Stage 1 Summary", {
            "Input rows": len(raw),
            "Distinct edges": len(edges),
            "Duplicate rows collapsed": len(raw) - len(pairs),
            "Rows with missing endpoint": dropped,
            "Self-loops": self_loops,
            "Nodes": len(nodes),
        })
        print_success(f"Graph: {len(nodes)} nodes, {len(edges)} unique edges")

    return Graph(nodes=nodes, edges=edges)
