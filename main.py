# main.py
#
# Project: graphrank - PageRank over tabular edge relations
#
# Description:
#   Command-line entry point.  Reads one or more edge-list files (and an
#   optional vertex file) into an in-memory store, runs PageRank, prints the
#   top nodes, and optionally exports the result and validates it against
#   NetworkX.
#
# Usage:
#   python main.py edges.csv --output pagerank_out
#   python main.py part-0.tsv part-1.tsv --sep '\t' --no-header --epsilon 1e-8
#   python main.py edges.csv --src from --dst to --vertices nodes.csv --validate
#
# References:
#   [1] Page, L., Brin, S., Motwani, R., & Winograd, T. (1999).
#       "The PageRank Citation Ranking: Bringing Order to the Web."
#       http://ilpubs.stanford.edu:8090/422/1/1999-66.pdf

import argparse
import sys

import graphrank.config as config
import graphrank.utils as utils
from graphrank.errors import GraphRankError, InvalidInputError
from graphrank.pipeline import pagerank
from graphrank.stage1_load import load_graph, read_edge_files, read_vertex_file
from graphrank.stage4_materialize import summary_name
from graphrank.stage5_validation import verify_with_networkx
from graphrank.store import EdgeSchema, TableStore, VertexSchema

EDGES_TABLE = 'edges'
VERTICES_TABLE = 'vertices'

# Shell-friendly spellings for delimiters that are awkward to type.
DELIMITER_ESCAPES = {
    '\\t': '\t',
    'tab': '\t',
    'space': ' ',
}


def parse_delimiter(text):
    """Map `\\t` / `tab` / `space` to their characters; anything else is literal."""
    return DELIMITER_ESCAPES.get(text, text)


def build_parser():
    parser = argparse.ArgumentParser(description="PageRank over an edge list")
    parser.add_argument('edges', nargs='+', help="Edge-list file(s); shards are concatenated")
    parser.add_argument('--src', default='src', help="Source column name (default: src)")
    parser.add_argument('--dst', default='dst', help="Destination column name (default: dst)")
    parser.add_argument('--sep', default=',',
                        help="Field delimiter; '\\t', 'tab' and 'space' are accepted (default: ',')")
    parser.add_argument('--no-header', action='store_true',
                        help="Files have no header; columns are taken as --src, --dst")
    parser.add_argument('--vertices', default=None,
                        help="Optional file of node ids (adds isolated nodes)")
    parser.add_argument('--vertex-id', default='id', help="Vertex id column (default: id)")
    parser.add_argument('--output', default='pagerank_out', help="Output relation name")
    parser.add_argument('--out-file', default=None, help="Export the ranks to this CSV file")
    parser.add_argument('--validate', action='store_true',
                        help="Compare the result against networkx.pagerank")
    parser.add_argument('--plot-dir', default=None,
                        help="With --validate, save a score scatter plot to this directory")
    parser.add_argument('--quiet', action='store_true', help="Suppress progress output")
    config.add_arguments(parser)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    utils.set_verbose(not args.quiet)
    utils.print_project_banner()

    try:
        cfg = config.from_args(args)
        sep = parse_delimiter(args.sep)

        store = TableStore()
        utils.print_stage("Read", "Reading edge-list files")
        with utils.Timer("Read"):
            store.materialize(EDGES_TABLE, read_edge_files(
                args.edges, sep=sep, header=not args.no_header, names=(args.src, args.dst),
            ))
            vertex_schema = None
            if args.vertices:
                store.materialize(VERTICES_TABLE, read_vertex_file(args.vertices, sep, args.vertex_id))
                vertex_schema = VertexSchema(VERTICES_TABLE, args.vertex_id)

        edge_schema = EdgeSchema(EDGES_TABLE, args.src, args.dst)
        result = pagerank(store, edge_schema, args.output, cfg, vertex_schema=vertex_schema)

        utils.print_summary_box("Run Summary", {
            key: val for key, val in store.get(summary_name(args.output)).iloc[0].items()
        })

        if args.out_file:
            store.export_csv(args.output, args.out_file)
            utils.print_success(f"Ranks exported to {args.out_file}")

        if args.validate:
            graph = load_graph(store, edge_schema, vertex_schema)
            verify_with_networkx(graph, result, plot_dir=args.plot_dir)
    except InvalidInputError as exc:
        utils.print_error(str(exc))
        return 2
    except GraphRankError as exc:
        utils.print_error(str(exc))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
