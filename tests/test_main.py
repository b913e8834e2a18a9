import pandas as pd
import pytest

from conftest import SCENARIO_EDGES, SCENARIO_RANKS
from main import main, parse_delimiter


@pytest.fixture
def edge_files(tmp_path):
    half = len(SCENARIO_EDGES) // 2
    paths = []
    for i, rows in enumerate((SCENARIO_EDGES[:half], SCENARIO_EDGES[half:])):
        path = tmp_path / f"part-{i}.csv"
        pd.DataFrame(rows, columns=['from', 'to']).to_csv(path, index=False)
        paths.append(str(path))
    return paths


def test_cli_exports_ranks(edge_files, tmp_path):
    out_file = tmp_path / "ranks.csv"
    code = main(edge_files + [
        '--src', 'from', '--dst', 'to', '--quiet',
        '--max-iter', '50', '--epsilon', '1e-3', '--out-file', str(out_file),
    ])
    assert code == 0

    ranks = pd.read_csv(out_file).set_index('node')['rank']
    for node, expected in SCENARIO_RANKS.items():
        assert ranks[node] == pytest.approx(expected, abs=1e-3)


def test_cli_rejects_bad_damping(edge_files):
    assert main(edge_files + ['--src', 'from', '--dst', 'to', '--quiet', '--damping', '1.0']) == 2


def test_cli_rejects_unknown_column(edge_files):
    assert main(edge_files + ['--quiet']) == 2


def test_cli_with_vertices_and_validation(tmp_path):
    edges = tmp_path / "edges.tsv"
    edges.write_text("src\tdst\n1\t2\n2\t1\n")
    vertices = tmp_path / "vertices.tsv"
    vertices.write_text("id\n1\n2\n3\n")
    code = main([str(edges), '--sep', '\\t', '--vertices', str(vertices),
                 '--validate', '--quiet', '--epsilon', '1e-10'])
    assert code == 0


def test_cli_empty_edge_file_exits_with_input_error(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("")
    assert main([str(path), '--quiet']) == 2


def test_cli_malformed_edge_file_exits_with_input_error(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("src,dst\n1,2\n1,2,3,4\n")
    assert main([str(path), '--quiet']) == 2


def test_cli_missing_vertex_file_exits_with_input_error(edge_files, tmp_path):
    args = edge_files + ['--src', 'from', '--dst', 'to', '--quiet',
                         '--vertices', str(tmp_path / "nope.csv")]
    assert main(args) == 2


@pytest.mark.parametrize("text, expected", [
    ('\\t', '\t'),
    ('tab', '\t'),
    ('space', ' '),
    (',', ','),
    ('§', '§'),
    ('|', '|'),
])
def test_parse_delimiter(text, expected):
    assert parse_delimiter(text) == expected


def test_cli_non_ascii_delimiter(tmp_path):
    edges = tmp_path / "edges.txt"
    edges.write_text("src§dst\n1§2\n2§1\n", encoding='utf-8')
    out_file = tmp_path / "ranks.csv"
    code = main([str(edges), '--sep', '§', '--quiet', '--out-file', str(out_file)])
    assert code == 0

    ranks = pd.read_csv(out_file).set_index('node')['rank']
    assert sorted(ranks.index) == [1, 2]
    assert ranks.tolist() == pytest.approx([0.5, 0.5])
