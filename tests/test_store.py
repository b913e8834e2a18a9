import pandas as pd
import pytest

from graphrank.errors import CollisionError, InvalidInputError
from graphrank.store import EdgeSchema, TableStore


@pytest.fixture
def store():
    s = TableStore()
    s.materialize('t', pd.DataFrame({'k': ['a', 'b', 'a', 'c', 'a'], 'v': [1, 2, 3, 4, 5]}))
    return s


def test_distinct_keeps_first_appearance_order(store):
    out = store.distinct('t', ['k'])
    assert out['k'].tolist() == ['a', 'b', 'c']


def test_grouped_count(store):
    out = store.grouped_count('t', 'k', name='n').set_index('k')['n']
    assert out.to_dict() == {'a': 3, 'b': 1, 'c': 1}


def test_grouped_sum(store):
    out = store.grouped_sum('t', 'k', 'v', name='total').set_index('k')['total']
    assert out.to_dict() == {'a': 9, 'b': 2, 'c': 4}


def test_join_accepts_names_and_frames(store):
    right = pd.DataFrame({'key': ['a', 'c'], 'w': [10, 20]})
    out = store.join('t', right, 'k', 'key')
    assert sorted(zip(out['k'], out['w'])) == [('a', 10), ('a', 10), ('a', 10), ('c', 20)]


def test_materialize_replaces_by_default(store):
    store.materialize('t', pd.DataFrame({'x': [1]}))
    assert store.get('t').columns.tolist() == ['x']


def test_materialize_strict_create_collides(store):
    with pytest.raises(CollisionError):
        store.materialize('t', pd.DataFrame({'x': [1]}), replace=False)
    assert store.get('t').columns.tolist() == ['k', 'v']


def test_protected_relation_cannot_be_replaced_or_dropped(store):
    store.protect('t')
    assert store.is_protected('t')
    with pytest.raises(CollisionError):
        store.materialize('t', pd.DataFrame({'x': [1]}))
    with pytest.raises(CollisionError):
        store.drop('t')


def test_materialize_copies_input():
    s = TableStore()
    frame = pd.DataFrame({'x': [1, 2]})
    s.materialize('f', frame)
    frame.loc[0, 'x'] = 99
    assert s.get('f')['x'].tolist() == [1, 2]


def test_drop(store):
    store.drop('t')
    assert not store.exists('t')
    store.drop('t')
    with pytest.raises(InvalidInputError):
        store.drop('t', missing_ok=False)


def test_unknown_relation_and_column(store):
    with pytest.raises(InvalidInputError):
        store.get('nope')
    with pytest.raises(InvalidInputError, match="no column 'zz'"):
        store.column('t', 'zz')
    with pytest.raises(InvalidInputError):
        EdgeSchema('t', 'k', 'missing').resolve(store)


def test_export_csv(store, tmp_path):
    path = store.export_csv('t', tmp_path / 't.csv')
    assert pd.read_csv(path)['v'].sum() == 15
