"""
Unit tests for statement fragment helpers.
"""
import pytest
from pgorm.condition import And, Eq, Gt, Or, Set
from pgorm.exceptions import ValidationError
from pgorm.sql import Placeholder, build_limit, build_query_properties
from pgorm.sql import build_update_props, build_where, make_placeholders


def test_placeholder_counter():
    counter = Placeholder()
    assert [counter.next(), counter.next(), counter.next()] == ['$1', '$2', '$3']
    assert counter.position == 4


class TestBuildWhere:

    def test_appends_where(self, props):
        query, args = build_where(Eq(props['id'], 7), 'DELETE FROM users')
        assert query == 'DELETE FROM users WHERE id = $1'
        assert args == [7]

    @pytest.mark.parametrize('cond', [None, And(), Or(And())], ids=['none', 'and', 'nested'])
    def test_no_where_for_empty_condition(self, cond):
        query, args = build_where(cond, 'SELECT id FROM users')
        assert query == 'SELECT id FROM users'
        assert args == []
        assert 'WHERE' not in query

    def test_continues_counter(self, props):
        counter = Placeholder(3)
        query, args = build_where(And(Eq(props['id'], 1), Gt(props['age'], 2)),
                                  'UPDATE users SET name = $1, city = $2', counter)
        assert query == 'UPDATE users SET name = $1, city = $2 WHERE (id = $3 AND age > $4)'
        assert args == [1, 2]


class TestBuildUpdateProps:

    def test_single_assignment(self, props):
        counter, update_string, values = build_update_props([Set(props['name'], 'Bob')])
        assert update_string == 'name = $1'
        assert values == ['Bob']
        assert counter.position == 2

    def test_assignments_in_call_order(self, props):
        counter, update_string, values = build_update_props([
            Set(props['city'], 'LA'),
            Set(props['age'], 31),
            Set(props['name'], 'Ann'),
        ])
        assert update_string == 'city = $1, age = $2, name = $3'
        assert values == ['LA', 31, 'Ann']
        assert counter.position == 4

    def test_requires_assignment(self):
        with pytest.raises(ValidationError):
            build_update_props([])


class TestBuildQueryProperties:

    def test_all_columns(self, user_store):
        assert build_query_properties(user_store.props) == 'id, name, age, city'

    def test_serial_omits_pk(self, user_store):
        assert build_query_properties(user_store.props, is_serial=True) == 'name, age, city'

    def test_pk_not_first(self, user_store):
        props = list(reversed(user_store.props))
        assert build_query_properties(props, is_serial=True) == 'city, age, name'


@pytest.mark.parametrize(('count', 'start', 'expected'), [
    (1, 1, '$1'),
    (3, 1, '$1, $2, $3'),
    (2, 4, '$4, $5'),
    (0, 1, ''),
])
def test_make_placeholders(count, start, expected):
    assert make_placeholders(count, start) == expected


@pytest.mark.parametrize(('limit', 'offset', 'expected'), [
    (0, 0, ''),
    (0, 10, ''),
    (-1, 5, ''),
    (5, 10, ' LIMIT 5 OFFSET 10'),
    (1, 0, ' LIMIT 1 OFFSET 0'),
])
def test_build_limit(limit, offset, expected):
    assert build_limit(limit, offset) == expected
