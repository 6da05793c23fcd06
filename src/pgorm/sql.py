"""
SQL generation for the PostgreSQL provider.

Statements use PostgreSQL's native positional placeholders (`$1, $2, ...`).
Every bound value in a statement gets a unique 1-based position, so the text
and the value list are produced together:

    Condition tree → compile_condition() → (fragment, values)
                       ↑ shared Placeholder counter, depth-first, left-to-right

For an UPDATE the SET list is rendered first and its counter is handed on to
the WHERE clause, so SET positions are 1..k and WHERE positions start at k+1.

Main entry points:
- `compile_condition()` - Render a condition tree to a WHERE fragment
- `build_where()` - Statement head plus optional WHERE clause
- `build_update_props()` - SET list for UPDATE with a continuation counter
- `build_query_properties()` - Column list, optionally without the primary key
- `make_placeholders()` - `$1, $2, ...` list for INSERT
- `build_limit()` - LIMIT/OFFSET suffix
"""
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from pgorm.condition import Combinator, Comparison, Cond, CondType, Val
from pgorm.exceptions import MalformedConditionError, ValidationError
from pgorm.model import Prop

__all__ = [
    'Placeholder',
    'compile_condition',
    'build_where',
    'build_update_props',
    'build_query_properties',
    'make_placeholders',
    'build_limit',
]

OPERATORS = {
    CondType.EQ: '=',
    CondType.NEQ: '<>',
    CondType.LT: '<',
    CondType.LTE: '<=',
    CondType.GT: '>',
    CondType.GTE: '>=',
}

SEPARATORS = {
    CondType.AND: ' AND ',
    CondType.OR: ' OR ',
}


@dataclass(slots=True)
class Placeholder:
    """Position of the next `$n` placeholder in a statement.

    Created per statement and passed by reference through compilation.
    """
    position: int = 1

    def next(self) -> str:
        """Return the current placeholder and advance the counter."""
        ph = f'${self.position}'
        self.position += 1
        return ph


# =============================================================================
# Condition Compiler
# =============================================================================

def compile_condition(condition: Cond | None,
                      counter: Placeholder | None = None) -> tuple[str, list[Any]]:
    """Render a condition tree to a WHERE fragment and its bound values.

    Parameters
        condition: Condition tree, or None for no filter
        counter: Placeholder counter to continue from (a new one starting at
            `$1` when omitted); advanced in place

    Returns
        Tuple of (fragment, values); `("", [])` when nothing is filtered

    Raises
        MalformedConditionError: for nodes the compiler cannot render
    """
    if condition is None:
        return '', []
    if counter is None:
        counter = Placeholder()

    if isinstance(condition, Combinator):
        return _compile_combinator(condition, counter)
    if isinstance(condition, Comparison):
        return _compile_comparison(condition, counter)

    raise MalformedConditionError(f'Not a condition: {condition!r}')


def _compile_combinator(condition: Combinator, counter: Placeholder) -> tuple[str, list[Any]]:
    if not (isinstance(condition.type, CondType) and condition.type.is_combinator):
        raise MalformedConditionError(f'{condition.type!r} is not a combinator')
    sep = SEPARATORS[condition.type]

    fragments = []
    values = []
    for child in condition.children:
        fragment, child_values = compile_condition(child, counter)
        if fragment:
            fragments.append(fragment)
        values.extend(child_values)

    if not values:
        return '', []
    return f'({sep.join(fragments)})', values


def _compile_comparison(condition: Comparison, counter: Placeholder) -> tuple[str, list[Any]]:
    if not isinstance(condition.type, CondType) or condition.type not in OPERATORS:
        raise MalformedConditionError(f'Unsupported comparison {condition.type!r} on {condition.prop.name}')
    op = OPERATORS[condition.type]
    return f'{condition.prop.name} {op} {counter.next()}', [condition.val]


# =============================================================================
# Statement Fragments
# =============================================================================

def build_where(condition: Cond | None, query: str,
                counter: Placeholder | None = None) -> tuple[str, list[Any]]:
    """Append a WHERE clause for `condition` to a statement head.

    The WHERE keyword is only added when the condition renders to a non-empty
    fragment.
    """
    fragment, values = compile_condition(condition, counter)
    if fragment:
        query = f'{query} WHERE {fragment}'
    return query, values


def build_update_props(values: Sequence[Val]) -> tuple[Placeholder, str, list[Any]]:
    """Render the SET list of an UPDATE.

    Returns
        Tuple of (counter positioned after the last SET placeholder,
        SET string, assigned values in call order)
    """
    if not values:
        raise ValidationError('Update requires at least one assigned value')

    counter = Placeholder()
    assignments = [f'{v.prop.name} = {counter.next()}' for v in values]
    return counter, ', '.join(assignments), [v.val for v in values]


def build_query_properties(props: Sequence[Prop], is_serial: bool = False) -> str:
    """Comma-separated column list, leaving out the primary key when it is
    generated by the database.
    """
    return ', '.join(p.name for p in props if not (is_serial and p.is_pk()))


def make_placeholders(count: int, start: int = 1) -> str:
    """Generate comma-separated positional placeholders.

    Examples
        make_placeholders(3)     # '$1, $2, $3'
        make_placeholders(2, 4)  # '$4, $5'
    """
    return ', '.join(f'${i}' for i in range(start, start + count))


def build_limit(limit: int, offset: int) -> str:
    """LIMIT/OFFSET suffix; empty when limit is not positive.
    """
    if limit > 0:
        return f' LIMIT {int(limit)} OFFSET {int(offset)}'
    return ''
