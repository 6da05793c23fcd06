"""
Condition trees and assignment values.

A condition is either a leaf comparison between a property and a bound value,
or a combinator joining child conditions with AND/OR:

    cond = And(Eq(age, 30), Or(Eq(city, 'NY'), Eq(city, 'LA')))

Conditions are plain data. Rendering them to SQL is done by
`pgorm.sql.compile_condition`.
"""
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Union

from pgorm.model import Prop

__all__ = [
    'CondType',
    'Comparison',
    'Combinator',
    'Cond',
    'Val',
    'Eq',
    'Neq',
    'Lt',
    'Lte',
    'Gt',
    'Gte',
    'And',
    'Or',
    'Set',
]


class CondType(Enum):
    """Kinds of condition nodes."""
    EQ = auto()
    NEQ = auto()
    LT = auto()
    LTE = auto()
    GT = auto()
    GTE = auto()
    AND = auto()
    OR = auto()

    @property
    def is_combinator(self) -> bool:
        return self in {CondType.AND, CondType.OR}


@dataclass(slots=True)
class Comparison:
    """Leaf comparison: `<prop> <type> <val>`."""
    prop: Prop
    type: CondType
    val: Any


@dataclass(slots=True)
class Combinator:
    """AND/OR node over an ordered list of child conditions."""
    type: CondType
    children: list['Cond'] = field(default_factory=list)

    def add(self, *conds: 'Cond') -> 'Combinator':
        """Append children in order and return self for chaining."""
        self.children.extend(conds)
        return self


Cond = Union[Comparison, Combinator]


@dataclass(slots=True)
class Val:
    """Property/value pair assigned by an UPDATE."""
    prop: Prop
    val: Any


def Eq(prop: Prop, val: Any) -> Comparison:
    return Comparison(prop, CondType.EQ, val)


def Neq(prop: Prop, val: Any) -> Comparison:
    return Comparison(prop, CondType.NEQ, val)


def Lt(prop: Prop, val: Any) -> Comparison:
    return Comparison(prop, CondType.LT, val)


def Lte(prop: Prop, val: Any) -> Comparison:
    return Comparison(prop, CondType.LTE, val)


def Gt(prop: Prop, val: Any) -> Comparison:
    return Comparison(prop, CondType.GT, val)


def Gte(prop: Prop, val: Any) -> Comparison:
    return Comparison(prop, CondType.GTE, val)


def And(*children: Cond) -> Combinator:
    return Combinator(CondType.AND, list(children))


def Or(*children: Cond) -> Combinator:
    return Combinator(CondType.OR, list(children))


def Set(prop: Prop, val: Any) -> Val:
    """Assignment for `PostgresProvider.update`."""
    return Val(prop, val)
