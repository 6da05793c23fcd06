"""
Record model consumed by the provider.

A model class is bound to a `Store` (table name plus ordered column
properties) with the `table` decorator:

    @table('users',
           Prop('id', PropKind.INT, pk=True),
           Prop('name', PropKind.TEXT),
           Prop('age', PropKind.INT))
    class User(Model):
        pass

The provider only talks to records through the `orm_*` methods, so any class
implementing them can be used in place of `Model`.
"""
import decimal
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from pgorm.exceptions import ValidationError

__all__ = [
    'PropKind',
    'Prop',
    'Store',
    'Model',
    'table',
]


class PropKind(Enum):
    """Column value kinds understood by the provider."""
    INT = 'int'
    FLOAT = 'float'
    DECIMAL = 'decimal'
    TEXT = 'text'
    BYTES = 'bytes'
    BOOL = 'bool'
    UUID = 'uuid'
    DATETIME = 'datetime'

    def is_zero(self, value: Any) -> bool:
        """Return True when `value` is the empty value for this kind.

        An empty primary key means the database assigns the key on insert.
        """
        if value is None:
            return True
        return _ZERO_TESTS.get(self, _never_zero)(value)


def _never_zero(value: Any) -> bool:
    return False


_ZERO_TESTS: dict[PropKind, Callable[[Any], bool]] = {
    PropKind.INT: lambda v: v == 0,
    PropKind.FLOAT: lambda v: v == 0,
    PropKind.DECIMAL: lambda v: v == decimal.Decimal(0),
    PropKind.TEXT: lambda v: v == '',
    PropKind.BYTES: lambda v: v == b'',
    PropKind.UUID: lambda v: v == uuid.UUID(int=0),
}


@dataclass(frozen=True, slots=True)
class Prop:
    """Named, typed column of a store."""
    name: str
    kind: PropKind = PropKind.TEXT
    pk: bool = False

    def is_pk(self) -> bool:
        return self.pk

    def is_zero(self, value: Any) -> bool:
        return self.kind.is_zero(value)


@dataclass
class Store:
    """Table a model maps to, with its ordered column metadata.
    """
    name: str
    props: tuple[Prop, ...]
    factory: Callable[[], 'Model'] | None = None
    pk: Prop = field(init=False)

    def __post_init__(self):
        self.props = tuple(self.props)
        if not self.props:
            raise ValidationError(f'Store {self.name} has no properties')
        pks = [p for p in self.props if p.is_pk()]
        if len(pks) != 1:
            raise ValidationError(f'Store {self.name} must have exactly one primary key, got {len(pks)}')
        self.pk = pks[0]

    def prop(self, name: str) -> Prop:
        """Look up a property by column name.
        """
        for p in self.props:
            if p.name == name:
                return p
        raise KeyError(f'{self.name} has no property {name}')

    def model(self) -> 'Model':
        """Instantiate an empty record for scanning a result row into.
        """
        if self.factory is None:
            raise ValidationError(f'Store {self.name} has no model factory')
        return self.factory()


class Model:
    """Attribute-backed record base class.

    Each store property is stored as an instance attribute of the same name.
    Properties not passed to the constructor default to None.
    """
    store: ClassVar[Store]

    def __init__(self, **values: Any) -> None:
        for p in self.orm_props():
            setattr(self, p.name, values.pop(p.name, None))
        if values:
            raise TypeError(f'Unknown properties for {type(self).__name__}: {sorted(values)}')

    def __repr__(self) -> str:
        fields = ', '.join(f'{p.name}={getattr(self, p.name)!r}' for p in self.orm_props())
        return f'{type(self).__name__}({fields})'

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.orm_vals() == other.orm_vals()

    def orm_store(self) -> Store:
        return type(self).store

    def orm_props(self) -> tuple[Prop, ...]:
        return self.orm_store().props

    def orm_pk_prop(self) -> Prop:
        return self.orm_store().pk

    def orm_pk(self) -> Any:
        return getattr(self, self.orm_pk_prop().name)

    def orm_vals(self) -> list[Any]:
        """Values of all properties in store order."""
        return [getattr(self, p.name) for p in self.orm_props()]

    def orm_assign(self, values: Sequence[Any]) -> None:
        """Write a full result row into the record, in store order."""
        props = self.orm_props()
        if len(values) != len(props):
            raise ValidationError(f'Expected {len(props)} values for {self.orm_store().name}, got {len(values)}')
        for p, v in zip(props, values):
            setattr(self, p.name, v)

    def orm_assign_pk(self, value: Any) -> None:
        setattr(self, self.orm_pk_prop().name, value)


def table(name: str, *props: Prop):
    """Class decorator binding a `Model` subclass to a new `Store`.

    Usage:
        @table('users', Prop('id', PropKind.INT, pk=True), Prop('name'))
        class User(Model):
            ...
    """
    def decorator(cls: type[Model]) -> type[Model]:
        cls.store = Store(name, props, factory=cls)
        return cls
    return decorator
