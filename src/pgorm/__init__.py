"""
PostgreSQL provider for a storage-agnostic ORM.

Records are declared with `table`/`Prop`, filtered with condition trees, and
stored through a `PostgresProvider`:

    provider = pgorm.new_provider('postgresql', config=config)
    provider.put(User(name='Ann', age=30))
    provider.find(User.store, And(Gte(age, 18), Neq(name, 'Bob')), limit=10)
"""
__version__ = '0.1.0'

import logging
from typing import Any

from pgorm.condition import And, Combinator, Comparison, Cond, CondType, Eq
from pgorm.condition import Gt, Gte, Lt, Lte, Neq, Or, Set, Val
from pgorm.connection import ConnectionWrapper, connect, dispose_all_engines
from pgorm.exceptions import ConnectionFailure, DatabaseError, DbConnectionError
from pgorm.exceptions import IntegrityError, MalformedConditionError
from pgorm.exceptions import NotFoundError, OperationalError, ProgrammingError
from pgorm.exceptions import QueryError, UniqueViolation, ValidationError
from pgorm.model import Model, Prop, PropKind, Store, table
from pgorm.options import DatabaseOptions
from pgorm.provider import PostgresProvider
from pgorm.sql import compile_condition


def new_provider(options: DatabaseOptions | dict[str, Any] | str,
                 config: Any | None = None, log: logging.Logger | None = None,
                 **kw: Any) -> PostgresProvider:
    """Connect and return a provider over the new connection.

    Accepts the same options as `connect`. `log` receives one line per
    statement issued.
    """
    return PostgresProvider(connect(options, config, **kw), log)


__all__ = [
    'new_provider',
    'connect',
    'dispose_all_engines',
    'ConnectionWrapper',
    'DatabaseOptions',
    'PostgresProvider',
    'compile_condition',
    'Model',
    'Store',
    'Prop',
    'PropKind',
    'table',
    'Cond',
    'CondType',
    'Comparison',
    'Combinator',
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
    'DatabaseError',
    'ConnectionFailure',
    'QueryError',
    'ValidationError',
    'MalformedConditionError',
    'NotFoundError',
    'DbConnectionError',
    'IntegrityError',
    'ProgrammingError',
    'OperationalError',
    'UniqueViolation',
]
