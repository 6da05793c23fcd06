"""
PostgreSQL provider for the ORM data-access contract.

`PostgresProvider` turns storage-agnostic calls into `$n` parameterized
statements, runs them through a connection, and scans rows back into
records:

    provider = PostgresProvider(cn)
    provider.put(User(name='Ann', age=30))
    users = provider.find(User.store, Gte(User.store.prop('age'), 18), limit=10)

Each call issues its statements sequentially and raises the first error it
meets. Nothing is retried and nothing is rolled back across statements.
"""
import logging
from typing import Any, Protocol

from pgorm.condition import Cond, Eq, Val
from pgorm.exceptions import NotFoundError
from pgorm.model import Model, Store
from pgorm.sql import build_limit, build_query_properties, build_update_props
from pgorm.sql import build_where, make_placeholders

__all__ = [
    'Executor',
    'PostgresProvider',
]

logger = logging.getLogger(__name__)


class Executor(Protocol):
    """SQL execution capability, implemented by `ConnectionWrapper`."""

    def execute(self, sql: str, *args: Any) -> int: ...

    def query_row(self, sql: str, *args: Any) -> tuple: ...

    def query(self, sql: str, *args: Any) -> list[tuple]: ...


class PostgresProvider:
    """ORM provider backed by a PostgreSQL connection.

    Args:
        cn: Object running parameterized statements (see `Executor`)
        log: Logger receiving one line per statement; defaults to this
            module's logger
    """

    def __init__(self, cn: Executor, log: logging.Logger | None = None) -> None:
        self.cn = cn
        self.logger = log or logger

    def put(self, *models: Model) -> None:
        """Insert records one at a time.

        A record whose primary key is empty for its kind (0, '', None) gets
        its key from the database through `RETURNING`; otherwise the key is
        inserted as given. The first failing insert aborts the batch and
        records inserted before it stay inserted.
        """
        for m in models:
            pk_prop = m.orm_pk_prop()
            is_serial = pk_prop.is_zero(m.orm_pk())
            values = [v for p, v in zip(m.orm_props(), m.orm_vals())
                      if not (is_serial and p.is_pk())]
            columns = build_query_properties(m.orm_props(), is_serial)
            placeholders = make_placeholders(len(values))
            query = (f'INSERT INTO {m.orm_store().name} ({columns}) '
                     f'VALUES ({placeholders}) RETURNING {pk_prop.name}')
            self.logger.debug(f'PUT QUERY: {query}')
            row = self.cn.query_row(query, *values)
            m.orm_assign_pk(row[0])

    def populate(self, model: Model, pk: Any) -> None:
        """Load the row with primary key `pk` into `model`.

        Raises NotFoundError when no row has that key.
        """
        query, args = build_where(
            Eq(model.orm_pk_prop(), pk),
            f'SELECT {build_query_properties(model.orm_props())} FROM {model.orm_store().name}',
        )
        self.logger.debug(f'GET QUERY: {query}')
        row = self.cn.query_row(query, *args)
        model.orm_assign(row)

    def find(self, store: Store, condition: Cond | None, limit: int = 0,
             offset: int = 0) -> list[Model]:
        """Return records of `store` matching `condition`, in result order.

        LIMIT and OFFSET are only applied when `limit` is positive.
        """
        query, args = build_where(
            condition,
            f'SELECT {build_query_properties(store.props)} FROM {store.name}',
        )
        query += build_limit(limit, offset)
        self.logger.debug(f'FIND QUERY: {query}')
        models = []
        for row in self.cn.query(query, *args):
            m = store.model()
            m.orm_assign(row)
            models.append(m)
        return models

    def update(self, store: Store, condition: Cond | None, *values: Val) -> None:
        """Assign `values` on every row matching `condition`.

        SET placeholders come first, the WHERE clause continues the same
        numbering. Matching no rows is not an error.
        """
        counter, update_string, update_values = build_update_props(values)
        self.logger.debug(f'{counter.position} {update_string}')
        query, args = build_where(
            condition,
            f'UPDATE {store.name} SET {update_string}',
            counter,
        )
        self.logger.debug(f'UPDATE QUERY: {query}')
        self.cn.execute(query, *update_values, *args)

    def delete(self, store: Store, condition: Cond | None) -> None:
        """Delete every row matching `condition`; all rows when it is None."""
        query, args = build_where(condition, f'DELETE FROM {store.name}')
        self.logger.debug(f'DELETE QUERY: {query}')
        self.cn.execute(query, *args)

    def count(self, store: Store, condition: Cond | None) -> int:
        query, args = build_where(
            condition,
            f'SELECT COUNT({store.pk.name}) AS cnt FROM {store.name}',
        )
        self.logger.debug(f'COUNT QUERY: {query}')
        row = self.cn.query_row(query, *args)
        return int(row[0])

    def not_found(self) -> type[NotFoundError]:
        """Error class raised when a single-row lookup finds nothing.

        Usage:
            try:
                provider.populate(user, 42)
            except provider.not_found():
                ...
        """
        return NotFoundError
