"""
Unit tests for the logging cursor wrapper.
"""
import logging
from unittest.mock import MagicMock

import pytest
from pgorm.cursor import Cursor


@pytest.fixture
def cursor():
    return Cursor(MagicMock(), MagicMock())


def test_execute_passes_tuple_params(cursor):
    assert cursor.execute('SELECT $1, $2', [1, 'a']) is cursor
    cursor.dbapi_cursor.execute.assert_called_once_with('SELECT $1, $2', (1, 'a'))
    cursor.connwrapper.addcall.assert_called_once()


def test_execute_logs_sql(cursor, caplog):
    with caplog.at_level(logging.DEBUG, logger='pgorm.cursor'):
        cursor.execute('DELETE FROM users WHERE id = $1', (7,))
    assert 'SQL:\nDELETE FROM users WHERE id = $1\nargs: (7,)' in caplog.text


def test_failed_execute_is_logged_and_raised(cursor, caplog):
    cursor.dbapi_cursor.execute.side_effect = RuntimeError('boom')
    with caplog.at_level(logging.ERROR, logger='pgorm.cursor'), pytest.raises(RuntimeError):
        cursor.execute('SELECT broken', ())
    assert 'Error with query' in caplog.text
    cursor.connwrapper.addcall.assert_called_once()


def test_delegates_to_dbapi_cursor(cursor):
    cursor.dbapi_cursor.fetchall.return_value = [(1,)]
    cursor.dbapi_cursor.rowcount = 4
    cursor.dbapi_cursor.statusmessage = 'DELETE 4'
    assert cursor.fetchall() == [(1,)]
    assert cursor.rowcount == 4
    assert cursor.statusmessage == 'DELETE 4'
