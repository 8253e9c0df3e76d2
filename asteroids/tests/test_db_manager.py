#!/usr/bin/env python3
"""
Tests for the database manager with psycopg2 mocked out.
"""
import psycopg2
import pytest
from unittest.mock import MagicMock, patch

from asteroids.db.manager import DBManager
from asteroids.exceptions import ConnectionError, DatabaseError, QueryError

DB_CONFIG = {'host': 'localhost', 'port': 5432, 'database': 'scop', 'user': 'scop'}


@pytest.fixture
def mock_connect():
    with patch('asteroids.db.manager.psycopg2.connect') as connect:
        conn = MagicMock()
        cursor = conn.cursor.return_value.__enter__.return_value
        connect.return_value = conn
        yield connect, conn, cursor


class TestDBManager:

    def test_missing_config_field(self):
        with pytest.raises(ConnectionError, match="host"):
            DBManager({'port': 5432, 'database': 'scop', 'user': 'scop'})

    def test_execute_query(self, mock_connect):
        connect, conn, cursor = mock_connect
        cursor.fetchall.return_value = [(1,), (2,)]

        rows = DBManager(DB_CONFIG).execute_query("SELECT id FROM raf WHERE id > %s", (0,))

        assert rows == [(1,), (2,)]
        cursor.execute.assert_called_once_with("SELECT id FROM raf WHERE id > %s", (0,))
        conn.commit.assert_called_once()
        conn.close.assert_called_once()

    def test_statement_without_results(self, mock_connect):
        _, _, cursor = mock_connect
        cursor.description = None
        assert DBManager(DB_CONFIG).execute_query("UPDATE raf SET line = line") == []

    def test_execute_dict_query(self, mock_connect):
        _, _, cursor = mock_connect
        cursor.fetchall.return_value = [{'id': 1, 'sid': '1abcA'}]
        rows = DBManager(DB_CONFIG).execute_dict_query("SELECT id, sid FROM astral_chain")
        assert rows == [{'id': 1, 'sid': '1abcA'}]

    def test_connection_failure(self, mock_connect):
        connect, _, _ = mock_connect
        connect.side_effect = psycopg2.OperationalError("could not connect")
        with pytest.raises(ConnectionError):
            DBManager(DB_CONFIG).execute_query("SELECT 1")

    def test_query_failure_rolls_back(self, mock_connect):
        _, conn, cursor = mock_connect
        cursor.execute.side_effect = psycopg2.ProgrammingError("syntax error")

        with pytest.raises(QueryError):
            DBManager(DB_CONFIG).execute_query("SELEC 1")
        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()
        conn.close.assert_called_once()

    def test_transaction(self, mock_connect):
        _, conn, cursor = mock_connect

        def callback(cur):
            cur.execute("DELETE FROM asteroid WHERE chain_id = %s", (1,))
            return 3

        assert DBManager(DB_CONFIG).execute_transaction(callback) == 3
        conn.commit.assert_called_once()

    def test_transaction_failure(self, mock_connect):
        _, conn, cursor = mock_connect
        cursor.execute.side_effect = psycopg2.IntegrityError("duplicate key")

        with pytest.raises(DatabaseError):
            DBManager(DB_CONFIG).execute_transaction(lambda cur: cur.execute("INSERT"))
        conn.rollback.assert_called_once()
