"""
SQLite 执行器测试
"""

import logging

import pytest

from fluentdb import SqliteConnectorOptions, SqliteExecutor
from fluentdb.backends.backend_sqlite import json_contains
from fluentdb.common.exceptions import QueryError


class TestTablePrefix:
    """表名前缀测试"""

    def test_prefix_applied_once(self) -> None:
        with SqliteExecutor(options=SqliteConnectorOptions(table_prefix='wp_')) as db:
            assert db.resolve_table_name('posts') == 'wp_posts'
            assert db.resolve_table_name('wp_posts') == 'wp_posts'
            assert db.resolve_table_name(db.resolve_table_name('posts')) == 'wp_posts'

    def test_no_prefix(self) -> None:
        with SqliteExecutor() as db:
            assert db.resolve_table_name('posts') == 'posts'


class TestJsonContains:
    """JSON_CONTAINS 语义测试"""

    @pytest.mark.parametrize('target, candidate, expected', [
        ({'a': 1, 'b': 2}, {'a': 1}, True),
        ({'a': 1}, {'a': 2}, False),
        ({'a': {'b': [1, 2, 3]}}, {'a': {'b': [3]}}, True),
        ([1, 2, 3], [1, 3], True),
        ([1, 2, 3], 2, True),
        ([1, 2, 3], [4], False),
        ([{'x': 1, 'y': 2}], {'x': 1}, True),
        ('a', 'a', True),
        ({'a': 1}, [1], False),
    ])
    def test_containment(self, target, candidate, expected) -> None:
        assert json_contains(target, candidate) is expected

    def test_sql_function(self) -> None:
        with SqliteExecutor() as db:
            rows = db.execute_select(
                "SELECT JSON_CONTAINS(?, ?) AS hit, JSON_CONTAINS(?, ?) AS miss, "
                "JSON_CONTAINS('broken{', ?) AS bad",
                ['{"tags":["a","b"]}', '{"tags":["a"]}', '[1]', '[2]', '{}'],
            )
        assert rows == [{'hit': 1, 'miss': 0, 'bad': None}]


class TestExecution:
    """语句执行测试"""

    def test_rows_are_dicts(self, executor, seed) -> None:
        seed("INSERT INTO wp_categories (id, name) VALUES (?, ?)", [(1, 'A')])
        rows = executor.execute_select('SELECT id, name FROM wp_categories')
        assert rows == [{'id': 1, 'name': 'A'}]
        assert type(rows[0]) is dict

    def test_insert_identifier(self, executor) -> None:
        outcome = executor.execute_write("INSERT INTO wp_categories (name) VALUES (?)", ['A'])
        assert outcome.success
        assert outcome.affected_identifier == 1
        assert outcome.rowcount == 1
        assert executor.last_insert_identifier() == 1

    def test_rejected_write_returns_failure(self, executor, caplog) -> None:
        """存储拒绝写入时返回失败结果并记录警告"""
        with caplog.at_level(logging.WARNING, logger='fluentdb.backends.backend_sqlite'):
            outcome = executor.execute_write("INSERT INTO wp_posts (status) VALUES (?)", ['x'])
        assert not outcome.success
        assert 'Write rejected' in caplog.text

    def test_select_error_raises(self, executor) -> None:
        with pytest.raises(QueryError) as exc_info:
            executor.execute_select('SELECT * FROM wp_missing')
        assert exc_info.value.sql == 'SELECT * FROM wp_missing'

    def test_statements_logged_at_debug(self, executor, caplog) -> None:
        with caplog.at_level(logging.DEBUG, logger='fluentdb.backends.backend_sqlite'):
            executor.execute_select('SELECT * FROM wp_posts WHERE id = ?', [1])
        assert '[SQL EXECUTE]: SELECT * FROM wp_posts WHERE id = ?' in caplog.text
        assert '[PARAMS]: [1]' in caplog.text


class TestPrefixEdge:
    """以前缀开头的逻辑表名"""

    def test_name_starting_with_prefix_left_unchanged(self) -> None:
        with SqliteExecutor(options=SqliteConnectorOptions(table_prefix='bb')) as db:
            assert db.resolve_table_name('bbcodes') == 'bbcodes'
            assert db.resolve_table_name('bbbbcodes') == 'bbbbcodes'
            assert db.resolve_table_name('codes') == 'bbcodes'
