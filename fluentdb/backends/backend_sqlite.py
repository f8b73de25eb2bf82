"""
fluentdb SQLite 执行器

基于标准库 sqlite3 的执行器实现。注册 JSON_CONTAINS(target, candidate)
函数，使 MySQL 风格的 JSON 包含判断可以原样执行。
"""

import json
import logging
import sqlite3
from typing import Any, List, Optional, Sequence

from .base import Executor, Row, WriteOutcome
from ..common.exceptions import DatabaseConnectionError, QueryError
from ..common.options import SqliteConnectorOptions

logger = logging.getLogger(__name__)


def json_contains(target: Any, candidate: Any) -> bool:
    """
    判断 target 是否包含 candidate（MySQL JSON_CONTAINS 语义）

    - 对象：candidate 的每个键都存在于 target 且对应值被包含
    - 数组：candidate 为数组时每个元素都被 target 的某个元素包含；
      否则 candidate 被 target 的某个元素包含
    - 标量：相等
    """
    if isinstance(target, dict):
        if not isinstance(candidate, dict):
            return False
        return all(
            key in target and json_contains(target[key], value)
            for key, value in candidate.items()
        )
    if isinstance(target, list):
        if isinstance(candidate, list):
            return all(
                any(json_contains(item, wanted) for item in target)
                for wanted in candidate
            )
        return any(json_contains(item, candidate) for item in target)
    return target == candidate


def _sql_json_contains(target: Optional[str], candidate: Optional[str]) -> Optional[int]:
    if target is None or candidate is None:
        return None
    try:
        parsed_target = json.loads(target)
        parsed_candidate = json.loads(candidate)
    except (TypeError, ValueError):
        return None
    return 1 if json_contains(parsed_target, parsed_candidate) else 0


class SqliteExecutor(Executor):
    """
    SQLite 执行器

    Example:
        executor = SqliteExecutor(':memory:', SqliteConnectorOptions(table_prefix='wp_'))
        rows = executor.execute_select('SELECT * FROM wp_posts WHERE id = ?', [1])
    """

    def __init__(
        self,
        database: str = ':memory:',
        options: Optional[SqliteConnectorOptions] = None
    ) -> None:
        self.options = options or SqliteConnectorOptions()
        super().__init__(table_prefix=self.options.table_prefix)
        self.database = database
        self._last_insert_id: Optional[int] = None

        connect_kwargs = {
            'check_same_thread': self.options.check_same_thread,
            'isolation_level': self.options.isolation_level,
        }
        if self.options.timeout is not None:
            connect_kwargs['timeout'] = self.options.timeout

        try:
            self.connection = sqlite3.connect(database, **connect_kwargs)
        except sqlite3.Error as e:
            raise DatabaseConnectionError(f"Cannot open SQLite database '{database}': {e}") from e

        self.connection.row_factory = sqlite3.Row
        self.connection.create_function('JSON_CONTAINS', 2, _sql_json_contains, deterministic=True)

    def _log(self, sql: str, params: Sequence[Any]) -> None:
        if params:
            logger.debug("[SQL EXECUTE]: %s | [PARAMS]: %s", sql, list(params))
        else:
            logger.debug("[SQL EXECUTE]: %s", sql)

    def execute_select(self, sql: str, params: Sequence[Any] = ()) -> List[Row]:
        self._log(sql, params)
        try:
            cursor = self.connection.execute(sql, tuple(params))
            return [dict(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            raise QueryError(sql, str(e)) from e

    def execute_write(self, sql: str, params: Sequence[Any] = ()) -> WriteOutcome:
        self._log(sql, params)
        try:
            cursor = self.connection.execute(sql, tuple(params))
        except sqlite3.DatabaseError as e:
            logger.warning("Write rejected by store: %s [SQL: %s]", e, sql)
            return WriteOutcome(False)

        affected = None
        if sql.lstrip().upper().startswith('INSERT'):
            self._last_insert_id = cursor.lastrowid
            affected = cursor.lastrowid
        return WriteOutcome(True, affected, cursor.rowcount)

    def last_insert_identifier(self) -> Any:
        return self._last_insert_id

    def execute_script(self, script: str) -> None:
        """执行多条 DDL 语句（建表等）"""
        logger.debug("[SQL SCRIPT]: %s", script)
        self.connection.executescript(script)

    def close(self) -> None:
        self.connection.close()
