"""
Pytest 配置和共享 fixtures

此文件提供 pytest 测试所需的共享配置和 fixtures。
"""
import sys
from pathlib import Path
from typing import Any, Callable, Generator, List, Sequence, Tuple

import pytest

# 确保可以导入 fluentdb
sys.path.insert(0, str(Path(__file__).parent.parent))

from fluentdb import SqliteExecutor, SqliteConnectorOptions, WriteOutcome


SCHEMA = """
CREATE TABLE wp_posts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    status TEXT,
    owner INTEGER,
    cat_id INTEGER,
    handle TEXT,
    data TEXT,
    updated_at TEXT
);
CREATE TABLE wp_categories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT,
    data TEXT,
    updated_at TEXT
);
CREATE TABLE wp_comments (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    post_id INTEGER,
    body TEXT,
    data TEXT,
    updated_at TEXT
);
"""


class RecordingExecutor(SqliteExecutor):
    """记录每条执行语句的 SQLite 执行器，用于统计查询次数"""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.statements: List[Tuple[str, List[Any]]] = []

    def execute_select(self, sql: str, params: Sequence[Any] = ()) -> List[dict]:
        self.statements.append((sql, list(params)))
        return super().execute_select(sql, params)

    def execute_write(self, sql: str, params: Sequence[Any] = ()) -> WriteOutcome:
        self.statements.append((sql, list(params)))
        return super().execute_write(sql, params)

    def reset(self) -> None:
        self.statements.clear()

    def selects(self) -> List[Tuple[str, List[Any]]]:
        return [s for s in self.statements if s[0].startswith('SELECT')]

    def writes(self) -> List[Tuple[str, List[Any]]]:
        return [s for s in self.statements if not s[0].startswith('SELECT')]


@pytest.fixture
def executor() -> Generator[RecordingExecutor, None, None]:
    """
    提供带表结构的内存 SQLite 执行器

    表名前缀为 'wp_'，测试中使用逻辑表名（posts / categories / comments）。

    Yields:
        RecordingExecutor 实例
    """
    db = RecordingExecutor(':memory:', SqliteConnectorOptions(table_prefix='wp_'))
    db.execute_script(SCHEMA)
    yield db
    db.close()


@pytest.fixture
def seed(executor: RecordingExecutor) -> Callable[[str, Sequence[Sequence[Any]]], None]:
    """
    提供批量写入测试数据的函数（不经过构建器）

    写入后清空语句记录，测试只统计自身发出的语句。
    """
    def _seed(sql: str, rows: Sequence[Sequence[Any]]) -> None:
        for params in rows:
            outcome = executor.execute_write(sql, params)
            assert outcome.success, sql
        executor.reset()

    return _seed
