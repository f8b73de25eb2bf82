"""
fluentdb 执行器模块

提供执行器接口和 SQLite 实现
"""

from .base import Executor, WriteOutcome, Row
from .backend_sqlite import SqliteExecutor

__all__ = [
    'Executor',
    'WriteOutcome',
    'Row',
    'SqliteExecutor',
]
