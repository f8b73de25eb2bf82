"""
fluentdb - 轻量级链式查询构建器

在单个关系型存储之上提供链式查询、JSON 列编解码和批量关联预加载。

    from fluentdb import SqliteExecutor, table

    executor = SqliteExecutor(':memory:')
    result = table(executor, 'posts').insert({'title': 'Hello', 'data': {'tags': ['a']}})
    if result.success:
        post = table(executor, 'posts').where_id(result.id).first_json()
"""

# query 必须先于 core 导入（core.relations 依赖 query.compiler）
from .query import (
    QueryBuilder, QuerySpec, OperationResult, table,
    Condition, Operator, Connector,
    QueryCompiler, CompiledQuery, compile_conditions,
)
from .core import (
    JsonColumnCodec, RelationSpec, RelationType, RelationMode,
    materialize, prefetch,
)
from .backends import Executor, WriteOutcome, SqliteExecutor
from .common.options import BuilderOptions, SqliteConnectorOptions
from .common.exceptions import (
    FluentDBException,
    ConfigurationError,
    RelationConfigError,
    InvalidIdentifierError,
    SerializationError,
    QueryError,
    DatabaseConnectionError,
)

__version__ = '0.1.0'

__all__ = [
    # Builder
    'QueryBuilder',
    'QuerySpec',
    'OperationResult',
    'table',
    # Conditions & compiler
    'Condition',
    'Operator',
    'Connector',
    'QueryCompiler',
    'CompiledQuery',
    'compile_conditions',
    # Core
    'JsonColumnCodec',
    'RelationSpec',
    'RelationType',
    'RelationMode',
    'materialize',
    'prefetch',
    # Executors
    'Executor',
    'WriteOutcome',
    'SqliteExecutor',
    # Options
    'BuilderOptions',
    'SqliteConnectorOptions',
    # Exceptions
    'FluentDBException',
    'ConfigurationError',
    'RelationConfigError',
    'InvalidIdentifierError',
    'SerializationError',
    'QueryError',
    'DatabaseConnectionError',
]
