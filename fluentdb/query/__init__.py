"""
fluentdb 查询子系统

包含条件模型、SQL 编译器、操作结果和查询构建器
"""

from .conditions import Condition, Operator, Connector
from .compiler import QueryCompiler, CompiledQuery, CompiledClause, compile_conditions
from .result import OperationResult
from .builder import QueryBuilder, QuerySpec, table

__all__ = [
    # Conditions
    'Condition',
    'Operator',
    'Connector',
    # Compiler
    'QueryCompiler',
    'CompiledQuery',
    'CompiledClause',
    'compile_conditions',
    # Result
    'OperationResult',
    # Builder
    'QueryBuilder',
    'QuerySpec',
    'table',
]
