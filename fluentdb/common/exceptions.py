"""
fluentdb 异常定义

只有配置阶段的结构性错误会抛出异常；写入失败、前置条件不满足等数据层结果
通过 OperationResult / WriteOutcome 返回。
"""

from typing import Any, Optional


class FluentDBException(Exception):
    """fluentdb 基础异常类"""


class ConfigurationError(FluentDBException):
    """构建器配置异常（在链式配置调用时同步抛出）"""


class RelationConfigError(ConfigurationError):
    """关联关系配置异常"""
    def __init__(self, relation_name: Optional[str], message: str):
        self.relation_name = relation_name
        if relation_name:
            message = f"Relation '{relation_name}': {message}"
        super().__init__(message)


class InvalidIdentifierError(ConfigurationError):
    """不安全的 SQL 标识符"""
    def __init__(self, identifier: Any):
        self.identifier = identifier
        super().__init__(f"Unsafe SQL identifier: {identifier!r}")


class SerializationError(FluentDBException):
    """JSON 列序列化异常"""
    def __init__(self, column: str, reason: str):
        self.column = column
        super().__init__(f"Cannot serialize column '{column}': {reason}")


class QueryError(FluentDBException):
    """查询执行异常"""
    def __init__(self, sql: str, reason: str):
        self.sql = sql
        super().__init__(f"Query failed: {reason} [SQL: {sql}]")


class DatabaseConnectionError(FluentDBException):
    """数据库连接异常"""
