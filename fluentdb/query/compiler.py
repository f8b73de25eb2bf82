"""
fluentdb SQL 编译器

将条件列表编译为 WHERE 片段 + 位置参数列表，并生成完整的
SELECT / INSERT / UPDATE / DELETE 语句。

核心约束：片段中第 i 个 `?` 与 params[i] 一一对应，执行器按位置绑定。
"""

import re
from typing import Any, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from .conditions import Condition, Operator, check_identifier
from ..common.exceptions import ConfigurationError, InvalidIdentifierError

PLACEHOLDER = '?'

# 空 IN 列表编译为恒假条件，避免生成 `IN ()`
NO_MATCH_FRAGMENT = '1 = 0'

_JSON_PATH_KEY = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$')


class CompiledClause(NamedTuple):
    """编译后的 WHERE 片段（不含 WHERE 关键字）"""
    fragment: str
    params: List[Any]


class CompiledQuery(NamedTuple):
    """编译后的完整语句"""
    sql: str
    params: List[Any]


def compile_conditions(conditions: Sequence[Condition]) -> CompiledClause:
    """
    编译条件列表

    Args:
        conditions: 按插入顺序排列的条件

    Returns:
        CompiledClause；空列表返回 ('', [])
    """
    parts: List[str] = []
    params: List[Any] = []

    for index, condition in enumerate(conditions):
        if condition.operator is Operator.RAW:
            fragment = condition.column
            params.extend(condition.value)
        elif condition.operator is Operator.IN:
            values = list(condition.value)
            if values:
                placeholders = ', '.join([PLACEHOLDER] * len(values))
                fragment = f"{condition.column} IN ({placeholders})"
                params.extend(values)
            else:
                fragment = NO_MATCH_FRAGMENT
        else:
            fragment = f"{condition.column} {condition.operator.value} {PLACEHOLDER}"
            params.append(condition.value)

        if index > 0:
            fragment = f"{condition.connector.value} {fragment}"
        parts.append(fragment)

    return CompiledClause(' '.join(parts), params)


def normalize_direction(direction: str) -> str:
    """校验排序方向，返回 'ASC' 或 'DESC'"""
    normalized = str(direction).strip().upper()
    if normalized not in ('ASC', 'DESC'):
        raise ConfigurationError(f"Order direction must be ASC or DESC, got {direction!r}")
    return normalized


class QueryCompiler:
    """
    语句编译器

    标识符在拼接前都会经过校验；所有值都以 `?` 占位符绑定。
    """

    def compile_where(self, conditions: Sequence[Condition]) -> CompiledClause:
        return compile_conditions(conditions)

    def compile_select(
        self,
        table: str,
        columns: Sequence[str] = ('*',),
        conditions: Sequence[Condition] = (),
        order_by: Optional[Tuple[str, str]] = None,
        limit: Optional[int] = None
    ) -> CompiledQuery:
        """
        编译 SELECT 语句

        Args:
            table: 已解析的表名
            columns: 选择的列
            conditions: 条件列表
            order_by: (列名, 方向)
            limit: 行数限制；None 或 0 表示不限制
        """
        sql = f"SELECT {', '.join(columns)} FROM {check_identifier(table)}"
        clause = compile_conditions(conditions)
        if clause.fragment:
            sql += f" WHERE {clause.fragment}"
        if order_by is not None:
            column, direction = order_by
            sql += f" ORDER BY {check_identifier(column)} {normalize_direction(direction)}"
        if limit:
            sql += f" LIMIT {int(limit)}"
        return CompiledQuery(sql, clause.params)

    def compile_insert(self, table: str, data: Mapping[str, Any]) -> CompiledQuery:
        fields = [check_identifier(name) for name in data]
        placeholders = ', '.join([PLACEHOLDER] * len(fields))
        sql = (
            f"INSERT INTO {check_identifier(table)} "
            f"({', '.join(fields)}) VALUES ({placeholders})"
        )
        return CompiledQuery(sql, list(data.values()))

    def compile_update(
        self,
        table: str,
        data: Mapping[str, Any],
        key_column: str,
        key: Any
    ) -> CompiledQuery:
        """按主键编译 UPDATE 语句"""
        assignments = [f"{check_identifier(name)} = {PLACEHOLDER}" for name in data]
        sql = (
            f"UPDATE {check_identifier(table)} SET {', '.join(assignments)} "
            f"WHERE {check_identifier(key_column)} = {PLACEHOLDER}"
        )
        return CompiledQuery(sql, list(data.values()) + [key])

    def compile_delete(self, table: str, conditions: Sequence[Condition]) -> CompiledQuery:
        clause = compile_conditions(conditions)
        sql = f"DELETE FROM {check_identifier(table)}"
        if clause.fragment:
            sql += f" WHERE {clause.fragment}"
        return CompiledQuery(sql, clause.params)

    def compile_json_extract(
        self,
        table: str,
        column: str,
        path: str,
        conditions: Sequence[Condition] = ()
    ) -> CompiledQuery:
        """
        编译 JSON_EXTRACT 查询

        路径只允许点分隔的标识符（如 'settings.theme'），因为它被写入 SQL 字符串字面量。
        """
        if not isinstance(path, str) or not _JSON_PATH_KEY.match(path):
            raise InvalidIdentifierError(path)
        sql = (
            f"SELECT JSON_EXTRACT({check_identifier(column)}, '$.{path}') AS extracted "
            f"FROM {check_identifier(table)}"
        )
        clause = compile_conditions(conditions)
        if clause.fragment:
            sql += f" WHERE {clause.fragment}"
        return CompiledQuery(sql, clause.params)
