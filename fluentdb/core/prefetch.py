"""
fluentdb 关联预取

批量加载关联数据，解决逐行查询的 N+1 问题。

两种模式：

1. relation 模式：
    收集所有基础行的 local_key（去重、去 None），执行一次
    `SELECT ... WHERE foreign_key IN (...)`，按外键分组后写回各行。

2. query 模式：
    按规格中的 where 执行一次独立查询，把同一结果附加到每一行。

无论基础行数量多少，每个关联最多发出一次查询。
"""

from typing import Any, Dict, List, Optional, Sequence, TYPE_CHECKING

from .codec import JsonColumnCodec
from .relations import RelationMode, RelationSpec
from ..query.compiler import QueryCompiler
from ..query.conditions import Condition, json_contains

if TYPE_CHECKING:
    from ..backends.base import Executor, Row

def prefetch(
    rows: List['Row'],
    specs: Sequence[RelationSpec],
    executor: 'Executor',
    compiler: Optional[QueryCompiler] = None,
    codec: Optional[JsonColumnCodec] = None
) -> List['Row']:
    """
    为基础行批量加载关联数据

    Args:
        rows: 基础行（原地附加关联字段）
        specs: 关联规格
        executor: 执行器
        compiler: 语句编译器
        codec: 编码 JSON_CONTAINS 候选值使用的编解码器

    Returns:
        同一行列表
    """
    if not rows or not specs:
        return rows

    compiler = compiler or QueryCompiler()
    codec = codec or JsonColumnCodec()

    for spec in specs:
        if spec.mode is RelationMode.QUERY:
            _prefetch_query(rows, spec, executor, compiler, codec)
        else:
            _prefetch_relation(rows, spec, executor, compiler)
    return rows

def _prefetch_relation(
    rows: List['Row'],
    spec: RelationSpec,
    executor: 'Executor',
    compiler: QueryCompiler
) -> None:
    """
    按键批量预取

    Args:
        rows: 基础行
        spec: relation 模式规格
        executor: 执行器
        compiler: 语句编译器
    """
    # 1. 收集 local_key 值（去重去 None，保持首次出现顺序）
    key_values: List[Any] = list(dict.fromkeys(
        row.get(spec.local_key) for row in rows if row.get(spec.local_key) is not None
    ))

    if not key_values:
        for row in rows:
            row[spec.name] = spec.empty_value()
        return

    # 2. 单次批量查询
    query = compiler.compile_select(
        executor.resolve_table_name(spec.table),
        spec.select_columns(),
        [Condition.in_(spec.foreign_key, key_values)],
        order_by=spec.order_by,
    )
    records = executor.execute_select(query.sql, query.params)

    # 3. 按外键分组
    grouped: Dict[Any, List['Row']] = {}
    for record in records:
        grouped.setdefault(_group_key(record.get(spec.foreign_key)), []).append(record)

    # 4. 写回各行
    for row in rows:
        matches = grouped.get(_group_key(row.get(spec.local_key)), [])
        if spec.is_many:
            row[spec.name] = list(matches)
        else:
            row[spec.name] = matches[0] if matches else None


def _group_key(value: Any) -> Any:
    """
    分组用的键

    IN 查询由存储做类型转换（TEXT '5' 匹配 INTEGER 5），分组时同样
    把整数和字符串统一为字符串，保证查询到的行能写回基础行。
    """
    if isinstance(value, (int, str)) and not isinstance(value, bool):
        return str(value)
    return value

def _prefetch_query(
    rows: List['Row'],
    spec: RelationSpec,
    executor: 'Executor',
    compiler: QueryCompiler,
    codec: JsonColumnCodec
) -> None:
    """独立查询预取：同一结果附加到每一行"""
    conditions: List[Condition] = []
    for column, operator, value in spec.where:
        if operator == 'IN':
            conditions.append(Condition.in_(column, value))
        elif operator == 'JSON_CONTAINS':
            candidate = value if isinstance(value, str) else codec.encode(value)
            conditions.append(json_contains(column, candidate))
        else:
            conditions.append(Condition.eq(column, value))

    query = compiler.compile_select(
        executor.resolve_table_name(spec.table),
        spec.columns,
        conditions,
        order_by=spec.order_by,
        limit=spec.limit,
    )
    records = executor.execute_select(query.sql, query.params)

    for row in rows:
        if spec.is_many:
            row[spec.name] = list(records)
        else:
            row[spec.name] = records[0] if records else None
