"""
fluentdb 查询构建器

链式配置 + 终结操作：

    posts = (
        table(executor, 'posts')
        .where({'status': 'draft'})
        .or_where({'status': 'archived'})
        .with_('category', {'table': 'categories', 'type': 'one',
                            'local_key': 'cat_id', 'foreign_key': 'id'})
        .order_by('updated_at', 'DESC')
        .get()
    )

配置方法不修改接收者，每次返回新的构建器；终结操作不重置配置，
同一个构建器可以多次执行。

写操作（insert / update / upsert*）返回 OperationResult，并作为该构建器
实例的“最近结果”保存，通过 id() / json() / success() 读取。
"""

import copy
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union, TYPE_CHECKING

from .compiler import QueryCompiler, normalize_direction
from .conditions import (
    Condition, Connector, check_identifier, conditions_from_mapping,
    json_contains, split_equalities,
)
from .result import OperationResult
from ..backends.base import WriteOutcome
from ..common.exceptions import ConfigurationError, RelationConfigError
from ..common.options import BuilderOptions, get_default_builder_options
from ..core.codec import JsonColumnCodec
from ..core.materializer import as_columns, materialize, materialize_rows
from ..core.prefetch import prefetch
from ..core.relations import RelationSpec

if TYPE_CHECKING:
    from ..backends.base import Executor, Row

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuerySpec:
    """构建器的查询配置（不可变）"""
    table: str
    columns: Tuple[str, ...] = ('*',)
    conditions: Tuple[Condition, ...] = ()
    order_by: Optional[Tuple[str, str]] = None
    limit: Optional[int] = None
    relations: Tuple[RelationSpec, ...] = ()


def _check_select_column(column: str) -> str:
    if column == '*':
        return column
    if column.endswith('.*'):
        check_identifier(column[:-2])
        return column
    return check_identifier(column)


class QueryBuilder:
    """
    链式查询构建器

    Args:
        executor: 执行器
        table: 逻辑表名（前缀由执行器解析，只应用一次）
        options: 构建器选项
    """

    def __init__(
        self,
        executor: 'Executor',
        table: str,
        options: Optional[BuilderOptions] = None
    ) -> None:
        self.executor = executor
        self.options = options or get_default_builder_options()
        self.codec = JsonColumnCodec(self.options.json_impl)
        self.compiler = QueryCompiler()
        self.spec = QuerySpec(table=executor.resolve_table_name(check_identifier(table)))
        self._last_result: Optional[OperationResult] = None

    def __repr__(self) -> str:
        return f"QueryBuilder(table={self.spec.table!r}, conditions={len(self.spec.conditions)})"

    # ------------------------------------------------------------------
    # 配置
    # ------------------------------------------------------------------

    def _derive(self, **changes: Any) -> 'QueryBuilder':
        clone = copy.copy(self)
        clone.spec = replace(self.spec, **changes)
        clone._last_result = None
        return clone

    def _plain(self) -> 'QueryBuilder':
        """同一张表上不带任何条件、排序和关联的构建器"""
        return self._derive(columns=('*',), conditions=(), order_by=None, limit=None, relations=())

    def _append(self, conditions: Sequence[Condition]) -> 'QueryBuilder':
        return self._derive(conditions=self.spec.conditions + tuple(conditions))

    def select(self, columns: Union[str, Sequence[str]]) -> 'QueryBuilder':
        """
        设置选择的列

        Args:
            columns: 'id, name' 或 ['id', 'name']
        """
        if isinstance(columns, str):
            columns = [part.strip() for part in columns.split(',')]
        parsed = tuple(_check_select_column(column) for column in columns)
        if not parsed:
            raise ConfigurationError("select() requires at least one column")
        return self._derive(columns=parsed)

    def where(self, key: Union[str, Mapping[str, Any]], value: Any = None) -> 'QueryBuilder':
        """
        添加 AND 条件

        where('status', 'draft') / where({'status': 'draft', 'owner': 7})；
        值为列表时生成 IN 条件。
        """
        mapping = key if isinstance(key, Mapping) else {key: value}
        return self._append(conditions_from_mapping(mapping, Connector.AND))

    def or_where(self, key: Union[str, Mapping[str, Any]], value: Any = None) -> 'QueryBuilder':
        """
        添加 OR 条件

        映射中只有第一项以 OR 连接，其余项以 AND 连接。条件不做括号分组，
        status = ? OR status = ? AND owner = ? 按 SQL 优先级解释。
        """
        mapping = key if isinstance(key, Mapping) else {key: value}
        return self._append(conditions_from_mapping(mapping, Connector.OR))

    def where_id(self, identifier: Any) -> 'QueryBuilder':
        return self.where(self.options.primary_key, identifier)

    def where_in(self, key: str, values: Sequence[Any]) -> 'QueryBuilder':
        return self._append([Condition.in_(key, values)])

    def or_where_in(self, key: str, values: Sequence[Any]) -> 'QueryBuilder':
        return self._append([Condition.in_(key, values, Connector.OR)])

    def where_raw(self, fragment: str, params: Sequence[Any] = ()) -> 'QueryBuilder':
        """添加原样使用的 SQL 片段，params 按 `?` 顺序绑定"""
        return self._append([Condition.raw(fragment, params)])

    def or_where_raw(self, fragment: str, params: Sequence[Any] = ()) -> 'QueryBuilder':
        return self._append([Condition.raw(fragment, params, Connector.OR)])

    def where_json_contains(self, column: str, value: Any) -> 'QueryBuilder':
        """
        JSON 包含判断

        value 为 dict/list 等结构化值时先编码；字符串视为已编码的 JSON 文本。
        """
        return self._append([json_contains(column, self._json_candidate(value))])

    def or_where_json_contains(self, column: str, value: Any) -> 'QueryBuilder':
        return self._append([json_contains(column, self._json_candidate(value), Connector.OR)])

    def _json_candidate(self, value: Any) -> str:
        return value if isinstance(value, str) else self.codec.encode(value)

    def order_by(self, column: str, direction: str = 'ASC') -> 'QueryBuilder':
        return self._derive(order_by=(check_identifier(column), normalize_direction(direction)))

    def limit(self, limit: Optional[int]) -> 'QueryBuilder':
        """设置行数限制；0 与 None 相同，表示不限制"""
        if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit < 0):
            raise ConfigurationError(f"limit must be a non-negative int, got {limit!r}")
        return self._derive(limit=limit)

    def with_(
        self,
        name: Union[str, RelationSpec],
        spec: Optional[Mapping[str, Any]] = None
    ) -> 'QueryBuilder':
        """
        配置预加载关联

        Args:
            name: 关联名，或直接传入 RelationSpec
            spec: 关联配置字典（见 core.relations）

        Raises:
            RelationConfigError: 配置不合法或关联名重复
        """
        if isinstance(name, RelationSpec):
            relation = name.validate()
        else:
            relation = RelationSpec.from_mapping(name, spec)  # type: ignore[arg-type]

        if any(existing.name == relation.name for existing in self.spec.relations):
            raise RelationConfigError(relation.name, "relation name is already configured")
        return self._derive(relations=self.spec.relations + (relation,))

    def to_sql(self) -> Tuple[str, List[Any]]:
        """返回 get() 将执行的 SQL 和参数"""
        query = self.compiler.compile_select(
            self.spec.table, self.spec.columns, self.spec.conditions,
            self.spec.order_by, self.spec.limit,
        )
        return query.sql, query.params

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    def get(self) -> List['Row']:
        """执行查询并预加载关联，返回原始行（JSON 列未解码）"""
        sql, params = self.to_sql()
        rows = self.executor.execute_select(sql, params)
        return prefetch(rows, self.spec.relations, self.executor, self.compiler, self.codec)

    def first(self) -> Optional['Row']:
        rows = self._derive(limit=1).get()
        return rows[0] if rows else None

    def get_json(self, fields: Optional[Union[str, Sequence[str]]] = None) -> List[Dict[str, Any]]:
        """get() 并解码 JSON 列（包括关联行）"""
        return materialize_rows(self.get(), self._json_fields(fields), self.spec.relations, self.codec)

    def first_json(self, fields: Optional[Union[str, Sequence[str]]] = None) -> Optional[Dict[str, Any]]:
        row = self.first()
        if row is None:
            return None
        return materialize(row, self._json_fields(fields), self.spec.relations, self.codec)

    def extract_json_field(
        self,
        field: str,
        where: Optional[Mapping[str, Any]] = None,
        column: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        提取每行 JSON 列中的某个字段，并合并所有对象结果

        Args:
            field: JSON 路径（如 'settings' 或 'settings.colors'）
            where: 追加的等值条件
            column: JSON 列，默认为第一个配置的 JSON 列

        Returns:
            合并后的字典；只合并对象结果，数组和标量结果被忽略
        """
        builder = self.where(where) if where else self
        if column is None:
            if not self.options.json_columns:
                raise ConfigurationError("extract_json_field() requires a JSON column")
            column = self.options.json_columns[0]

        query = self.compiler.compile_json_extract(
            self.spec.table, column, field, builder.spec.conditions
        )
        merged: Dict[str, Any] = {}
        for row in self.executor.execute_select(query.sql, query.params):
            value = row.get('extracted')
            if isinstance(value, str):
                try:
                    value = self.codec.decode(value)
                except ValueError:
                    continue
            if isinstance(value, dict):
                merged.update(value)
        return merged

    def _json_fields(self, fields: Optional[Union[str, Sequence[str]]]) -> Tuple[str, ...]:
        return self.options.json_columns if fields is None else as_columns(fields)

    # ------------------------------------------------------------------
    # 写操作
    # ------------------------------------------------------------------

    def _prepare_write(self, data: Mapping[str, Any], inserting: bool = False) -> Dict[str, Any]:
        """JSON 列规范化 + 时间戳填充"""
        prepared = self.codec.normalize(data, self.options.json_columns, inserting=inserting)
        timestamp_column = self.options.timestamp_column
        if timestamp_column and prepared.get(timestamp_column) is None:
            prepared[timestamp_column] = datetime.now().strftime(self.options.timestamp_format)
        return prepared

    def _result(self, row: Optional[Dict[str, Any]], reread: bool = True) -> OperationResult:
        if row is None:
            return OperationResult.failed()
        return OperationResult(
            row,
            primary_key=self.options.primary_key,
            json_columns=self.options.json_columns,
            relations=self.spec.relations,
            codec=self.codec,
            reread=reread,
        )

    def _remember(self, result: OperationResult) -> OperationResult:
        self._last_result = result
        return result

    def _reread(self, identifier: Any) -> OperationResult:
        """按主键重新读取行（保留关联配置）"""
        if identifier is None:
            return OperationResult.failed()
        row = self._derive(
            columns=('*',),
            conditions=(Condition.eq(self.options.primary_key, identifier),),
            order_by=None,
            limit=None,
        ).first()
        return self._result(row)

    def _write_insert(self, prepared: Dict[str, Any]) -> Tuple[bool, Any]:
        """执行 INSERT，返回 (是否成功, 主键)"""
        query = self.compiler.compile_insert(self.spec.table, prepared)
        outcome = self.executor.execute_write(query.sql, query.params)
        if not outcome.success:
            return False, None

        identifier = prepared.get(self.options.primary_key)
        if identifier is None:
            identifier = outcome.affected_identifier
        if identifier is None:
            identifier = self.executor.last_insert_identifier()
        return True, identifier

    def _write_update(self, merged: Dict[str, Any], identifier: Any) -> bool:
        query = self.compiler.compile_update(
            self.spec.table, merged, self.options.primary_key, identifier
        )
        return self.executor.execute_write(query.sql, query.params).success

    def insert(self, data: Mapping[str, Any]) -> OperationResult:
        """
        插入一行

        未提供的 JSON 列补为 '{}'，未提供的时间戳列自动填充。
        成功后按生成的主键重新读取；存储拒绝时结果为失败（不抛出异常）。
        """
        prepared = self._prepare_write(data, inserting=True)
        ok, identifier = self._write_insert(prepared)
        if not ok:
            return self._remember(OperationResult.failed())
        return self._remember(self._reread(identifier))

    def update(self, data: Mapping[str, Any]) -> OperationResult:
        """
        更新条件匹配的第一行

        没有任何 WHERE 条件时拒绝执行。已有行为基础，data 中的字段覆盖；
        主键永不改写。成功后按主键重新读取。
        """
        if not self.spec.conditions:
            logger.debug("Refusing update on '%s' without conditions", self.spec.table)
            return self._remember(OperationResult.failed())

        primary_key = self.options.primary_key
        existing = self._derive(columns=('*',), relations=()).first()
        if existing is None or existing.get(primary_key) is None:
            return self._remember(OperationResult.failed())

        identifier = existing[primary_key]
        merged = dict(existing)
        merged.update(self._prepare_write(data))
        merged.pop(primary_key, None)

        if not self._write_update(merged, identifier):
            return self._remember(OperationResult.failed())
        return self._remember(self._reread(identifier))

    def delete(self) -> WriteOutcome:
        """按配置的条件删除；没有条件时不执行，不影响最近结果"""
        if not self.spec.conditions:
            logger.debug("Refusing delete on '%s' without conditions", self.spec.table)
            return WriteOutcome(False)
        query = self.compiler.compile_delete(self.spec.table, self.spec.conditions)
        return self.executor.execute_write(query.sql, query.params)

    def delete_by_id(self, identifier: Any) -> WriteOutcome:
        return self._plain().where_id(identifier).delete()

    def upsert(self, data: Mapping[str, Any], unique: Mapping[str, Any]) -> OperationResult:
        """
        按唯一键插入或更新

        Args:
            data: 要写入的字段
            unique: 唯一键 {列: 值}（等值匹配）
        """
        return self._upsert(data, unique, dict(unique))

    def upsert_where(self, data: Mapping[str, Any], where: Mapping[str, Any]) -> OperationResult:
        """
        按任意条件映射插入或更新

        插入时只合并 where 中的等值项（列表值表示 IN，不写入）。
        """
        scalars, _ = split_equalities(where)
        return self._upsert(data, where, scalars)

    def _upsert(
        self,
        data: Mapping[str, Any],
        match: Mapping[str, Any],
        insert_extra: Mapping[str, Any]
    ) -> OperationResult:
        primary_key = self.options.primary_key
        existing = self._plain().where(match).first()

        target = self._derive(columns=('*',), conditions=(), order_by=None, limit=None)
        if existing is not None:
            result = target.where(primary_key, existing[primary_key]).update(data)
        else:
            result = target.insert({**data, **insert_extra})
        return self._remember(result)

    def upsert_handle(self, data: Mapping[str, Any], handle: Any) -> OperationResult:
        """
        按 handle 列插入或更新

        匹配最近更新的一行并原地合并更新；没有匹配时插入。
        与其它写操作不同，这里不做写后重新读取：结果行是合并后的数据
        （或插入的数据）加上主键。
        """
        primary_key = self.options.primary_key
        handle_column = self.options.handle_column
        order_column = self.options.timestamp_column or primary_key

        record = self._plain().where(handle_column, handle).order_by(order_column, 'DESC').first()

        if record is not None:
            identifier = record[primary_key]
            merged = dict(record)
            merged.update(self._prepare_write(data))
            merged.pop(primary_key, None)
            if not self._write_update(merged, identifier):
                return self._remember(OperationResult.failed())
            merged[primary_key] = identifier
            return self._remember(self._result(merged, reread=False))

        prepared = self._prepare_write({**data, handle_column: handle}, inserting=True)
        ok, identifier = self._write_insert(prepared)
        if not ok:
            return self._remember(OperationResult.failed())
        prepared[primary_key] = identifier
        return self._remember(self._result(prepared, reread=False))

    # ------------------------------------------------------------------
    # 最近结果
    # ------------------------------------------------------------------

    @property
    def last_result(self) -> Optional[OperationResult]:
        return self._last_result

    def id(self) -> Optional[Any]:
        return self._last_result.id if self._last_result is not None else None

    def json(self, fields: Optional[Union[str, Sequence[str]]] = None) -> Optional[Dict[str, Any]]:
        if self._last_result is None:
            return None
        return self._last_result.json(fields)

    def success(self) -> bool:
        return self._last_result is not None and self._last_result.success


def table(
    executor: 'Executor',
    name: str,
    options: Optional[BuilderOptions] = None
) -> QueryBuilder:
    """创建查询构建器"""
    return QueryBuilder(executor, name, options)
