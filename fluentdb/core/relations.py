"""
fluentdb 关联关系定义

RelationSpec 有两种模式：

1. relation 模式（按键关联）：
    {'table': 'categories', 'type': 'one',
     'local_key': 'cat_id', 'foreign_key': 'id'}

2. query 模式（独立过滤查询，结果附加到每一行）：
    {'mode': 'query', 'table': 'settings', 'type': 'many',
     'where': {'scope': 'global'}}
    {'mode': 'query', 'table': 'blocks', 'type': 'many',
     'where': [('status', '=', 'published'),
               ('id', 'IN', [1, 2, 3]),
               ('data', 'JSON_CONTAINS', {'tag': 'hero'})]}

规格在 with_() 配置时校验，错误立即抛出 RelationConfigError。
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from ..common.exceptions import ConfigurationError, InvalidIdentifierError, RelationConfigError
from ..query.compiler import normalize_direction
from ..query.conditions import check_identifier


class RelationType(str, Enum):
    """关联结果形态：单行或列表"""
    ONE = 'one'
    MANY = 'many'


class RelationMode(str, Enum):
    """关联解析策略"""
    RELATION = 'relation'
    QUERY = 'query'


# query 模式 where 三元组允许的运算符
QUERY_OPERATORS = ('=', 'IN', 'JSON_CONTAINS')

WhereTriple = Tuple[str, str, Any]


@dataclass(frozen=True)
class RelationSpec:
    """
    关联关系规格

    Attributes:
        name: 附加到基础行上的字段名
        table: 关联表名（逻辑名，前缀由执行器解析）
        type: one / many
        columns: 选择的列
        mode: relation / query
        local_key: 基础行上的列（relation 模式）
        foreign_key: 关联行上的列（relation 模式）
        where: 过滤条件三元组（query 模式）
        order_by: (列名, 方向)
        limit: 行数限制（query 模式）
    """
    name: str
    table: str
    type: RelationType
    columns: Tuple[str, ...] = ('*',)
    mode: RelationMode = RelationMode.RELATION
    local_key: Optional[str] = None
    foreign_key: Optional[str] = None
    where: Tuple[WhereTriple, ...] = ()
    order_by: Optional[Tuple[str, str]] = None
    limit: Optional[int] = None

    @property
    def is_many(self) -> bool:
        return self.type is RelationType.MANY

    def empty_value(self) -> Any:
        """没有匹配时附加的值"""
        return [] if self.is_many else None

    @classmethod
    def from_mapping(cls, name: str, spec: Mapping[str, Any]) -> 'RelationSpec':
        """
        从字典配置创建规格

        Raises:
            RelationConfigError: 缺少必填键、类型或模式非法
        """
        if not isinstance(name, str) or not name:
            raise RelationConfigError(None, "relation name must be a non-empty string")
        if not isinstance(spec, Mapping):
            raise RelationConfigError(name, f"spec must be a mapping, got {type(spec).__name__}")

        try:
            return cls(
                name=name,
                table=_required(name, spec, 'table'),
                type=_parse_enum(name, RelationType, _required(name, spec, 'type'), 'type'),
                columns=_parse_columns(name, spec.get('columns', '*')),
                mode=_parse_enum(name, RelationMode, spec.get('mode', 'relation'), 'mode'),
                local_key=spec.get('local_key'),
                foreign_key=spec.get('foreign_key'),
                where=_parse_where(name, spec.get('where', ())),
                order_by=_parse_order(name, spec.get('order_by')),
                limit=spec.get('limit'),
            ).validate()
        except RelationConfigError:
            raise
        except ConfigurationError as e:
            raise RelationConfigError(name, str(e)) from e

    def validate(self) -> 'RelationSpec':
        """校验规格的结构完整性，返回自身"""
        if not isinstance(self.type, RelationType):
            raise RelationConfigError(self.name, f"invalid type {self.type!r}, expected one, many")
        if not isinstance(self.mode, RelationMode):
            raise RelationConfigError(self.name, f"invalid mode {self.mode!r}, expected relation, query")
        try:
            check_identifier(self.name)
            check_identifier(self.table)
        except InvalidIdentifierError as e:
            raise RelationConfigError(self.name, str(e)) from e

        if self.mode is RelationMode.RELATION:
            for key in ('local_key', 'foreign_key'):
                value = getattr(self, key)
                if not value:
                    raise RelationConfigError(self.name, f"missing required key '{key}'")
                try:
                    check_identifier(value)
                except InvalidIdentifierError as e:
                    raise RelationConfigError(self.name, str(e)) from e
            if self.where:
                raise RelationConfigError(self.name, "'where' is only valid in query mode")
            if self.limit is not None:
                raise RelationConfigError(self.name, "'limit' is only valid in query mode")
        else:
            if self.local_key or self.foreign_key:
                raise RelationConfigError(
                    self.name, "'local_key'/'foreign_key' are only valid in relation mode"
                )
            if self.limit is not None and (
                    isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit < 0):
                raise RelationConfigError(self.name, f"invalid limit {self.limit!r}")
        return self

    def select_columns(self) -> Tuple[str, ...]:
        """relation 模式下保证外键在选择列中，用于分组"""
        if self.mode is RelationMode.RELATION and '*' not in self.columns \
                and self.foreign_key not in self.columns:
            return self.columns + (self.foreign_key,)  # type: ignore[operator]
        return self.columns


def _required(name: str, spec: Mapping[str, Any], key: str) -> Any:
    value = spec.get(key)
    if value is None or value == '':
        raise RelationConfigError(name, f"missing required key '{key}'")
    return value


def _parse_enum(name: str, enum_cls: Any, value: Any, key: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ', '.join(member.value for member in enum_cls)
        raise RelationConfigError(name, f"invalid {key} {value!r}, expected one of: {allowed}")


def _parse_columns(name: str, columns: Union[str, Sequence[str]]) -> Tuple[str, ...]:
    if isinstance(columns, str):
        columns = [part.strip() for part in columns.split(',')]
    parsed = tuple(columns)
    if not parsed:
        raise RelationConfigError(name, "columns must not be empty")
    for column in parsed:
        if column != '*':
            check_identifier(column)
    return parsed


def _parse_where(name: str, where: Any) -> Tuple[WhereTriple, ...]:
    """把 {列: 值} 或 [(列, 运算符, 值)] 统一为三元组"""
    if not where:
        return ()

    triples: List[WhereTriple] = []
    if isinstance(where, Mapping):
        for column, value in where.items():
            if isinstance(value, (list, tuple, set, frozenset)):
                triples.append((column, 'IN', list(value)))
            else:
                triples.append((column, '=', value))
    elif isinstance(where, (list, tuple)):
        for item in where:
            if not isinstance(item, (list, tuple)) or len(item) != 3:
                raise RelationConfigError(
                    name, f"where entries must be (column, operator, value), got {item!r}"
                )
            column, operator, value = item
            operator = str(operator).upper()
            if operator not in QUERY_OPERATORS:
                raise RelationConfigError(
                    name, f"unsupported where operator {item[1]!r}, "
                          f"expected one of: {', '.join(QUERY_OPERATORS)}"
                )
            if operator == 'IN' and (
                    isinstance(value, (str, bytes, Mapping)) or not hasattr(value, '__iter__')):
                raise RelationConfigError(name, f"IN on '{column}' requires a sequence of values")
            triples.append((column, operator, list(value) if operator == 'IN' else value))
    else:
        raise RelationConfigError(name, f"where must be a mapping or a list, got {type(where).__name__}")

    for column, _, _ in triples:
        check_identifier(column)
    return tuple(triples)


def _parse_order(name: str, order_by: Any) -> Optional[Tuple[str, str]]:
    if order_by is None:
        return None
    if isinstance(order_by, str):
        column, direction = order_by, 'ASC'
    elif isinstance(order_by, (list, tuple)) and len(order_by) == 2:
        column, direction = order_by
    else:
        raise RelationConfigError(name, f"invalid order_by {order_by!r}")
    return check_identifier(column), normalize_direction(direction)
