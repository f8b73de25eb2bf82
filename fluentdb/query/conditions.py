"""
fluentdb 查询条件

条件按插入顺序保存并按同一顺序编译，不做任何括号分组：
    status = ? OR status = ? AND owner = ?
的布尔含义由 SQL 的运算符优先级（AND 高于 OR）决定。
"""

import re
from enum import Enum
from typing import Any, Iterable, List, Mapping, NamedTuple, Sequence, Tuple

from ..common.exceptions import ConfigurationError, InvalidIdentifierError


# 允许 column 或 table.column 形式
_SAFE_IDENTIFIER = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$')


def check_identifier(identifier: Any) -> str:
    """
    校验将被拼接进 SQL 的标识符

    Args:
        identifier: 列名或表名

    Returns:
        原标识符

    Raises:
        InvalidIdentifierError: 标识符不安全
    """
    if not isinstance(identifier, str) or not _SAFE_IDENTIFIER.match(identifier):
        raise InvalidIdentifierError(identifier)
    return identifier


class Operator(str, Enum):
    """条件运算符"""
    EQ = '='
    IN = 'IN'
    RAW = 'RAW'


class Connector(str, Enum):
    """条件之间的布尔连接符"""
    AND = 'AND'
    OR = 'OR'


class Condition(NamedTuple):
    """
    单个查询条件

    RAW 条件的 column 字段是原样使用的 SQL 片段，value 为其参数列表。
    """
    column: str
    operator: Operator
    value: Any
    connector: Connector = Connector.AND

    @classmethod
    def eq(cls, column: str, value: Any, connector: Connector = Connector.AND) -> 'Condition':
        return cls(check_identifier(column), Operator.EQ, value, connector)

    @classmethod
    def in_(cls, column: str, values: Iterable[Any], connector: Connector = Connector.AND) -> 'Condition':
        if isinstance(values, (str, bytes)) or isinstance(values, Mapping):
            raise ConfigurationError(
                f"IN condition on '{column}' requires a sequence of values, "
                f"got {type(values).__name__}"
            )
        return cls(check_identifier(column), Operator.IN, list(values), connector)

    @classmethod
    def raw(cls, fragment: str, params: Sequence[Any] = (),
            connector: Connector = Connector.AND) -> 'Condition':
        if not isinstance(fragment, str) or not fragment.strip():
            raise ConfigurationError("Raw condition requires a non-empty SQL fragment")
        placeholders = fragment.count('?')
        params = list(params)
        if placeholders != len(params):
            raise ConfigurationError(
                f"Raw fragment has {placeholders} placeholder(s) "
                f"but {len(params)} parameter(s) were given"
            )
        return cls(fragment, Operator.RAW, params, connector)


def json_contains(column: str, candidate_json: str,
                  connector: Connector = Connector.AND) -> Condition:
    """
    构造 JSON 包含判断（RAW 条件）

    Args:
        column: JSON 列名
        candidate_json: 已编码的候选 JSON 文本
        connector: 连接符
    """
    check_identifier(column)
    return Condition.raw(f"JSON_CONTAINS({column}, ?)", [candidate_json], connector)


def conditions_from_mapping(
    mapping: Mapping[str, Any],
    connector: Connector = Connector.AND
) -> List[Condition]:
    """
    将 {列: 值} 映射转换为条件列表

    值为 list/tuple/set 时生成 IN 条件，否则生成等值条件。
    只有第一个条件使用传入的 connector，其余均为 AND。
    """
    conditions: List[Condition] = []
    for column, value in mapping.items():
        current = connector if not conditions else Connector.AND
        if isinstance(value, (list, tuple, set, frozenset)):
            conditions.append(Condition.in_(column, value, current))
        else:
            conditions.append(Condition.eq(column, value, current))
    return conditions


def split_equalities(mapping: Mapping[str, Any]) -> Tuple[dict, dict]:
    """把映射拆分为 (等值项, 集合项)"""
    scalars = {}
    collections = {}
    for column, value in mapping.items():
        if isinstance(value, (list, tuple, set, frozenset)):
            collections[column] = value
        else:
            scalars[column] = value
    return scalars, collections
