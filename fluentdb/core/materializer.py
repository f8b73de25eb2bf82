"""
fluentdb 行物化

对基础行应用 JSON 列解码，并递归应用到 prefetch 附加的关联行上。
关联字段本身（容器）不做解码。
"""

from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple, Union, TYPE_CHECKING

from .codec import JsonColumnCodec

if TYPE_CHECKING:
    from .relations import RelationSpec


def materialize(
    row: Mapping[str, Any],
    columns: Sequence[str],
    relations: Iterable['RelationSpec'],
    codec: JsonColumnCodec
) -> Dict[str, Any]:
    """
    解码单行及其关联数据

    Args:
        row: 基础行
        columns: 要解码的 JSON 列
        relations: 已附加到行上的关联规格
        codec: 编解码器

    Returns:
        新的行字典（不修改输入）
    """
    result = codec.decode_row(row, columns)

    for spec in relations:
        if spec.name not in result:
            continue
        nested = result[spec.name]
        if spec.is_many:
            result[spec.name] = [
                codec.decode_row(item, columns) for item in (nested or [])
            ]
        elif nested is not None:
            result[spec.name] = codec.decode_row(nested, columns)

    return result


def materialize_rows(
    rows: Iterable[Mapping[str, Any]],
    columns: Sequence[str],
    relations: Sequence['RelationSpec'],
    codec: JsonColumnCodec
) -> List[Dict[str, Any]]:
    return [materialize(row, columns, relations, codec) for row in rows]


def as_columns(fields: Union[str, Iterable[str]]) -> Tuple[str, ...]:
    """'data' 或 ['data', 'meta'] 统一为元组"""
    if isinstance(fields, str):
        return (fields,)
    return tuple(fields)
