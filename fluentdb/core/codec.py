"""
fluentdb JSON 列编解码

写入路径：将结构化值（dict/list）序列化为规范的 JSON 字符串；
读取路径：尝试把字符串解码为结构化值，解码失败时保留原字符串。

JSON 库可通过 impl 指定（'json' / 'orjson' / 'ujson'），默认使用标准库。
"""

import importlib
import json
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

from ..common.exceptions import ConfigurationError, SerializationError

# 规范的空对象字符串
EMPTY_OBJECT = '{}'

SUPPORTED_IMPLS = ('json', 'orjson', 'ujson')


def _load_impl(name: str) -> Tuple[Callable[[Any], str], Callable[[Any], Any]]:
    """
    加载指定 JSON 库，返回 (dumps, loads)

    dumps 统一返回紧凑格式的 str。
    """
    if name not in SUPPORTED_IMPLS:
        raise ConfigurationError(
            f"Unknown JSON implementation '{name}'. "
            f"Supported: {', '.join(SUPPORTED_IMPLS)}"
        )
    if name == 'json':
        return (
            lambda value: json.dumps(value, ensure_ascii=False, separators=(',', ':')),
            json.loads,
        )

    try:
        module = importlib.import_module(name)
    except ImportError as e:
        raise ConfigurationError(
            f"JSON implementation '{name}' is not installed. "
            f"Install it with: pip install fluentdb[{name}]"
        ) from e

    if name == 'orjson':
        # orjson.dumps 返回 bytes
        return (lambda value: module.dumps(value).decode('utf-8'), module.loads)
    return (lambda value: module.dumps(value, ensure_ascii=False), module.loads)


class JsonColumnCodec:
    """
    JSON 列编解码器

    Example:
        codec = JsonColumnCodec()
        codec.normalize({'data': {'a': 1}}, ['data'])   # {'data': '{"a":1}'}
        codec.decode_row({'data': '{"a":1}'}, ['data'])  # {'data': {'a': 1}}
    """

    def __init__(self, impl: Optional[str] = None) -> None:
        self.impl_name: str = impl or 'json'
        self._dumps, self._loads = _load_impl(self.impl_name)

    def encode(self, value: Any) -> str:
        return self._dumps(value)

    def decode(self, text: Any) -> Any:
        """解码 JSON 文本，失败时抛出 ValueError"""
        return self._loads(text)

    def normalize(
        self,
        row: Mapping[str, Any],
        columns: Iterable[str],
        inserting: bool = False
    ) -> Dict[str, Any]:
        """
        写入前规范化 JSON 列

        - dict/list：序列化为 JSON 字符串
        - 空值或非字符串：规范化为 '{}'
        - 非空字符串：视为已编码的存储形式，原样保留
        - 缺失的列：保持缺失；inserting=True 时补为 '{}'

        Args:
            row: 待写入的数据
            columns: JSON 列名
            inserting: 是否为插入操作

        Returns:
            新的字典（不修改输入）

        Raises:
            SerializationError: 结构化值无法序列化
        """
        result = dict(row)
        for column in columns:
            if column not in result:
                if inserting:
                    result[column] = EMPTY_OBJECT
                continue

            value = result[column]
            if isinstance(value, (dict, list)):
                try:
                    result[column] = self.encode(value)
                except (TypeError, ValueError) as e:
                    raise SerializationError(column, str(e)) from e
            elif not isinstance(value, str) or not value.strip():
                result[column] = EMPTY_OBJECT
        return result

    def decode_row(self, row: Mapping[str, Any], columns: Iterable[str]) -> Dict[str, Any]:
        """
        读取后解码 JSON 列

        字符串值解码成功则替换；内容损坏时保留原字符串，不抛出异常。
        其它写入方可能在同一列中存放非 JSON 文本。
        """
        result = dict(row)
        for column in columns:
            value = result.get(column)
            if not isinstance(value, str):
                continue
            try:
                result[column] = self.decode(value)
            except ValueError:
                continue
        return result
