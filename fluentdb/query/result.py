"""
fluentdb 操作结果

每次 insert / update / upsert* 调用都返回一个 OperationResult，
构建器同时保存最近一次的结果，供 id() / json() / success() 读取。
"""

from typing import Any, Dict, Optional, Sequence, Tuple, TYPE_CHECKING

from ..core.codec import JsonColumnCodec
from ..core.materializer import as_columns, materialize

if TYPE_CHECKING:
    from ..core.relations import RelationSpec


class OperationResult:
    """
    写操作结果

    Attributes:
        row: 写入后重新读取的行；失败时为 None
        reread: 行是否来自写后重新读取（upsert_handle 为 False）
    """

    __slots__ = ('row', 'reread', '_primary_key', '_json_columns', '_relations', '_codec')

    def __init__(
        self,
        row: Optional[Dict[str, Any]],
        primary_key: str = 'id',
        json_columns: Sequence[str] = ('data',),
        relations: Sequence['RelationSpec'] = (),
        codec: Optional[JsonColumnCodec] = None,
        reread: bool = True
    ) -> None:
        self.row = row
        self.reread = reread
        self._primary_key = primary_key
        self._json_columns: Tuple[str, ...] = tuple(json_columns)
        self._relations = tuple(relations)
        self._codec = codec or JsonColumnCodec()

    @classmethod
    def failed(cls) -> 'OperationResult':
        return cls(None)

    @property
    def success(self) -> bool:
        return self.row is not None

    @property
    def id(self) -> Optional[Any]:
        if self.row is None:
            return None
        return self.row.get(self._primary_key)

    def json(self, fields: Optional[Sequence[str]] = None) -> Optional[Dict[str, Any]]:
        """返回 JSON 列解码后的行（包括关联行）"""
        if self.row is None:
            return None
        columns = self._json_columns if fields is None else as_columns(fields)
        return materialize(self.row, columns, self._relations, self._codec)

    def __bool__(self) -> bool:
        return self.success

    def __repr__(self) -> str:
        if self.row is None:
            return "OperationResult(failed)"
        return f"OperationResult(id={self.id!r})"
