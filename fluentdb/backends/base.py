"""
fluentdb 执行器抽象基类

执行器是构建器与实际存储之间唯一的接口：执行参数化语句并返回行。
构建器本身不持有全局连接，执行器在构造时显式注入。
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, NamedTuple, Optional, Sequence


Row = Dict[str, Any]


class WriteOutcome(NamedTuple):
    """写操作结果"""
    success: bool
    affected_identifier: Optional[Any] = None
    rowcount: int = 0


class Executor(ABC):
    """
    执行器抽象基类

    子类需要实现：
    - execute_select: 执行查询，返回行字典列表
    - execute_write: 执行 INSERT/UPDATE/DELETE，存储拒绝时返回 success=False
    - last_insert_identifier: 同一连接上最近一次插入生成的主键
    """

    def __init__(self, table_prefix: str = '') -> None:
        self.table_prefix = table_prefix

    @abstractmethod
    def execute_select(self, sql: str, params: Sequence[Any] = ()) -> List[Row]:
        """执行查询语句"""
        pass

    @abstractmethod
    def execute_write(self, sql: str, params: Sequence[Any] = ()) -> WriteOutcome:
        """执行写语句"""
        pass

    @abstractmethod
    def last_insert_identifier(self) -> Any:
        """返回最近一次插入生成的主键"""
        pass

    def resolve_table_name(self, name: str) -> str:
        """
        应用表名前缀

        已带前缀的表名原样返回，保证前缀只应用一次。

        判断依据是名称是否以前缀开头：前缀为 'bb' 时，逻辑表名
        'bbcodes' 会被视为已带前缀而不再添加。这类表请直接传入完整表名
        （'bbbbcodes'）。
        """
        if not self.table_prefix or name.startswith(self.table_prefix):
            return name
        return f"{self.table_prefix}{name}"

    def close(self) -> None:
        """释放资源"""
        pass

    def __enter__(self) -> 'Executor':
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
