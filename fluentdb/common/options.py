"""
fluentdb 配置选项 dataclass 定义

该模块定义了构建器和执行器的配置选项，替代散落的 **kwargs 参数。
"""
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(slots=True)
class BuilderOptions:
    """查询构建器配置选项"""
    json_columns: Tuple[str, ...] = ('data',)  # 按 JSON 编解码的列
    primary_key: str = 'id'  # 主键列名
    timestamp_column: Optional[str] = 'updated_at'  # 写入时自动填充的时间戳列，None 表示不填充
    timestamp_format: str = '%Y-%m-%d %H:%M:%S'  # 时间戳格式（与 MySQL DATETIME 一致）
    handle_column: str = 'handle'  # upsert_handle 使用的匹配列
    json_impl: Optional[str] = None  # 指定JSON库名：'orjson', 'ujson', 'json' 等


@dataclass(slots=True)
class SqliteConnectorOptions:
    """SQLite 执行器配置选项"""
    check_same_thread: bool = True  # 检查同一线程
    timeout: Optional[float] = None  # 连接超时时间
    isolation_level: Optional[str] = None  # 事务隔离级别（None 为自动提交）
    table_prefix: str = ''  # 表名前缀，只应用一次


def get_default_builder_options() -> BuilderOptions:
    """返回默认的构建器选项"""
    return BuilderOptions()
