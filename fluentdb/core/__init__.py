"""
fluentdb 核心模块

包含 JSON 列编解码、行物化、关联规格和关联预取
"""

from .codec import JsonColumnCodec, EMPTY_OBJECT
from .materializer import materialize, materialize_rows
from .relations import RelationSpec, RelationType, RelationMode
from .prefetch import prefetch

__all__ = [
    'JsonColumnCodec',
    'EMPTY_OBJECT',
    'materialize',
    'materialize_rows',
    'RelationSpec',
    'RelationType',
    'RelationMode',
    'prefetch',
]
