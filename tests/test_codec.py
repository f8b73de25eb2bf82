"""
JSON 列编解码与行物化测试

覆盖范围：
- encode / decode 往返
- 写入路径规范化（空值、非字符串、缺失列、插入默认值）
- 读取路径容错（损坏内容保留原字符串）
- 关联行递归解码
"""

from typing import Any

import pytest

from fluentdb import JsonColumnCodec, RelationSpec, materialize
from fluentdb.core.codec import EMPTY_OBJECT
from fluentdb.core.materializer import materialize_rows
from fluentdb.common.exceptions import ConfigurationError, SerializationError


class TestJsonColumnCodec:
    """编解码器测试"""

    def setup_method(self) -> None:
        self.codec = JsonColumnCodec()

    @pytest.mark.parametrize('value', [
        {'a': 1, 'b': [1, 2, {'c': None}]},
        [1, 'x', True, 2.5],
        {},
        [],
        {'标题': '中文内容'},
    ])
    def test_round_trip(self, value: Any) -> None:
        """decode(encode(x)) == x"""
        assert self.codec.decode(self.codec.encode(value)) == value

    def test_encode_is_compact(self) -> None:
        """编码为紧凑格式，不转义非 ASCII"""
        assert self.codec.encode({'a': [1, 2]}) == '{"a":[1,2]}'
        assert self.codec.encode({'k': '值'}) == '{"k":"值"}'

    def test_default_impl_is_stdlib(self) -> None:
        assert self.codec.impl_name == 'json'
        assert JsonColumnCodec('json').impl_name == 'json'

    def test_unknown_impl_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            JsonColumnCodec('simplejsonx')


class TestNormalize:
    """写入路径规范化测试"""

    def setup_method(self) -> None:
        self.codec = JsonColumnCodec()

    def test_structured_value_serialized(self) -> None:
        row = self.codec.normalize({'data': {'a': 1}}, ['data'])
        assert row['data'] == '{"a":1}'

    def test_list_value_serialized(self) -> None:
        row = self.codec.normalize({'data': [1, 2]}, ['data'])
        assert row['data'] == '[1,2]'

    @pytest.mark.parametrize('blank', ['', '   ', None, 0, 42, True])
    def test_blank_or_non_string_becomes_empty_object(self, blank: Any) -> None:
        """空值或非字符串规范化为 '{}'"""
        row = self.codec.normalize({'data': blank}, ['data'])
        assert row['data'] == EMPTY_OBJECT

    def test_encoded_string_kept(self) -> None:
        """非空字符串视为已编码形式"""
        row = self.codec.normalize({'data': '{"keep":1}'}, ['data'])
        assert row['data'] == '{"keep":1}'

    def test_absent_column_untouched(self) -> None:
        """非插入时不为缺失列生成值"""
        row = self.codec.normalize({'title': 'x'}, ['data'])
        assert 'data' not in row

    def test_absent_column_defaults_on_insert(self) -> None:
        """插入时缺失列补为 '{}'"""
        row = self.codec.normalize({'title': 'x'}, ['data', 'meta'], inserting=True)
        assert row['data'] == EMPTY_OBJECT
        assert row['meta'] == EMPTY_OBJECT

    def test_input_not_mutated(self) -> None:
        data = {'data': {'a': 1}}
        self.codec.normalize(data, ['data'], inserting=True)
        assert data == {'data': {'a': 1}}

    def test_unserializable_value_raises(self) -> None:
        with pytest.raises(SerializationError) as exc_info:
            self.codec.normalize({'data': {'when': object()}}, ['data'])
        assert exc_info.value.column == 'data'


class TestDecodeRow:
    """读取路径解码测试"""

    def setup_method(self) -> None:
        self.codec = JsonColumnCodec()

    def test_valid_json_decoded(self) -> None:
        row = self.codec.decode_row({'id': 1, 'data': '{"a":[1,2]}'}, ['data'])
        assert row == {'id': 1, 'data': {'a': [1, 2]}}

    def test_malformed_content_left_untouched(self) -> None:
        """损坏内容保留原字符串，不抛出异常"""
        row = self.codec.decode_row({'data': 'plain text {'}, ['data'])
        assert row['data'] == 'plain text {'

    def test_non_string_value_skipped(self) -> None:
        row = self.codec.decode_row({'data': None, 'meta': 5}, ['data', 'meta'])
        assert row == {'data': None, 'meta': 5}

    def test_missing_column_ignored(self) -> None:
        row = self.codec.decode_row({'id': 1}, ['data'])
        assert row == {'id': 1}


class TestMaterialize:
    """行物化测试"""

    def setup_method(self) -> None:
        self.codec = JsonColumnCodec()
        self.category = RelationSpec.from_mapping('category', {
            'table': 'categories', 'type': 'one',
            'local_key': 'cat_id', 'foreign_key': 'id',
        })
        self.comments = RelationSpec.from_mapping('comments', {
            'table': 'comments', 'type': 'many',
            'local_key': 'id', 'foreign_key': 'post_id',
        })

    def test_nested_rows_decoded(self) -> None:
        """基础行和关联行都被解码"""
        row = {
            'id': 1,
            'data': '{"a":1}',
            'category': {'id': 5, 'data': '{"b":2}'},
            'comments': [{'id': 1, 'data': '[1]'}, {'id': 2, 'data': 'bad{'}],
        }
        result = materialize(row, ['data'], [self.category, self.comments], self.codec)

        assert result['data'] == {'a': 1}
        assert result['category']['data'] == {'b': 2}
        assert result['comments'][0]['data'] == [1]
        assert result['comments'][1]['data'] == 'bad{'

    def test_source_rows_not_mutated(self) -> None:
        row = {'id': 1, 'data': '{}', 'category': {'id': 5, 'data': '{"b":2}'}}
        materialize(row, ['data'], [self.category], self.codec)
        assert row['data'] == '{}'
        assert row['category']['data'] == '{"b":2}'

    def test_empty_relations_kept(self) -> None:
        """None / [] 关联原样保留"""
        row = {'id': 1, 'data': '{}', 'category': None, 'comments': []}
        result = materialize(row, ['data'], [self.category, self.comments], self.codec)
        assert result['category'] is None
        assert result['comments'] == []

    def test_relation_container_not_decoded(self) -> None:
        """关联字段即使与 JSON 列同名也不被当作 JSON 文本解码"""
        meta = RelationSpec.from_mapping('meta', {
            'table': 'categories', 'type': 'one',
            'local_key': 'cat_id', 'foreign_key': 'id',
        })
        row = {'id': 1, 'meta': {'id': 5, 'meta': '{"x":1}'}}
        result = materialize(row, ['meta'], [meta], self.codec)
        assert result['meta'] == {'id': 5, 'meta': {'x': 1}}

    def test_materialize_rows(self) -> None:
        rows = [{'data': '{"a":1}'}, {'data': '[]'}]
        assert materialize_rows(rows, ['data'], [], self.codec) == [{'data': {'a': 1}}, {'data': []}]
