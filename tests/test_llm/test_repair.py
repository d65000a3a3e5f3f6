"""Tests for the JSON repair chain."""

import pytest

from splitworker.llm.repair import (
	extract_json_block,
	extract_object_fragments,
	normalize_quotes,
	parse_json_array,
	parse_json_object,
	remove_trailing_commas,
	strip_code_fences,
)


class TestStages:
	"""Each stage is a plain string transform."""

	def test_strip_code_fences_keeps_body(self):
		text = 'Here you go:\n```json\n[{"a": 1}]\n```\nThanks'
		assert strip_code_fences(text) == '[{"a": 1}]'

	def test_strip_code_fences_without_fence(self):
		assert strip_code_fences('  [1, 2]  ') == '[1, 2]'

	def test_extract_json_block_array(self):
		assert extract_json_block('Result: [1, 2] done', '[') == '[1, 2]'

	def test_extract_json_block_object(self):
		assert extract_json_block('noise {"a": {"b": 1}} tail', '{') == '{"a": {"b": 1}}'

	def test_extract_json_block_without_brackets(self):
		assert extract_json_block('nothing here', '[') == 'nothing here'

	def test_normalize_quotes(self):
		assert normalize_quotes('{“a”: ‘b’}') == '{"a": \'b\'}'

	def test_remove_trailing_commas(self):
		assert remove_trailing_commas('[{"a": 1,}, {"b": 2},\n]') == '[{"a": 1}, {"b": 2}]'

	def test_extract_object_fragments_skips_broken_objects(self):
		text = '[{"a": 1}, {"b": oops}, {"c": 3}'
		assert extract_object_fragments(text) == '[{"a": 1}, {"c": 3}]'


class TestParseJsonArray:

	def test_plain_array(self):
		assert parse_json_array('[{"pageNumber": 1}]') == [{"pageNumber": 1}]

	def test_fenced_array_with_prose(self):
		text = 'Sure!\n```json\n[{"pageNumber": 1}, {"pageNumber": 2}]\n```'
		assert parse_json_array(text) == [{"pageNumber": 1}, {"pageNumber": 2}]

	def test_trailing_comma_and_smart_quotes(self):
		text = '[{“pageNumber”: 3, “documentType”: “hotel”,},]'
		assert parse_json_array(text) == [{"pageNumber": 3, "documentType": "hotel"}]

	def test_fragments_recovered_from_truncated_array(self):
		text = '[{"pageNumber": 1, "hasTotal": true}, {"pageNumber": 2, "hasTot'
		assert parse_json_array(text) == [{"pageNumber": 1, "hasTotal": True}]

	def test_empty_array(self):
		assert parse_json_array('No issues found: []') == []

	def test_empty_response(self):
		assert parse_json_array('') == []

	def test_single_object_is_wrapped(self):
		assert parse_json_array('{"type": "included_container"}') == [{"type": "included_container"}]

	def test_garbage_raises(self):
		with pytest.raises(ValueError):
			parse_json_array('I cannot help with that.')


class TestParseJsonObject:

	def test_fenced_object(self):
		text = '```json\n{"decision": "same", "confidence": 0.9}\n```'
		assert parse_json_object(text) == {"decision": "same", "confidence": 0.9}

	def test_object_inside_prose(self):
		text = 'My answer is {"decision": "different", "reason": "new total",} as requested'
		assert parse_json_object(text) == {"decision": "different", "reason": "new total"}

	def test_array_is_not_an_object(self):
		with pytest.raises(ValueError):
			parse_json_object('[1, 2, 3]')

	def test_none_raises(self):
		with pytest.raises(ValueError):
			parse_json_object(None)
