import pytest

from captioner.exceptions import CountMismatch, MalformedResponse, ResponseFormatError
from captioner.response_parser import (
    extract_first_json_object,
    parse_translations,
    strip_code_fence,
    strip_quotes,
)


CLEAN = '{"translations": ["早安", "你好"]}'
FENCED = '```json\n{\n  "translations": ["早安", "你好"]\n}\n```'
EMBEDDED = 'Here is your result:\n{"translations": ["早安", "你好"]}\nThanks'


@pytest.mark.parametrize("raw", [CLEAN, FENCED, EMBEDDED], ids=["clean", "fenced", "embedded"])
def test_equivalent_replies_parse_identically(raw):
    assert parse_translations(raw) == ["早安", "你好"]


def test_fence_without_language_tag():
    assert parse_translations('```\n{"translations": ["a"]}\n```') == ["a"]


def test_fence_with_uppercase_tag_and_surrounding_whitespace():
    assert parse_translations('  ```JSON\n{"translations": ["a", "b"]}```  ') == ["a", "b"]


def test_non_string_elements_become_empty():
    assert parse_translations('{"translations": ["a", 1, null, {"x": 2}, "b"]}') == ["a", "", "", "", "b"]


def test_nested_object_in_prose_uses_outermost_braces():
    raw = 'Sure! {"meta": {"n": 2}, "translations": ["x", "y"]} done {"translations": ["z"]}'
    assert parse_translations(raw) == ["x", "y"]


@pytest.mark.parametrize("raw", [
    "I cannot translate this.",
    '{"result": ["a"]}',
    '{"translations": "a"}',
    '["a", "b"]',
    "",
    None,
])
def test_unparseable(raw):
    with pytest.raises(MalformedResponse):
        parse_translations(raw)


def test_expected_count_mismatch():
    with pytest.raises(CountMismatch) as info:
        parse_translations(CLEAN, expected_count=3)
    assert info.value.expected == 3
    assert info.value.actual == 2
    assert isinstance(info.value, ResponseFormatError)


def test_expected_count_match():
    assert parse_translations(EMBEDDED, expected_count=2) == ["早安", "你好"]


def test_custom_field_name():
    assert parse_translations('{"items": ["a"]}', field="items") == ["a"]


def test_extract_first_json_object():
    assert extract_first_json_object('x {"a": {"b": 1}} y') == '{"a": {"b": 1}}'
    assert extract_first_json_object("} stray {\"a\": 1}") == '{"a": 1}'
    assert extract_first_json_object("no braces") is None
    assert extract_first_json_object("{ unbalanced") is None


def test_strip_code_fence():
    assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('{"a": 1}') is None


@pytest.mark.parametrize("raw,expected", [
    ('"你好"', "你好"),
    ("  你好  ", "你好"),
    ("「你好」", "你好"),
    ("“你好”", "你好"),
    ('"', '"'),
    ("你好", "你好"),
    ("", ""),
])
def test_strip_quotes(raw, expected):
    assert strip_quotes(raw) == expected
