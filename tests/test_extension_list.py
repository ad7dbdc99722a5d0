"""Tests for .vsext extension pack parsing."""

import pytest

from vsixgallery.kernel.errors import DeserializationError
from vsixgallery.kernel.package import Extension, ExtensionList
from vsixgallery._internal.io.extension_list import (
    find_extension_list,
    load_extension_list,
    parse_extension_list,
)


def test_str_returns_name():
    assert str(ExtensionList(name="My Extension List")) == "My Extension List"
    assert str(Extension(vsixId="x", name="My Extension")) == "My Extension"


def test_deserialize_from_json():
    result = parse_extension_list("""
        {
            "id": "test-list-id",
            "name": "Test Extension Pack",
            "version": "1.0.0",
            "extensions": [
                { "vsixId": "ext-1", "name": "Extension One" },
                { "vsixId": "ext-2", "name": "Extension Two" }
            ]
        }
    """)
    assert result.id == "test-list-id"
    assert result.name == "Test Extension Pack"
    assert result.version == "1.0.0"
    assert [e.vsix_id for e in result.extensions] == ["ext-1", "ext-2"]
    assert result.extensions[1].name == "Extension Two"


def test_empty_extensions():
    result = parse_extension_list('{"id": "empty-list", "name": "Empty List", "version": "1.0.0", "extensions": []}')
    assert result.extensions == []
    assert result.vsix_ids == []


def test_missing_extensions_property():
    result = parse_extension_list('{"id": "minimal-list", "name": "Minimal List", "version": "1.0.0"}')
    assert result.id == "minimal-list"
    assert result.extensions is None
    assert result.vsix_ids == []


def test_unknown_keys_ignored():
    result = parse_extension_list('{"id": "a", "extensions": [{"vsixId": "b", "name": "B", "extra": 1}], "more": true}')
    assert result.vsix_ids == ["b"]


def test_bytes_with_bom():
    result = parse_extension_list(b'\xef\xbb\xbf{"id": "bom", "extensions": []}')
    assert result.id == "bom"


@pytest.mark.parametrize("content", ["", "{", "[1, 2", '{"extensions": [{"name": "no id"}]}', '"just a string"'])
def test_invalid_content_raises(content):
    with pytest.raises(DeserializationError):
        parse_extension_list(content)


@pytest.mark.parametrize("data", [b"\xff\xfe\x00garbage", b"\x80\x81{}"])
def test_bytes_that_are_not_utf8_raise(data):
    with pytest.raises(DeserializationError, match="UTF-8"):
        parse_extension_list(data)


def test_find_prefers_first_in_sorted_walk(tmp_path):
    (tmp_path / "b.vsext").write_text("{}", encoding="utf-8")
    (tmp_path / "a.vsext").write_text("{}", encoding="utf-8")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "0.vsext").write_text("{}", encoding="utf-8")
    assert find_extension_list(tmp_path).name == "a.vsext"


def test_load_returns_none_without_file(tmp_path):
    assert load_extension_list(tmp_path) is None
