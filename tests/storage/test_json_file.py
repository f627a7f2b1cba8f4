"""Tests for the JSON file backends and document codecs."""

import json

import pytest

from localstore.core.exceptions import StoreParseError
from localstore.core.models import IssueKind
from localstore.storage.backends import (
    JsonFileBackend,
    PlainCodec,
    SecuredJsonFileBackend,
    XorCodec,
)


class TestCodecs:
    """Test document codecs."""

    def test_plain_codec_is_identity(self):
        assert PlainCodec().encode(b'{"a":1}') == b'{"a":1}'
        assert PlainCodec().decode(b'{"a":1}') == b'{"a":1}'

    def test_xor_is_symmetric(self):
        codec = XorCodec("secret")
        data = '{"name":"Zoë"}'.encode("utf-8")

        encoded = codec.encode(data)

        assert encoded != data
        assert codec.decode(encoded) == data

    def test_xor_with_known_key(self):
        codec = XorCodec("A")

        assert codec.encode(b"AB") == bytes([0, 3])

    def test_xor_rejects_empty_key(self):
        with pytest.raises(ValueError):
            XorCodec("")


class TestJsonFileBackend:
    """Test the plain JSON document."""

    def test_document_is_plain_json(self, make_json_backend, json_path):
        backend = make_json_backend()
        backend.set_string("name", "Ann")
        backend.set_int("score", 42)

        assert json.loads(json_path.read_text()) == {"name": "Ann", "score": 42}

    def test_no_file_until_first_write(self, make_json_backend, json_path):
        make_json_backend()

        assert not json_path.exists()

    def test_no_temp_file_left_behind(self, make_json_backend, json_path):
        make_json_backend().set_int("score", 1)

        assert not json_path.with_name(json_path.name + ".tmp").exists()

    def test_creates_parent_directory(self, temp_dir):
        backend = JsonFileBackend(temp_dir / "nested" / "dir" / "store.json")
        backend.set_int("score", 1)

        assert (temp_dir / "nested" / "dir" / "store.json").exists()

    def test_getters_coerce_across_types(self, make_json_backend):
        backend = make_json_backend()
        backend.set_int("score", 42)
        backend.set_string("count", "17")
        backend.set_float("ratio", 2.5)

        assert backend.get_string("score") == "42"
        assert backend.get_float("score") == 42.0
        assert backend.get_int("count") == 17
        assert backend.get_int("ratio") == 2
        assert backend.get_int("missing") == 0

    def test_corrupt_file_loads_empty(self, make_json_backend, json_path):
        json_path.write_text("{not json")

        backend = make_json_backend()

        assert backend.get_serialized_data() == {}
        assert [issue.kind for issue in backend.issues] == [IssueKind.PARSE]

    def test_corrupt_file_raises_in_strict_mode(self, make_json_backend, json_path):
        json_path.write_text("{not json")

        with pytest.raises(StoreParseError):
            make_json_backend(strict=True)

    def test_non_object_document(self, make_json_backend, json_path):
        json_path.write_text("[1, 2, 3]")

        backend = make_json_backend()

        assert backend.get_serialized_data() == {}
        assert [issue.kind for issue in backend.issues] == [IssueKind.PARSE]

    def test_unsupported_values_are_skipped(self, make_json_backend, json_path):
        json_path.write_text('{"score": 1, "nested": {"a": 1}, "nothing": null}')

        backend = make_json_backend()

        assert backend.get_serialized_data() == {"score": 1}
        assert sorted(issue.key for issue in backend.issues) == ["nested", "nothing"]

    def test_loaded_values_are_narrowed(self, make_json_backend, json_path):
        json_path.write_text('{"flag": true, "big": 4294967296, "ratio": 0.1}')

        backend = make_json_backend()
        data = backend.get_serialized_data()

        assert data["flag"] == 1
        assert data["big"] == 4294967296.0
        assert isinstance(data["big"], float)
        assert data["ratio"] == pytest.approx(0.1, rel=1e-7)
        assert backend.issues == []

    def test_unreadable_path_records_io_issue(self, temp_dir):
        (temp_dir / "store.json").mkdir()

        backend = JsonFileBackend(temp_dir / "store.json")
        backend.set_int("score", 1)

        assert backend.get_int("score") == 1
        assert {issue.kind for issue in backend.issues} == {IssueKind.IO}

    def test_unencodable_text_keeps_store_writable(self, make_json_backend, json_path):
        backend = make_json_backend()

        backend.set_string("name", "\ud800")
        backend.set_int("score", 1)
        backend.set_int("level", 2)
        backend.delete_key("level")

        assert backend.get_serialized_data() == {"score": 1}
        assert json.loads(json_path.read_text()) == {"score": 1}
        assert [issue.kind for issue in backend.issues] == [IssueKind.PARSE]

    def test_unencodable_text_raises_in_strict_mode(self, make_json_backend):
        backend = make_json_backend(strict=True)

        with pytest.raises(StoreParseError):
            backend.set_string("name", "\ud800")

        assert backend.has_key("name") is False
        backend.set_int("score", 1)
        assert backend.get_int("score") == 1

    def test_location(self, make_json_backend, json_path):
        assert make_json_backend().location == str(json_path)
        assert "json" in repr(make_json_backend())


class TestSecuredJsonFileBackend:
    """Test the XOR-obfuscated JSON document."""

    def test_file_is_not_plain_json(self, make_secured_backend, json_path):
        backend = make_secured_backend()
        backend.set_string("name", "Ann")

        raw = json_path.read_bytes()

        assert b"Ann" not in raw
        with pytest.raises(ValueError):
            json.loads(raw)

    def test_file_differs_from_plain_backend(self, temp_dir, sample_values):
        plain = JsonFileBackend(temp_dir / "plain.json")
        secured = SecuredJsonFileBackend(temp_dir / "secured.json")
        for key, value in sample_values.items():
            plain.set_value(key, value)
            secured.set_value(key, value)

        assert plain.get_serialized_data() == secured.get_serialized_data()
        assert (temp_dir / "plain.json").read_bytes() != (
            temp_dir / "secured.json"
        ).read_bytes()

    def test_file_decodes_with_key(self, make_secured_backend, json_path):
        backend = make_secured_backend(key="s3cret")
        backend.set_int("score", 42)

        decoded = XorCodec("s3cret").decode(json_path.read_bytes())

        assert json.loads(decoded) == {"score": 42}

    def test_wrong_key_loads_empty(self, make_secured_backend):
        make_secured_backend(key="right").set_int("score", 42)

        backend = make_secured_backend(key="wrong")

        assert backend.get_serialized_data() == {}
        assert [issue.kind for issue in backend.issues] == [IssueKind.PARSE]

    def test_plain_file_is_a_parse_issue(self, make_json_backend, make_secured_backend):
        make_json_backend().set_int("score", 42)

        backend = make_secured_backend()

        assert backend.has_key("score") is False
        assert [issue.kind for issue in backend.issues] == [IssueKind.PARSE]

    def test_provider_name(self, make_secured_backend):
        assert make_secured_backend().provider_name == "secured_json"
