"""Tests for store commands."""

import json

import pytest

from localstore.storage.backends import XmlFileBackend


class TestValueCommands:
    """Test get, set, delete, incr and decr."""

    def test_set_and_get_each_provider(self, invoke, provider):
        pytest.assert_exit_success(invoke("set", "score", "42", provider=provider))
        pytest.assert_exit_success(invoke("set", "name", "Ann", provider=provider))

        score = invoke("get", "score", provider=provider)
        name = invoke("get", "name", provider=provider)

        pytest.assert_exit_success(score)
        assert "42" in pytest.output_lines(score)
        assert "Ann" in pytest.output_lines(name)

    def test_set_sniffs_type(self, invoke):
        assert "(int)" in invoke("set", "score", "42").output
        assert "(float)" in invoke("set", "ratio", "0.5").output
        assert "(string)" in invoke("set", "name", "Ann").output

    def test_set_explicit_type(self, invoke):
        result = invoke("set", "code", "007", "--type", "string")

        pytest.assert_exit_success(result)
        assert "(string)" in result.output
        assert "007" in pytest.output_lines(invoke("get", "code"))

    def test_set_invalid_int(self, invoke):
        result = invoke("set", "score", "abc", "--type", "int")

        pytest.assert_exit_failure(result, 2)

    def test_set_reserved_key(self, invoke):
        result = invoke("set", "__KEYS", "1", provider="preferences")

        pytest.assert_exit_failure(result)
        pytest.assert_output_contains(result, "Invalid key")

    def test_get_typed(self, invoke):
        invoke("set", "ratio", "2.5")

        assert "2" in pytest.output_lines(invoke("get", "ratio", "--type", "int"))
        assert "2.5" in pytest.output_lines(invoke("get", "ratio", "--type", "string"))

    def test_get_missing(self, invoke):
        result = invoke("get", "missing")

        pytest.assert_exit_failure(result)
        pytest.assert_output_contains(result, "Key not found")

    def test_delete(self, invoke):
        invoke("set", "score", "1")

        result = invoke("delete", "score")

        pytest.assert_exit_success(result)
        pytest.assert_exit_failure(invoke("get", "score"))

    def test_delete_missing(self, invoke):
        result = invoke("delete", "missing")

        pytest.assert_exit_success(result)
        pytest.assert_output_contains(result, "Key not found")

    def test_incr_and_decr(self, invoke, provider):
        for _ in range(3):
            result = invoke("incr", "counter", provider=provider)
        pytest.assert_exit_success(result)
        assert "3" in pytest.output_lines(result)

        result = invoke("decr", "counter", provider=provider)
        assert "2" in pytest.output_lines(result)

    def test_incr_overflow(self, invoke):
        invoke("set", "counter", "2147483647")

        result = invoke("incr", "counter")

        pytest.assert_exit_failure(result)
        pytest.assert_output_contains(result, "32 bits")


class TestListAndInfo:
    """Test read-only overview commands."""

    def test_list(self, invoke):
        invoke("set", "score", "42")
        invoke("set", "name", "Ann")

        result = invoke("list")

        pytest.assert_exit_success(result)
        pytest.assert_output_contains(result, "score", "42", "int", "name", "Ann", "string")

    def test_list_empty(self, invoke):
        result = invoke("list")

        pytest.assert_exit_success(result)
        pytest.assert_output_contains(result, "Store is empty")

    def test_info(self, invoke, data_dir):
        invoke("set", "score", "42")

        result = invoke("info")

        pytest.assert_exit_success(result)
        pytest.assert_output_contains(
            result, "Provider", "json", str(data_dir / "LocalStorage.json")
        )


class TestExportImport:
    """Test moving data in and out of the store."""

    def test_export_raw(self, invoke):
        invoke("set", "score", "42")

        result = invoke("export")

        pytest.assert_exit_success(result)
        assert '{ "score":42 }' in pytest.output_lines(result)

    def test_export_json(self, invoke):
        invoke("set", "name", "Ann")
        invoke("set", "score", "42")

        result = invoke("export", "--format", "json")

        pytest.assert_exit_success(result)
        assert json.loads(result.output) == {"name": "Ann", "score": 42}

    def test_export_to_file(self, invoke, tmp_path):
        invoke("set", "score", "42")
        output = tmp_path / "export.txt"

        result = invoke("export", "--output", str(output))

        pytest.assert_exit_success(result)
        assert output.read_text() == '{ "score":42 }\n'

    def test_import(self, invoke, tmp_path, provider):
        source = tmp_path / "import.json"
        source.write_text(json.dumps({"score": "42", "ratio": 0.5, "name": "Ann"}))

        result = invoke("import", str(source), provider=provider)

        pytest.assert_exit_success(result)
        pytest.assert_output_contains(result, "Imported 3 of 3 values")
        export = invoke("export", "--format", "json", provider=provider)
        assert json.loads(export.output) == {"score": 42, "ratio": 0.5, "name": "Ann"}

    def test_import_reports_bad_values(self, invoke, tmp_path):
        source = tmp_path / "import.json"
        source.write_text(json.dumps({"good": 1, "bad": [1, 2]}))

        result = invoke("import", str(source))

        pytest.assert_exit_success(result)
        pytest.assert_output_contains(result, "Imported 1 of 2 values", "bad")

    def test_import_invalid_json(self, invoke, tmp_path):
        source = tmp_path / "import.json"
        source.write_text("{broken")

        result = invoke("import", str(source))

        pytest.assert_exit_failure(result)
        pytest.assert_output_contains(result, "Invalid JSON")

    def test_import_requires_object(self, invoke, tmp_path):
        source = tmp_path / "import.json"
        source.write_text("[1, 2]")

        result = invoke("import", str(source))

        pytest.assert_exit_failure(result)


class TestEdit:
    """Test staged editing."""

    def test_edit_applies_all_changes(self, invoke):
        invoke("set", "old", "1")
        invoke("set", "score", "1")

        result = invoke(
            "edit",
            "--int",
            "score=10",
            "--float",
            "ratio=0.25",
            "--string",
            "name=Ann",
            "--delete",
            "old",
        )

        pytest.assert_exit_success(result)
        pytest.assert_output_contains(result, "Applied 4 changes")
        export = invoke("export", "--format", "json")
        assert json.loads(export.output) == {"score": 10, "ratio": 0.25, "name": "Ann"}

    def test_edit_dry_run(self, invoke):
        invoke("set", "score", "1")

        result = invoke("edit", "--int", "score=2", "--dry-run")

        pytest.assert_exit_success(result)
        pytest.assert_output_contains(result, "Pending changes", "Dry run")
        assert "1" in pytest.output_lines(invoke("get", "score"))

    def test_edit_without_changes(self, invoke):
        invoke("set", "score", "1")

        result = invoke("edit", "--int", "score=1")

        pytest.assert_exit_success(result)
        pytest.assert_output_contains(result, "No changes")

    def test_edit_bad_assignment(self, invoke):
        result = invoke("edit", "--int", "score")

        pytest.assert_exit_failure(result, 2)

    def test_edit_bad_number(self, invoke):
        result = invoke("edit", "--float", "ratio=fast")

        pytest.assert_exit_failure(result, 2)


class TestClear:
    """Test deleting everything."""

    def test_clear_with_yes(self, invoke):
        invoke("set", "score", "1")
        invoke("set", "name", "Ann")

        result = invoke("clear", "--yes")

        pytest.assert_exit_success(result)
        pytest.assert_output_contains(result, "Deleted 2 values")
        pytest.assert_output_contains(invoke("list"), "Store is empty")

    def test_clear_confirmed(self, invoke):
        invoke("set", "score", "1")

        result = invoke("clear", input="y\n")

        pytest.assert_exit_success(result)
        pytest.assert_output_contains(invoke("list"), "Store is empty")

    def test_clear_cancelled(self, invoke):
        invoke("set", "score", "1")

        result = invoke("clear", input="n\n")

        pytest.assert_exit_success(result)
        pytest.assert_output_contains(result, "Cancelled")
        assert "1" in pytest.output_lines(invoke("get", "score"))


class TestCheck:
    """Test validation reporting."""

    def test_check_valid_store(self, invoke):
        invoke("set", "score", "1")

        result = invoke("check")

        pytest.assert_exit_success(result)
        pytest.assert_output_contains(result, "Store is valid")

    def test_check_lists_load_issues(self, invoke, data_dir):
        data_dir.mkdir(parents=True)
        (data_dir / "LocalStorage.json").write_text('{"score": 1, "bad": [1]}')

        result = invoke("check")

        pytest.assert_exit_success(result)
        pytest.assert_output_contains(result, "Issues (1)", "bad")

    def test_check_reports_duplicates(self, invoke, data_dir):
        data_dir.mkdir(parents=True)
        (data_dir / "LocalStorage.xml").write_text(
            '<XmlStore><items>'
            '<XmlItem key="score" value="1" type="int" />'
            '<XmlItem key="score" value="2" type="int" />'
            "</items></XmlStore>"
        )

        result = invoke("check", provider="xml")

        pytest.assert_exit_failure(result)
        pytest.assert_output_contains(result, "Duplicate key in document: score")

    def test_check_after_repair(self, invoke, data_dir):
        data_dir.mkdir(parents=True)
        path = data_dir / "LocalStorage.xml"
        path.write_text(
            '<XmlStore><items>'
            '<XmlItem key="score" value="1" type="int" />'
            '<XmlItem key="score" value="2" type="int" />'
            "</items></XmlStore>"
        )
        XmlFileBackend(path).save()

        result = invoke("check", provider="xml")

        pytest.assert_exit_success(result)
