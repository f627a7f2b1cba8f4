"""Pytest configuration and fixtures for CLI tests.

Every invocation runs against a private data directory with colors off, so
output can be matched as plain text.
"""

import pytest
from click.testing import CliRunner

from localstore.cli.main import cli

PROVIDER_NAMES = ["preferences", "json", "secured_json", "xml"]


@pytest.fixture
def cli_runner():
    """Click test runner."""
    return CliRunner()


@pytest.fixture
def data_dir(tmp_path):
    """Directory the CLI stores data in."""
    return tmp_path / "store"


@pytest.fixture
def invoke(cli_runner, data_dir):
    """Run the CLI against the test data directory.

    Returns a callable taking the command arguments and optionally a
    ``provider`` (default ``json``) and ``input`` for prompts.
    """

    def run(*args, provider="json", input=None):
        return cli_runner.invoke(
            cli,
            ["--no-color", "--data-dir", str(data_dir), "--provider", provider, *args],
            input=input,
        )

    return run


@pytest.fixture(params=PROVIDER_NAMES)
def provider(request):
    """Each storage provider in turn."""
    return request.param


# Validation helpers
def assert_exit_success(result):
    """Assert CLI command exited successfully."""
    assert result.exit_code == 0, f"Command failed: {result.output}\n{result.exception}"


def assert_exit_failure(result, expected_code=1):
    """Assert CLI command failed with expected code."""
    assert result.exit_code == expected_code, (
        f"Expected exit code {expected_code}, got {result.exit_code}: {result.output}"
    )


def assert_output_contains(result, *expected):
    """Assert CLI output contains expected strings."""
    for text in expected:
        assert text in result.output, f"Expected '{text}' in output:\n{result.output}"


def output_lines(result):
    """Non-empty, stripped output lines."""
    return [line.strip() for line in result.output.splitlines() if line.strip()]


# Export test helpers
pytest.assert_exit_success = assert_exit_success  # type: ignore[attr-defined]
pytest.assert_exit_failure = assert_exit_failure  # type: ignore[attr-defined]
pytest.assert_output_contains = assert_output_contains  # type: ignore[attr-defined]
pytest.output_lines = output_lines  # type: ignore[attr-defined]
