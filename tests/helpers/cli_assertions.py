"""CLI output assertion helpers for reducing test brittleness.

These helpers prioritize semantic assertions (exit codes, file existence) over
exact string matching. When output validation is necessary, they use regex
patterns to be resilient to cosmetic changes like symbols or wording updates.

Exit codes are part of vigil's contract (2 failure, 3 timeout, 77 server
start failure), so failure assertions always name the expected code.
"""

import re
from pathlib import Path

from click.testing import Result


def _output(result: Result) -> str:
    """Everything the command printed, stdout and stderr together."""
    return result.output


def assert_command_success(result: Result, *, context: str = "") -> None:
    """Assert that a CLI command succeeded.

    Args:
        result: Click test runner Result object.
        context: Optional context string for error messages.

    Example:
        result = runner.invoke(cli, ["init"])
        assert_command_success(result, context="vigil init")
    """
    ctx = f" ({context})" if context else ""
    assert result.exit_code == 0, (
        f"Command failed{ctx}:\n"
        f"  Exit code: {result.exit_code}\n"
        f"  Output: {_output(result)[:500]}\n"
        f"  Exception: {result.exception!r}"
    )


def assert_command_failed(
    result: Result,
    *,
    expected_code: int = 2,
    context: str = "",
) -> None:
    """Assert that a CLI command failed with expected exit code.

    Args:
        result: Click test runner Result object.
        expected_code: Expected non-zero exit code (default: 2).
        context: Optional context string for error messages.

    Example:
        result = runner.invoke(cli, ["ping", "--no-auto-start"])
        assert_command_failed(result, context="ping without server")
    """
    ctx = f" ({context})" if context else ""
    assert result.exit_code == expected_code, (
        f"Expected command to fail{ctx} with code {expected_code}, "
        f"but got {result.exit_code}:\n"
        f"  Output: {_output(result)[:500]}"
    )


def assert_output_contains(
    result: Result,
    *substrings: str,
    case_sensitive: bool = True,
    context: str = "",
) -> None:
    """Assert that output contains all specified substrings.

    Example:
        assert_output_contains(result, "Out of retries")
    """
    ctx = f" ({context})" if context else ""
    output = _output(result) if case_sensitive else _output(result).lower()

    for substring in substrings:
        check = substring if case_sensitive else substring.lower()
        assert check in output, (
            f"Substring not found{ctx}:\n"
            f"  Expected: {substring!r}\n"
            f"  Output: {_output(result)[:500]}"
        )


def assert_error_message(result: Result, *, hint: str | None = None) -> None:
    """Assert that output contains an error indication.

    Args:
        result: Click test runner Result object (should have non-zero exit code).
        hint: Optional substring that should appear as a hint.

    Example:
        assert_command_failed(result)
        assert_error_message(result, hint="vigil init")
    """
    has_error = re.search(r"error", _output(result), re.IGNORECASE) is not None
    assert has_error, (
        f"Expected error message in output:\n"
        f"  Output: {_output(result)[:500]}"
    )

    if hint:
        assert hint in _output(result), (
            f"Expected hint '{hint}' in error output:\n"
            f"  Output: {_output(result)[:500]}"
        )


def assert_success_indicator(result: Result) -> None:
    """Assert that output contains a success indicator (checkmark, "ready", ...)."""
    success_patterns = [
        r"[✓✔]",
        r"success",
        r"ready",
        r"initialized",
    ]
    pattern = "|".join(success_patterns)
    has_success = re.search(pattern, _output(result), re.IGNORECASE) is not None
    assert has_success, (
        f"Expected success indicator in output:\n"
        f"  Output: {_output(result)[:500]}"
    )


def assert_files_created(
    base_path: Path,
    *relative_paths: str,
) -> None:
    """Assert that files were created at specified paths.

    Example:
        assert_files_created(project_root, ".vigilconfig")
    """
    for rel_path in relative_paths:
        full_path = base_path / rel_path
        assert full_path.exists(), f"Expected file not created: {full_path}"
