"""Test helper utilities for the vigil test suite."""

from tests.helpers.cli_assertions import (
    assert_command_failed,
    assert_command_success,
    assert_error_message,
    assert_files_created,
    assert_output_contains,
    assert_success_indicator,
)

__all__ = [
    "assert_command_success",
    "assert_command_failed",
    "assert_output_contains",
    "assert_error_message",
    "assert_success_indicator",
    "assert_files_created",
]
