"""Tests for path and position normalization."""

import os
from pathlib import Path

import pytest

from vigil.core.path_utils import convert_input_position, normalize_file_path


@pytest.mark.parametrize(
    ("column", "expected"),
    [(1, 0), (2, 1), (10, 9), (0, 0), (-5, 0)],
)
def test_convert_input_position_column(column: int, expected: int) -> None:
    assert convert_input_position(12, column) == (12, expected)


def test_convert_input_position_keeps_line() -> None:
    assert convert_input_position(1, 1)[0] == 1


class TestNormalizeFilePath:
    def test_existing_file_is_resolved(self, tmp_path: Path, monkeypatch) -> None:
        (tmp_path / "a.py").write_text("")
        monkeypatch.chdir(tmp_path)

        assert normalize_file_path("a.py") == str((tmp_path / "a.py").resolve())

    def test_missing_file_joined_onto_cwd(self, tmp_path: Path) -> None:
        result = normalize_file_path("sub/../new.py", cwd=tmp_path)

        assert result == os.path.join(str(tmp_path), "new.py")

    def test_missing_absolute_file_is_normalized(self, tmp_path: Path) -> None:
        target = f"{tmp_path}/x/./y/../z.py"

        assert normalize_file_path(target) == os.path.join(str(tmp_path), "x", "z.py")
