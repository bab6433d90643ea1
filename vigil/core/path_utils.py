"""Path and position normalization utilities for CLI commands.

Editors and users address source positions with 1-based lines and columns
and with paths relative to wherever they happen to be; the server expects
0-based columns and absolute paths.
"""

import os
from pathlib import Path


def convert_input_position(line: int, column: int) -> tuple[int, int]:
    """Convert a 1-based (line, column) pair to 1-based line, 0-based column.

    Columns of 1 or less map to 0. The line number is left as given.

    Args:
        line: 1-based line number.
        column: 1-based column number.

    Returns:
        Tuple of (line, column) for internal use.
    """
    column = column - 1 if column > 1 else 0
    return line, column


def normalize_file_path(file: str, cwd: Path | None = None) -> str:
    """Turn a file argument into an absolute, normalized path string.

    Existing files are resolved (symlinks included). Files that do not
    exist yet are joined onto cwd and normalized lexically, since there is
    nothing on disk to resolve.

    Args:
        file: File path as given on the command line.
        cwd: Directory relative paths are taken from. Defaults to CWD.

    Returns:
        Absolute path string.
    """
    path = Path(file)
    if path.exists():
        return str(path.resolve())

    base = cwd if cwd is not None else Path.cwd()
    return os.path.normpath(os.path.join(base, file))
