"""Project root discovery utilities.

Functions for finding the vigil project root from any file or subdirectory.
"""

from pathlib import Path

from vigil.core.errors import path_not_found_error, root_not_found_error

CONFIG_FILENAME = ".vigilconfig"
MAX_SEARCH_DEPTH = 50


def find_project_root(
    start_path: Path | None = None,
    marker: str = CONFIG_FILENAME,
    max_depth: int = MAX_SEARCH_DEPTH,
) -> Path | None:
    """Find the project root by walking up directories.

    Looks for the marker file in start_path, then in its parent,
    grandparent and so on, similar to how git finds .git/. The walk stops
    after max_depth parents or at the filesystem root, whichever is first.

    Args:
        start_path: Directory to start searching from. Defaults to CWD.
        marker: Name of the file that marks a project root.
        max_depth: Maximum number of parent directories to climb.

    Returns:
        Absolute path to the closest directory containing the marker,
        or None if not found.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    for _ in range(max_depth + 1):
        if (current / marker).exists():
            return current

        parent = current.parent
        if parent == current:
            # Reached filesystem root
            return None

        current = parent

    return None


def guess_root(dir_or_file: str | None = None) -> Path:
    """Find the project root for a file or directory given on the CLI.

    Args:
        dir_or_file: File or directory inside the project. Defaults to ".".

    Returns:
        Absolute path to the project root.

    Raises:
        VigilCliError: If the path does not exist or no .vigilconfig is found.
    """
    if dir_or_file is None:
        dir_or_file = "."

    path = Path(dir_or_file)
    if not path.exists():
        path_not_found_error(dir_or_file)

    start = path if path.is_dir() else path.parent
    root = find_project_root(start)
    if root is None:
        root_not_found_error(str(start))
    return root
