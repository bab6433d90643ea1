"""Line-indexed text splicing.

Splits a text around its n-th line so a single line can be rewritten
without disturbing the surrounding text or its line terminators. Both
"\\r" and "\\n" end a line, each on its own: "\\r\\n" ends one line and
then an empty one.
"""

from collections.abc import Callable

LINE_BREAKS = "\r\n"


def _end_of_line(text: str, start: int) -> int:
    """Offset of the first terminator at or after start, or len(text)."""
    for offset in range(start, len(text)):
        if text[offset] in LINE_BREAKS:
            return offset
    return len(text)


def split_nth(text: str, n: int) -> tuple[str, str, str] | None:
    """Split text at its n-th line (0-indexed).

    Args:
        text: Text to split.
        n: Line index; negative values behave like 0.

    Returns:
        (prefix, line, suffix) with prefix + line + suffix == text and line
        holding no terminator, or None if the text has no n-th line.

    Example:
        >>> split_nth("ab\\ncd\\nef", 1)
        ('ab\\n', 'cd', '\\nef')
    """
    size = len(text)
    start = 0
    for _ in range(n):
        end = _end_of_line(text, start)
        if end >= size:
            return None
        start = end + 1
    if start >= size:
        return None
    end = _end_of_line(text, start)
    return text[:start], text[start:end], text[end:]


def transform_nth(text: str, n: int, transform: Callable[[str], str]) -> str:
    """Rewrite the n-th line of text, leaving everything else untouched.

    Args:
        text: Text to edit.
        n: Line index (0-indexed).
        transform: Receives the line content and returns its replacement.

    Returns:
        The reassembled text, or text unchanged if it has no n-th line.
    """
    parts = split_nth(text, n)
    if parts is None:
        return text
    prefix, line, suffix = parts
    return prefix + transform(line) + suffix
