"""
Balanced delimiter scanning for JSON payloads embedded in free text.
"""

from typing import Optional


def find_balanced(
    text: str, start: int, open_char: str = "{", close_char: str = "}"
) -> Optional[int]:
    """
    Find the end of a balanced block that opens at ``start``.

    Delimiters that appear inside double quoted JSON string literals are not
    counted, and backslash escapes inside those literals are honoured.

    Args:
        text: Text to scan
        start: Index of the opening delimiter
        open_char: Opening delimiter
        close_char: Closing delimiter

    Returns:
        Index one past the matching closing delimiter, or None when the text
        ends before the block is closed or ``start`` is not an opening delimiter
    """
    if start < 0 or start >= len(text) or text[start] != open_char:
        return None

    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == open_char:
            depth += 1
        elif ch == close_char:
            depth -= 1
            if depth == 0:
                return i + 1

    return None
