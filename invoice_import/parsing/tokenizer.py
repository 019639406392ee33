from __future__ import annotations

from ..models.row import RawRow

__all__ = ["tokenize_row"]


def tokenize_row(line: str) -> RawRow:
    """Split one raw report line into cells.

    Quote handling:
    - a double quote toggles the "inside quoted field" state
    - a doubled quote inside a quoted field is a literal quote
    - a comma inside a quoted field is literal
    - an unterminated quoted field at end of line is treated as closed

    Never raises and always returns at least one (possibly empty) cell.
    """
    line = line.rstrip("\r\n")
    cells: RawRow = []
    current: list[str] = []
    in_quotes = False
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == '"':
            if in_quotes and i + 1 < n and line[i + 1] == '"':
                current.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            cells.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    cells.append("".join(current))
    return cells
