"""
app/parsing/tokenizer.py

Line and field tokenizer for delimited exports.

Rows are split on newlines *before* quote-aware field splitting, so a quoted
field must not contain a raw newline. Sources that embed newlines inside
quoted fields are not supported; such a row surfaces as two malformed rows
rather than one.
"""

from __future__ import annotations

from collections.abc import Iterator

QUOTE = '"'
DELIMITER = ","


def parse_csv_line(line: str) -> list[str]:
    """
    Split one line into trimmed cells.

    A comma separates fields only outside an open quote span. A doubled quote
    inside an open span is a literal quote; every other quote toggles the
    span and is dropped, which strips the quotes surrounding a field.
    """

    cells: list[str] = []
    current: list[str] = []
    in_quotes = False
    index = 0
    length = len(line)

    while index < length:
        char = line[index]
        if char == QUOTE:
            if in_quotes and index + 1 < length and line[index + 1] == QUOTE:
                current.append(QUOTE)
                index += 1
            else:
                in_quotes = not in_quotes
        elif char == DELIMITER and not in_quotes:
            cells.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        index += 1

    cells.append("".join(current).strip())
    return cells


def split_lines(text: str) -> list[str]:
    """
    Split text into physical lines without terminators.

    ``\\r\\n`` endings are tolerated; trailing blank lines are dropped.
    """

    lines = [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]
    while lines and not lines[-1].strip():
        lines.pop()
    return lines


def number_lines(text: str, *, first_line_number: int = 1) -> list[tuple[int, str]]:
    """
    Return ``(line_number, line)`` for every non-blank line of ``text``.
    """

    return [
        (first_line_number + offset, line)
        for offset, line in enumerate(split_lines(text))
        if line.strip()
    ]


def iter_rows(text: str, *, first_line_number: int = 1) -> Iterator[tuple[int, list[str]]]:
    """
    Yield ``(line_number, cells)`` for every non-blank line of ``text``.
    """

    for line_number, line in number_lines(text, first_line_number=first_line_number):
        yield line_number, parse_csv_line(line)
