"""
CSV tokenizer for bulk prompt uploads.

Quoted fields may contain commas, line breaks and escaped quotes (""),
so prompt bodies copied out of spreadsheets survive intact.
"""

from typing import List

RawRow = List[str]

BOM = "\ufeff"


def tokenize(text: str) -> List[RawRow]:
    """Split CSV text into rows of raw field strings.

    Blank lines produce no row. An unterminated quote swallows the rest of
    the input instead of failing.
    """
    rows: List[RawRow] = []
    current_row: RawRow = []
    current_field: List[str] = []
    in_quotes = False

    if text.startswith(BOM):
        text = text[1:]

    i = 0
    length = len(text)
    while i < length:
        char = text[i]
        next_char = text[i + 1] if i + 1 < length else ""

        if char == '"':
            if in_quotes and next_char == '"':
                current_field.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            current_row.append("".join(current_field))
            current_field = []
        elif char in ("\n", "\r") and not in_quotes:
            if char == "\r" and next_char == "\n":
                i += 1
            if current_field or current_row:
                current_row.append("".join(current_field))
                rows.append(current_row)
                current_row = []
                current_field = []
        else:
            current_field.append(char)
        i += 1

    if current_field or current_row:
        current_row.append("".join(current_field))
        rows.append(current_row)

    return rows
