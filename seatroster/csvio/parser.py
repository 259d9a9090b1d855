from __future__ import annotations

from dataclasses import dataclass, field

"""Quote-aware CSV parser.

The text is split into physical lines first and each data line is then scanned
character by character, so quoted fields may hold commas and doubled quotes but
not line breaks. Header names are split naively on ``,``.
"""

__all__ = [
    "CsvDocument",
    "parse_csv",
    "parse_line",
]

_BOM = "\ufeff"


@dataclass
class CsvDocument:
    headers: list[str]
    rows: list[list[str]] = field(default_factory=list)  # 未検証 (ヘッダ幅と不一致あり)


def parse_line(line: str) -> list[str]:
    """Split one physical line into trimmed fields.

    ``""`` inside a quoted section yields a literal quote. The last field is
    always emitted, so a trailing comma produces a trailing empty field.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    length = len(line)
    while i < length:
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < length and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1
    fields.append("".join(current).strip())
    return fields


def parse_csv(text: str) -> CsvDocument:
    """Parse CSV text into headers and raw rows.

    Steps:
    1. drop a leading BOM and every ``\\r``
    2. trim the whole text and split on ``\\n``
    3. first line -> header names (split on ``,``, trimmed)
    4. every remaining line -> :func:`parse_line`

    Blank input gives an empty header list; callers decide whether that is fatal.
    """
    if text.startswith(_BOM):
        text = text[1:]
    text = text.replace("\r", "").strip()
    if not text:
        return CsvDocument(headers=[], rows=[])

    lines = text.split("\n")
    header_line = lines.pop(0).strip()
    headers = [h.strip() for h in header_line.split(",")] if header_line else []
    rows = [parse_line(line) for line in lines]
    return CsvDocument(headers=headers, rows=rows)
