from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any, Union

"""CSV serializer.

A field is quoted (inner quotes doubled) only when its text contains a quote,
a comma or a newline; everything else is written bare. Output lines are joined
with ``\\n`` and carry no trailing newline.
"""

__all__ = [
    "FieldSpec",
    "escape_field",
    "serialize",
]

# column key into a record mapping, or a callable producing the cell
FieldSpec = Union[str, Callable[[Any], Any]]

_NEEDS_QUOTING = ('"', ",", "\n")


def escape_field(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        text = "true" if value else "false"
    else:
        text = str(value)
    if any(ch in text for ch in _NEEDS_QUOTING):
        return '"' + text.replace('"', '""') + '"'
    return text


def _extract(record: Any, spec: FieldSpec) -> Any:
    if callable(spec):
        return spec(record)
    if isinstance(record, Mapping):
        return record.get(spec)
    return getattr(record, spec, None)


def serialize(
    headers: Sequence[str],
    records: Iterable[Any],
    field_order: Sequence[FieldSpec] | None = None,
) -> str:
    """Render ``records`` as CSV text.

    Parameters
    ----------
    headers: header line cells (escaped like any other field)
    records: mappings or objects, written in iteration order
    field_order: one spec per column; defaults to ``headers`` used as keys
    """
    order = list(field_order) if field_order is not None else list(headers)
    if len(order) != len(headers):
        raise ValueError(f"field_order has {len(order)} entries for {len(headers)} headers")
    lines = [",".join(escape_field(h) for h in headers)]
    for record in records:
        lines.append(",".join(escape_field(_extract(record, spec)) for spec in order))
    return "\n".join(lines)
