"""CSV rendering for export rows."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

_NEEDS_QUOTING = ('"', ",", "\r", "\n")


def csv_escape(value: Any) -> str:
    """Return ``value`` as a single CSV cell.

    ``None`` becomes an empty cell. Values containing a quote, comma or line
    break are wrapped in double quotes with inner quotes doubled.
    """
    if value is None:
        return ""
    text = str(value)
    if any(ch in text for ch in _NEEDS_QUOTING):
        return '"' + text.replace('"', '""') + '"'
    return text


def render_csv(headers: Sequence[str], rows: Sequence[Mapping[str, Any]]) -> str:
    """Render a header line plus one line per row, newline-joined."""
    lines = [",".join(headers)]
    for row in rows:
        lines.append(",".join(csv_escape(row.get(header)) for header in headers))
    return "\n".join(lines)
