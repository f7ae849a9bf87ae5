# services/refinery_dashboard/utils/export.py

import re
from typing import Any, Iterable, Sequence, Tuple

from fastapi.responses import Response

Column = Tuple[str, str]  # (attribute, label)


def _cell(value: Any) -> str:
    if value is None or value == "":
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def rows_to_csv(rows: Iterable[Any], columns: Sequence[Column]) -> str:
    """
    Header of labels, then one comma-joined line per row.
    Values are not quoted: a comma inside a value shifts the columns.
    """
    lines = [",".join(label for _, label in columns)]
    for row in rows:
        lines.append(",".join(_cell(_get(row, key)) for key, _ in columns))
    return "\n".join(lines)


def export_filename(title: str) -> str:
    return re.sub(r"\s+", "_", title.strip()) + ".csv"


def csv_response(rows: Iterable[Any], columns: Sequence[Column], title: str) -> Response:
    return Response(
        content=rows_to_csv(rows, columns),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(title)}"'},
    )


def _get(row: Any, key: str) -> Any:
    if isinstance(row, dict):
        return row.get(key)
    return getattr(row, key, None)
