"""Writers for `export` (csv) and `lumberjack --output` (json)."""

import csv
import json
from pathlib import Path
from typing import Any


def _columns(records: list[dict[str, Any]]) -> list[str]:
    # union of keys, in first-seen order - records don't always share a shape
    columns: dict[str, None] = {}
    for record in records:
        for key in record:
            columns.setdefault(key, None)
    return list(columns)


def _cell(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True, default=str)
    return value


def write_csv(records: list[dict[str, Any]], path: str | Path) -> Path:
    """Write records to a csv file. Nested values are stored as json."""
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)

    columns = _columns(records)
    with open(path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=columns, restval="")
        writer.writeheader()
        for record in records:
            writer.writerow({key: _cell(value) for key, value in record.items()})
    return path


def write_json(records: list[dict[str, Any]], path: str | Path) -> Path:
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(records, f, indent=2, default=str)
        f.write("\n")
    return path
