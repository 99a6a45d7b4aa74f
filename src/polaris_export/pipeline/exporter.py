"""JSON and CSV serialization of exported collections."""

import csv
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from loguru import logger

from ..models import Project


def union_columns(records: Iterable[Mapping[str, Any]]) -> List[str]:
    """Ordered union of record keys, in first-seen order."""
    columns: Dict[str, None] = {}
    for record in records:
        for key in record:
            columns.setdefault(key, None)
    return list(columns)


def flatten_value(value: Any) -> Any:
    """Render a value for a single CSV cell.

    Nested mappings and sequences become compact JSON and ``None`` becomes an
    empty cell.
    """
    if value is None:
        return ''
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(',', ':'), ensure_ascii=False)
    return value


class Exporter:
    """Write record collections as pretty JSON and as CSV."""

    def __init__(self):
        self.logger = logger.bind(component='Exporter')

    def export(
        self,
        records: Sequence[Mapping[str, Any]],
        json_path: Path,
        csv_path: Path,
        columns: Optional[Sequence[str]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Write ``records`` to both a JSON and a CSV file.

        Args:
            records: Records to export
            json_path: Destination of the JSON document
            csv_path: Destination of the CSV table
            columns: CSV columns; the union of record keys when omitted
            headers: Optional column name to header title mapping

        Raises:
            OSError: If either file cannot be written
        """
        self.write_json(list(records), json_path)
        self.write_csv(records, csv_path, columns=columns, headers=headers)

    def write_json(self, data: Any, path: Path) -> None:
        """Write ``data`` as JSON with 2-space indentation."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        self.logger.info(f'Saved {path}')

    def write_csv(
        self,
        records: Sequence[Mapping[str, Any]],
        path: Path,
        columns: Optional[Sequence[str]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> List[str]:
        """Write records as CSV, one row per record.

        Columns missing from a record are left blank.

        Returns:
            The columns written, in order
        """
        columns = list(columns) if columns is not None else union_columns(records)
        headers = headers or {}

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8', newline='') as f:
            writer = csv.writer(f)
            writer.writerow([headers.get(column, column) for column in columns])
            for record in records:
                writer.writerow(
                    [flatten_value(record.get(column)) for column in columns]
                )

        self.logger.info(f'Saved {path} ({len(records)} rows)')
        return columns

    @staticmethod
    def read_json(path: Path) -> Any:
        """Read a JSON document written by :meth:`write_json`."""
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def load_projects(self, path: Path) -> List[Project]:
        """Read a project list back into :class:`Project` models."""
        data = self.read_json(path)
        if not isinstance(data, list):
            raise ValueError(f'{path} does not contain a project list')
        return [Project(**entry) for entry in data]
