"""Excel workbook parser.

Columns and multi-value separators are the same as for CSV files (see
``csv_input``). Sheet selection:

- with a resource type, the first sheet is read as that type
- without one, every sheet whose name contains "objective", "epic" or
  "stor" (case-insensitive) is read as that type; a workbook with no
  such sheet is rejected

Rows with an empty name cell are skipped, since spreadsheets commonly
carry formatted but empty trailing rows. Numeric cells holding whole
numbers are written without a fractional part and date cells as ISO
dates.
"""

import datetime
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any, TypeVar
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from pydantic import BaseModel, ValidationError

from bypass.enums import ResourceType
from bypass.exceptions import InvalidInputError
from bypass.input.csv_input import row_to_epic, row_to_objective, row_to_story
from bypass.input.models import InputFile

R = TypeVar("R", bound=BaseModel)

# Sheet-name fragment -> resource type, checked in this order
SHEET_MARKERS = (
    ("objective", ResourceType.OBJECTIVE),
    ("epic", ResourceType.EPIC),
    ("stor", ResourceType.STORY),
)


def cell_text(value: Any) -> str:
    """Render a cell value the way it would appear in a CSV export."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime.datetime):
        return value.date().isoformat()
    if isinstance(value, datetime.date):
        return value.isoformat()
    return str(value).strip()


def _sheet_rows(
    sheet_name: str, rows: Iterator[tuple[Any, ...]], convert: Callable[[dict[str, str | None]], R]
) -> list[R]:
    header = next(rows, None)
    columns = [cell_text(cell).lower() for cell in header or ()]
    if "name" not in columns:
        raise InvalidInputError(f"Sheet '{sheet_name}' must have a header row with a 'name' column")

    items = []
    # Header is row 1, so data starts at row 2
    for row_number, values in enumerate(rows, start=2):
        row: dict[str, str | None] = {}
        for column, value in zip(columns, values):
            if column and column not in row:
                row[column] = cell_text(value)
        if not (row.get("name") or "").strip():
            continue
        try:
            items.append(convert(row))
        except ValidationError as e:
            raise InvalidInputError(f"Sheet '{sheet_name}' row {row_number} parse error: {e}") from e
    return items


def _read_sheet(worksheet: Any, resource_type: ResourceType, batch: InputFile) -> None:
    rows = worksheet.iter_rows(values_only=True)
    if resource_type == ResourceType.OBJECTIVE:
        batch.objectives = _sheet_rows(worksheet.title, rows, row_to_objective)
    elif resource_type == ResourceType.EPIC:
        batch.epics = _sheet_rows(worksheet.title, rows, row_to_epic)
    else:
        batch.stories = _sheet_rows(worksheet.title, rows, row_to_story)


def detect_sheet_type(sheet_name: str) -> ResourceType | None:
    """Return the resource type a sheet name refers to, if any."""
    lower = sheet_name.lower()
    for marker, resource_type in SHEET_MARKERS:
        if marker in lower:
            return resource_type
    return None


def parse(path: Path, resource_type: ResourceType | None = None) -> InputFile:
    """Parse an Excel workbook.

    Raises:
        InvalidInputError: If the workbook cannot be opened, has no usable
            sheet, or a sheet is malformed
    """
    try:
        workbook = load_workbook(path, read_only=True, data_only=True)
    except (OSError, InvalidFileException, BadZipFile, KeyError) as e:
        raise InvalidInputError(f"Cannot open Excel file '{path}': {e}") from e

    try:
        batch = InputFile()
        if resource_type is not None:
            if not workbook.worksheets:
                raise InvalidInputError(f"Excel file '{path}' has no sheets")
            _read_sheet(workbook.worksheets[0], resource_type, batch)
            return batch

        matched = False
        for worksheet in workbook.worksheets:
            sheet_type = detect_sheet_type(worksheet.title)
            if sheet_type is None:
                continue
            _read_sheet(worksheet, sheet_type, batch)
            matched = True

        if not matched:
            raise InvalidInputError(
                f"No recognized sheet names in '{path}'. Name sheets 'Objectives', 'Epics', "
                "or 'Stories', or supply --type to use the first sheet."
            )
        return batch
    finally:
        workbook.close()
