"""CSV parser.

A CSV file holds exactly one resource type, chosen by the caller. Columns:

- objectives: name, description, state
- epics: name, description, objective, owners, teams, labels, state,
  start_date, deadline, template
- stories: name, type, description, epic, owners, team, labels, estimate,
  due_date, workflow_state

Multi-value cells (owners, teams, labels) use ``;`` as the separator since
``,`` is the column delimiter. Empty cells become None, and an estimate
that is not an integer is dropped.
"""

import csv
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from bypass.enums import ResourceType
from bypass.exceptions import InvalidInputError
from bypass.input.models import InputFile, PendingEpic, PendingObjective, PendingStory, split_list

R = TypeVar("R", bound=BaseModel)


def _opt(row: dict[str, str | None], column: str) -> str | None:
    value = (row.get(column) or "").strip()
    return value or None


def _multi(row: dict[str, str | None], column: str) -> list[str]:
    return split_list(row.get(column) or "", separator=";")


def _estimate(row: dict[str, str | None]) -> int | None:
    value = _opt(row, "estimate")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def row_to_objective(row: dict[str, str | None]) -> PendingObjective:
    return PendingObjective(
        name=row.get("name") or "",
        description=_opt(row, "description"),
        state=_opt(row, "state"),
    )


def row_to_epic(row: dict[str, str | None]) -> PendingEpic:
    return PendingEpic(
        name=row.get("name") or "",
        description=_opt(row, "description"),
        objective=_opt(row, "objective"),
        owners=_multi(row, "owners"),
        teams=_multi(row, "teams"),
        labels=_multi(row, "labels"),
        state=_opt(row, "state"),
        start_date=_opt(row, "start_date"),
        deadline=_opt(row, "deadline"),
        template=_opt(row, "template"),
    )


def row_to_story(row: dict[str, str | None]) -> PendingStory:
    return PendingStory(
        name=row.get("name") or "",
        story_type=_opt(row, "type"),
        description=_opt(row, "description"),
        epic=_opt(row, "epic"),
        owners=_multi(row, "owners"),
        team=_opt(row, "team"),
        labels=_multi(row, "labels"),
        estimate=_estimate(row),
        due_date=_opt(row, "due_date"),
        workflow_state=_opt(row, "workflow_state"),
    )


def _read_rows(path: Path, convert: Callable[[dict[str, str | None]], R]) -> list[R]:
    try:
        with open(path, newline="", encoding="utf-8-sig") as f:
            reader = csv.DictReader(f)
            if reader.fieldnames is None or "name" not in [c.strip() for c in reader.fieldnames]:
                raise InvalidInputError(f"CSV file '{path}' must have a header row with a 'name' column")
            items = []
            # Header is row 1, so data starts at row 2
            for row_number, row in enumerate(reader, start=2):
                cleaned = {(key or "").strip(): value for key, value in row.items()}
                try:
                    items.append(convert(cleaned))
                except ValidationError as e:
                    raise InvalidInputError(f"CSV row {row_number} parse error: {e}") from e
            return items
    except (OSError, UnicodeDecodeError) as e:
        raise InvalidInputError(f"Failed to read CSV '{path}': {e}") from e
    except csv.Error as e:
        raise InvalidInputError(f"Failed to parse CSV '{path}': {e}") from e


def parse(path: Path, resource_type: ResourceType) -> InputFile:
    """Parse a CSV file holding records of ``resource_type``.

    Raises:
        InvalidInputError: If the file cannot be read or a row is malformed
    """
    if resource_type == ResourceType.OBJECTIVE:
        return InputFile(objectives=_read_rows(path, row_to_objective))
    if resource_type == ResourceType.EPIC:
        return InputFile(epics=_read_rows(path, row_to_epic))
    return InputFile(stories=_read_rows(path, row_to_story))
