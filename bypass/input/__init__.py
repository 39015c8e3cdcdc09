"""Input layer: turn a manifest file into a normalized batch.

Format is detected from the file extension:

- ``.yaml`` / ``.yml``: section keys decide the resource types;
  ``resource_type`` is ignored
- ``.csv``: one resource type per file; ``resource_type`` is required
- ``.xlsx`` / ``.xls``: ``resource_type`` picks the first sheet; without it,
  sheets are matched to resource types by name
"""

from pathlib import Path

from bypass.enums import ResourceType
from bypass.exceptions import InvalidInputError, UnsupportedFormatError
from bypass.input import csv_input, xlsx_input, yaml_input
from bypass.input.models import InputFile, PendingEpic, PendingObjective, PendingStory

__all__ = [
    "InputFile",
    "PendingEpic",
    "PendingObjective",
    "PendingStory",
    "parse_file",
]


def parse_file(path: Path, resource_type: ResourceType | None = None) -> InputFile:
    """Detect the file format from its extension and parse it.

    Raises:
        InvalidInputError: If the file is malformed, or a CSV is given without a type
        UnsupportedFormatError: If the extension is not supported
    """
    extension = path.suffix.lower().lstrip(".")

    if extension in ("yaml", "yml"):
        return yaml_input.parse(path)
    if extension == "csv":
        if resource_type is None:
            raise InvalidInputError(
                "--type is required for CSV files.\n  Use: --type objective | epic | story"
            )
        return csv_input.parse(path, resource_type)
    if extension in ("xlsx", "xls"):
        return xlsx_input.parse(path, resource_type)
    raise UnsupportedFormatError(extension)
