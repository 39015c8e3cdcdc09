"""YAML manifest parser.

A manifest may hold any combination of the three top-level sections::

    objectives:
      - name: Q3 reliability
    epics:
      - name: Retry everything
        objective: Q3 reliability
        owners: alice, bob
    stories:
      - name: Add backoff
        epic: Retry everything
        type: feature
"""

from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from bypass.exceptions import InvalidInputError
from bypass.input.models import InputFile

log = structlog.get_logger(__name__)


def parse(path: Path) -> InputFile:
    """Parse a YAML manifest into an InputFile.

    Raises:
        InvalidInputError: If the file cannot be read, is not valid YAML, or
            does not match the manifest schema
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise InvalidInputError(f"Cannot read input file '{path}': {e}") from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise InvalidInputError(f"Failed to parse YAML file '{path}': {e}") from e

    if data is None:
        return InputFile()
    if not isinstance(data, dict):
        raise InvalidInputError(f"Failed to parse YAML file '{path}': top level must be a mapping")

    try:
        batch = InputFile.model_validate(data)
    except ValidationError as e:
        raise InvalidInputError(f"Failed to parse YAML file '{path}': {e}") from e

    log.debug(
        "yaml_parsed",
        path=str(path),
        objectives=len(batch.objectives),
        epics=len(batch.epics),
        stories=len(batch.stories),
    )
    return batch
