"""Enumerations for bypass resource kinds and output formats."""

from enum import Enum


class ResourceType(str, Enum):
    """The three tiers bypass can create, in dependency order."""

    OBJECTIVE = "objective"
    EPIC = "epic"
    STORY = "story"

    def __str__(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        """Capitalized name used in failure messages ("Epic 'x': ...")."""
        return self.value.capitalize()


class OutputFormat(str, Enum):
    """How run events are rendered.

    - text: Human-readable coloured output (default)
    - json: Newline-delimited JSON records, one per event
    """

    TEXT = "text"
    JSON = "json"

    def __str__(self) -> str:
        return self.value


# Legal values for enumerated record fields
OBJECTIVE_STATES: tuple[str, ...] = ("in progress", "to do", "done")
EPIC_STATES: tuple[str, ...] = ("in progress", "to do", "done")
STORY_TYPES: tuple[str, ...] = ("bug", "chore", "feature")
