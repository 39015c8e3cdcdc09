"""
Pending-record models produced by the input parsers.

These are the normalized, not-yet-created requests the creation pipeline
consumes. Every "reference" field (objective, epic, owners, teams, team,
workflow_state) holds either a human-readable name or a literal numeric
ID string; resolution happens later, against live workspace data.

List fields accept either a YAML sequence or a comma-separated string::

    owners: [alice, bob]
    owners: "alice, bob"
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def split_list(value: Any, separator: str = ",") -> list[str]:
    """Normalize a string-or-sequence value to a list of trimmed, non-empty strings."""
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(separator)
    elif isinstance(value, (list, tuple)):
        items = [str(item) for item in value if item is not None]
    else:
        items = [str(value)]
    return [item.strip() for item in items if item.strip()]


class PendingRecord(BaseModel):
    """Fields shared by all three tiers."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str = ""
    description: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()


class PendingObjective(PendingRecord):
    state: str | None = Field(default=None, description='"in progress" | "to do" | "done"')


class PendingEpic(PendingRecord):
    objective: str | None = Field(default=None, description="Objective name or numeric ID")
    owners: list[str] = Field(default_factory=list)
    teams: list[str] = Field(default_factory=list)
    labels: list[str] = Field(default_factory=list)
    state: str | None = None
    start_date: str | None = Field(default=None, description="ISO 8601 date, e.g. 2024-01-15")
    deadline: str | None = None
    template: str | None = Field(default=None, description="Per-epic description template path")

    @field_validator("owners", "teams", "labels", mode="before")
    @classmethod
    def _split_lists(cls, value: Any) -> list[str]:
        return split_list(value)

    @field_validator("objective", "start_date", "deadline", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str | None:
        # YAML turns bare dates and integer IDs into date/int objects
        return None if value is None else str(value)


class PendingStory(PendingRecord):
    story_type: str | None = Field(default=None, alias="type", description='"feature" | "bug" | "chore"')
    epic: str | None = Field(default=None, description="Epic name or numeric ID")
    owners: list[str] = Field(default_factory=list)
    team: str | None = None
    labels: list[str] = Field(default_factory=list)
    estimate: int | None = None
    due_date: str | None = None
    workflow_state: str | None = Field(default=None, description='Workflow state name, e.g. "Backlog"')

    @field_validator("owners", "labels", mode="before")
    @classmethod
    def _split_lists(cls, value: Any) -> list[str]:
        return split_list(value)

    @field_validator("epic", "due_date", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str | None:
        return None if value is None else str(value)


class InputFile(BaseModel):
    """A normalized batch: three ordered sequences, any of which may be empty."""

    objectives: list[PendingObjective] = Field(default_factory=list)
    epics: list[PendingEpic] = Field(default_factory=list)
    stories: list[PendingStory] = Field(default_factory=list)

    @field_validator("objectives", "epics", "stories", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def total(self) -> int:
        return len(self.objectives) + len(self.epics) + len(self.stories)
