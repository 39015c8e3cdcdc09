"""
Pydantic models for the Shortcut v3 REST API.

Read models (members, groups, workflows) are decoded once per run to
build the name resolver. Create requests are serialized with
``exclude_none`` so that optional fields the record did not set are left
out of the request body entirely. Unknown response fields are ignored.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ShortcutModel(BaseModel):
    """Base for response models; ignores fields bypass does not use."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class CreateRequest(BaseModel):
    """Base for create-request bodies."""

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready body with unset optional fields omitted."""
        return self.model_dump(mode="json", exclude_none=True, by_alias=True)


# -----------------------------------------------------------------------------
# Shared
# -----------------------------------------------------------------------------


class CreateLabelParams(BaseModel):
    """Label attached by name; Shortcut creates it if it does not exist."""

    name: str


# -----------------------------------------------------------------------------
# Objectives
# -----------------------------------------------------------------------------


class CreateObjectiveRequest(CreateRequest):
    """POST /api/v3/objectives"""

    name: str
    description: str | None = None
    state: str | None = Field(default=None, description='"in progress" | "to do" | "done"')


class Objective(ShortcutModel):
    id: int
    name: str
    description: str | None = None
    state: str | None = None
    app_url: str | None = None


# -----------------------------------------------------------------------------
# Epics
# -----------------------------------------------------------------------------


class CreateEpicRequest(CreateRequest):
    """POST /api/v3/epics"""

    name: str
    description: str | None = None
    state: str | None = None
    objective_ids: list[int] | None = None
    owner_ids: list[str] | None = None
    group_ids: list[str] | None = None
    labels: list[CreateLabelParams] | None = None
    planned_start_date: str | None = Field(default=None, description="ISO 8601 date, e.g. 2024-01-15")
    deadline: str | None = None


class Epic(ShortcutModel):
    id: int
    name: str
    description: str | None = None
    state: str | None = None
    app_url: str | None = None


# -----------------------------------------------------------------------------
# Stories
# -----------------------------------------------------------------------------


class CreateStoryRequest(CreateRequest):
    """POST /api/v3/stories

    ``workflow_state_id`` is effectively required by the API; the pipeline
    fills it with the workspace default when the record names no state.
    """

    name: str
    story_type: str | None = None
    description: str | None = None
    owner_ids: list[str] | None = None
    group_id: str | None = None
    epic_id: int | None = None
    workflow_state_id: int | None = None
    labels: list[CreateLabelParams] | None = None
    estimate: int | None = None
    deadline: str | None = None


class Story(ShortcutModel):
    id: int
    name: str
    story_type: str | None = None
    app_url: str | None = None


# -----------------------------------------------------------------------------
# Members / Groups / Workflows (read-only, for name resolution)
# -----------------------------------------------------------------------------


class MemberProfile(ShortcutModel):
    name: str
    mention_name: str
    email_address: str | None = None


class Member(ShortcutModel):
    """A workspace member. Disabled members never resolve."""

    id: str
    profile: MemberProfile
    disabled: bool = False


class Group(ShortcutModel):
    """A team (called "group" by the API). Archived groups never resolve."""

    id: str
    name: str
    mention_name: str
    archived: bool = False


class WorkflowState(ShortcutModel):
    id: int
    name: str
    type: str = Field(description='Category such as "unstarted", "started" or "done"')


class Workflow(ShortcutModel):
    id: int
    name: str
    default_state_id: int
    states: list[WorkflowState] = Field(default_factory=list)
