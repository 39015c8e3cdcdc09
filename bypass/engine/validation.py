"""Dry-run validation: check a batch against the workspace without creating anything."""

from pathlib import Path

import structlog

from bypass.engine.resolver import Resolver, format_sample, parse_numeric_id
from bypass.engine.types import ValidationEvent
from bypass.enums import EPIC_STATES, OBJECTIVE_STATES, STORY_TYPES
from bypass.input.models import InputFile, PendingEpic, PendingObjective, PendingStory

log = structlog.get_logger(__name__)


def _is_numeric(value: str) -> bool:
    return parse_numeric_id(value.strip()) is not None


class DryRunValidator:
    """Collects every violation in a batch, in input order.

    Reference checks consult only the resolver's static maps, the names of
    records in the same batch, and whatever the resolver's dynamic maps
    already hold. Validation never mutates the resolver, so running it
    twice over the same batch gives the same result.
    """

    def __init__(self, resolver: Resolver) -> None:
        self.resolver = resolver

    def validate(self, batch: InputFile) -> ValidationEvent:
        errors: list[str] = []

        for objective in batch.objectives:
            errors.extend(self._check_objective(objective))

        batch_objectives = {objective.name for objective in batch.objectives}
        for epic in batch.epics:
            errors.extend(self._check_epic(epic, batch_objectives))

        batch_epics = {epic.name for epic in batch.epics}
        for story in batch.stories:
            errors.extend(self._check_story(story, batch_epics))

        log.info("dry_run_validated", records=batch.total, violations=len(errors))
        return ValidationEvent(errors=tuple(errors))

    def _check_objective(self, objective: PendingObjective) -> list[str]:
        errors = []
        if not objective.name:
            errors.append("Objective: 'name' is required")
        if objective.state is not None and objective.state not in OBJECTIVE_STATES:
            errors.append(
                f"Objective '{objective.name}': invalid state '{objective.state}'. "
                "Must be 'in progress', 'to do', or 'done'"
            )
        return errors

    def _check_epic(self, epic: PendingEpic, batch_objectives: set[str]) -> list[str]:
        if not epic.name:
            return ["Epic: 'name' is required"]

        errors = []
        prefix = f"Epic '{epic.name}'"
        if epic.state is not None and epic.state not in EPIC_STATES:
            errors.append(
                f"{prefix}: invalid state '{epic.state}'. Must be 'in progress', 'to do', or 'done'"
            )
        for owner in epic.owners:
            if not self.resolver.has_person(owner):
                errors.append(self._unknown_user(prefix, owner))
        for team in epic.teams:
            if not self.resolver.has_team(team):
                errors.append(self._unknown_team(prefix, team))
        if epic.objective is not None and not self._objective_known(epic.objective, batch_objectives):
            errors.append(
                f"{prefix}: objective '{epic.objective}' not found in current batch "
                "(use a numeric ID to reference a pre-existing objective)"
            )
        if epic.template is not None and not Path(epic.template).is_file():
            errors.append(f"{prefix}: template file '{epic.template}' not found")
        return errors

    def _check_story(self, story: PendingStory, batch_epics: set[str]) -> list[str]:
        if not story.name:
            return ["Story: 'name' is required"]

        errors = []
        prefix = f"Story '{story.name}'"
        if story.story_type is not None and story.story_type not in STORY_TYPES:
            errors.append(
                f"{prefix}: invalid type '{story.story_type}'. Must be 'bug', 'chore', or 'feature'"
            )
        for owner in story.owners:
            if not self.resolver.has_person(owner):
                errors.append(self._unknown_user(prefix, owner))
        if story.team is not None and not self.resolver.has_team(story.team):
            errors.append(self._unknown_team(prefix, story.team))
        if story.epic is not None and not self._epic_known(story.epic, batch_epics):
            errors.append(
                f"{prefix}: epic '{story.epic}' not found in current batch "
                "(use a numeric ID to reference a pre-existing epic)"
            )
        if story.workflow_state is not None and not self.resolver.has_workflow_stage(story.workflow_state):
            errors.append(
                f"{prefix}: unknown workflow state '{story.workflow_state}'. "
                f"Available: {format_sample(self.resolver.available_workflow_stages())}"
            )
        return errors

    def _objective_known(self, reference: str, batch_objectives: set[str]) -> bool:
        return (
            _is_numeric(reference)
            or reference.strip() in batch_objectives
            or self.resolver.has_objective(reference)
        )

    def _epic_known(self, reference: str, batch_epics: set[str]) -> bool:
        return _is_numeric(reference) or reference.strip() in batch_epics or self.resolver.has_epic(reference)

    def _unknown_user(self, prefix: str, name: str) -> str:
        return f"{prefix}: unknown user '{name}'. Available: {format_sample(self.resolver.available_people())}"

    def _unknown_team(self, prefix: str, name: str) -> str:
        return f"{prefix}: unknown team '{name}'. Available: {format_sample(self.resolver.available_teams())}"
