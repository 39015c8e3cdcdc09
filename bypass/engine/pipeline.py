"""
Creation pipeline: objectives, then epics, then stories.

The pipeline processes a parsed batch strictly in tier order, and within
each tier strictly in input order, one record at a time. Each record goes
through the same lifecycle:

    1. Build the create request, resolving every name reference
    2. Send it through the Shortcut client (retries happen there)
    3. On success, register the new ID (objectives and epics) so later
       records in the same run can refer to it by name
    4. On failure, record the error and move on to the next record

A failing record never aborts the batch. Only errors raised while building
the resolver (before the pipeline exists) stop a run early.

Example:
    >>> resolver = await Resolver.build(client)
    >>> pipeline = CreationPipeline(client, resolver, reporter)
    >>> results = await pipeline.run(batch)
    >>> results.ok
    True
"""

from __future__ import annotations

from collections.abc import Awaitable
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from bypass.api.client import ShortcutClient
from bypass.api.models import (
    CreateEpicRequest,
    CreateLabelParams,
    CreateObjectiveRequest,
    CreateStoryRequest,
    Epic,
    Objective,
    Story,
)
from bypass.engine.resolver import Resolver
from bypass.engine.types import RecordEvent, RunResults, SummaryEvent, ValidationEvent
from bypass.engine.validation import DryRunValidator
from bypass.enums import ResourceType
from bypass.exceptions import BypassError
from bypass.input.models import InputFile, PendingEpic, PendingObjective, PendingStory
from bypass.rendering import DescriptionTemplate

if TYPE_CHECKING:
    from bypass.utils.status_reporter import StatusReporter

log = structlog.get_logger(__name__)


def _labels(names: list[str]) -> list[CreateLabelParams] | None:
    if not names:
        return None
    return [CreateLabelParams(name=name) for name in names]


class CreationPipeline:
    """Sequence record creation across the three tiers.

    Attributes:
        client: Shortcut API client
        resolver: Name resolver, grown as objectives and epics are created
        reporter: Receives one event per record and a final summary
        global_template: Description template applied to every epic that
            does not name its own
    """

    def __init__(
        self,
        client: ShortcutClient,
        resolver: Resolver,
        reporter: StatusReporter,
        global_template: DescriptionTemplate | None = None,
    ) -> None:
        self.client = client
        self.resolver = resolver
        self.reporter = reporter
        self.global_template = global_template

    async def run(self, batch: InputFile) -> RunResults:
        """Create every record in the batch and report the outcome.

        Args:
            batch: Parsed input; any of its three sections may be empty

        Returns:
            Counters and failures for the run. ``results.ok`` is False if
            any record failed.
        """
        results = RunResults()
        log.info(
            "pipeline_started",
            objectives=len(batch.objectives),
            epics=len(batch.epics),
            stories=len(batch.stories),
        )

        for objective in batch.objectives:
            await self._process(ResourceType.OBJECTIVE, objective.name, self._create_objective(objective), results)

        for epic in batch.epics:
            await self._process(ResourceType.EPIC, epic.name, self._create_epic(epic), results)

        for story in batch.stories:
            await self._process(ResourceType.STORY, story.name, self._create_story(story), results)

        summary = SummaryEvent.from_results(results)
        self.reporter.summary(summary)
        log.info(
            "pipeline_finished",
            objectives_created=results.objectives_created,
            epics_created=results.epics_created,
            stories_created=results.stories_created,
            failures=len(results.failures),
        )
        return results

    def dry_run(self, batch: InputFile) -> ValidationEvent:
        """Validate the batch without issuing any create call."""
        event = DryRunValidator(self.resolver).validate(batch)
        self.reporter.validation(event)
        return event

    async def _process(
        self,
        kind: ResourceType,
        name: str,
        creation: Awaitable[Objective | Epic | Story],
        results: RunResults,
    ) -> None:
        """Await one create coroutine and turn its outcome into an event."""
        try:
            created = await creation
        except BypassError as e:
            message = str(e)
            results.record_failure(kind, name, message)
            log.warning("record_failed", kind=str(kind), name=name, error=message)
            self.reporter.record(RecordEvent(kind=kind, name=name, error=message))
            return

        results.record_success(kind)
        log.info("record_created", kind=str(kind), name=created.name, id=created.id)
        self.reporter.record(RecordEvent(kind=kind, name=created.name, id=created.id, url=created.app_url))

    # -------------------------------------------------------------------------
    # Per-tier builders
    # -------------------------------------------------------------------------

    async def _create_objective(self, objective: PendingObjective) -> Objective:
        request = CreateObjectiveRequest(
            name=objective.name,
            description=objective.description,
            state=objective.state,
        )
        created = await self.client.create_objective(request)
        self.resolver.register_objective(objective.name, created.id)
        return created

    async def _create_epic(self, epic: PendingEpic) -> Epic:
        owner_ids = self.resolver.resolve_people(epic.owners) if epic.owners else None
        group_ids = self.resolver.resolve_teams(epic.teams) if epic.teams else None
        objective_ids = None
        if epic.objective is not None:
            objective_ids = [self.resolver.resolve_objective(epic.objective)]

        template = self._template_for(epic)
        description = template.render(epic) if template is not None else epic.description

        request = CreateEpicRequest(
            name=epic.name,
            description=description,
            state=epic.state,
            objective_ids=objective_ids,
            owner_ids=owner_ids,
            group_ids=group_ids,
            labels=_labels(epic.labels),
            planned_start_date=epic.start_date,
            deadline=epic.deadline,
        )
        created = await self.client.create_epic(request)
        self.resolver.register_epic(epic.name, created.id)
        return created

    async def _create_story(self, story: PendingStory) -> Story:
        owner_ids = self.resolver.resolve_people(story.owners) if story.owners else None
        group_id = self.resolver.resolve_team(story.team) if story.team is not None else None
        epic_id = self.resolver.resolve_epic(story.epic) if story.epic is not None else None

        if story.workflow_state is not None:
            workflow_state_id = self.resolver.resolve_workflow_stage(story.workflow_state)
        else:
            workflow_state_id = self.resolver.default_workflow_state_id

        request = CreateStoryRequest(
            name=story.name,
            story_type=story.story_type,
            description=story.description,
            owner_ids=owner_ids,
            group_id=group_id,
            epic_id=epic_id,
            workflow_state_id=workflow_state_id,
            labels=_labels(story.labels),
            estimate=story.estimate,
            deadline=story.due_date,
        )
        return await self.client.create_story(request)

    def _template_for(self, epic: PendingEpic) -> DescriptionTemplate | None:
        # Per-epic template wins over the run-wide one
        if epic.template is not None:
            return DescriptionTemplate.load(Path(epic.template))
        return self.global_template
