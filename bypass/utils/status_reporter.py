"""Status reporting for run events.

Two renderings of the same event stream:

- ``TextReporter``: coloured, human-readable lines for a terminal
- ``JsonReporter``: one JSON object per line on stdout, for scripts
"""

import json
from typing import Any

import click

from bypass.engine.types import RecordEvent, SummaryEvent, ValidationEvent
from bypass.enums import OutputFormat
from bypass.input.models import InputFile

SUMMARY_RULE = "─── Summary ───────────────────────────────────"


class StatusReporter:
    """Base reporter. Subclasses decide how each event is written."""

    def parsed(self, batch: InputFile) -> None:
        """Announce how many records were parsed."""

    def fetching_workspace(self) -> None:
        """Announce that workspace data is being fetched."""

    def workspace_ready(self) -> None:
        """Announce that the resolver is built."""

    def workspace_failed(self) -> None:
        """Called when the resolver could not be built."""

    def record(self, event: RecordEvent) -> None:
        raise NotImplementedError

    def summary(self, event: SummaryEvent) -> None:
        raise NotImplementedError

    def validation(self, event: ValidationEvent) -> None:
        raise NotImplementedError


class TextReporter(StatusReporter):
    """Human-readable output: progress lines on stderr, results on stdout."""

    def parsed(self, batch: InputFile) -> None:
        click.echo(
            f"Parsed  {click.style(str(len(batch.objectives)), fg='cyan')} objective(s)  "
            f"{click.style(str(len(batch.epics)), fg='cyan')} epic(s)  "
            f"{click.style(str(len(batch.stories)), fg='cyan')} story/stories"
        )

    def fetching_workspace(self) -> None:
        click.echo("Fetching workspace data (members, groups, workflows)…", err=True, nl=False)

    def workspace_ready(self) -> None:
        click.echo(f"  {click.style('done', fg='green')}", err=True)

    def workspace_failed(self) -> None:
        # End the pending progress line
        click.echo(err=True)

    def record(self, event: RecordEvent) -> None:
        if event.succeeded:
            url = f" {click.style(event.url, dim=True)}" if event.url else ""
            click.echo(f"{click.style('✓', fg='green')} {event.kind}: {event.name} (#{event.id}){url}")
        else:
            click.echo(f"{click.style('✗', fg='red')} {event.kind}: {event.name}")
            click.echo(f"  {click.style(event.error or '', fg='red')}")

    def summary(self, event: SummaryEvent) -> None:
        click.echo()
        click.echo(click.style(SUMMARY_RULE, dim=True))
        click.echo(f"  Objectives created : {click.style(str(event.objectives_created), fg='green')}")
        click.echo(f"  Epics created      : {click.style(str(event.epics_created), fg='green')}")
        click.echo(f"  Stories created    : {click.style(str(event.stories_created), fg='green')}")
        if event.errors:
            click.echo(f"  Errors             : {click.style(str(event.error_count), fg='red')}")
            for error in event.errors:
                click.echo(f"    {click.style('✗', fg='red')} {error}")

    def validation(self, event: ValidationEvent) -> None:
        if event.valid:
            click.echo(
                f"{click.style('✓', fg='green')} All validations passed – no resources created (dry run)."
            )
            return
        click.echo(f"{click.style('✗', fg='red')} {len(event.errors)} validation error(s):")
        for error in event.errors:
            click.echo(f"  {click.style('•', fg='red')} {error}")


class JsonReporter(StatusReporter):
    """Newline-delimited JSON on stdout; nothing else is written there."""

    def _emit(self, payload: dict[str, Any]) -> None:
        click.echo(json.dumps(payload, ensure_ascii=False))

    def record(self, event: RecordEvent) -> None:
        self._emit(event.to_dict())

    def summary(self, event: SummaryEvent) -> None:
        self._emit(event.to_dict())

    def validation(self, event: ValidationEvent) -> None:
        self._emit(event.to_dict())


def create_reporter(output: OutputFormat) -> StatusReporter:
    """Return the reporter for an ``--output`` choice."""
    if output == OutputFormat.JSON:
        return JsonReporter()
    return TextReporter()
