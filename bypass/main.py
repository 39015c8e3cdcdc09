"""CLI entry point for bypass."""

import asyncio
import sys
from pathlib import Path

import click
import structlog

from bypass import __version__
from bypass.api.client import ShortcutClient
from bypass.config.settings import BypassSettings
from bypass.engine.pipeline import CreationPipeline
from bypass.engine.resolver import Resolver
from bypass.enums import OutputFormat, ResourceType
from bypass.exceptions import BypassError
from bypass.input import InputFile, parse_file
from bypass.rendering import DescriptionTemplate
from bypass.utils.logging_config import configure_logging
from bypass.utils.status_reporter import StatusReporter, create_reporter

log = structlog.get_logger(__name__)


@click.group()
@click.version_option(__version__, prog_name="bypass")
@click.option("--token", default=None, help="Shortcut API token (overrides SHORTCUT_API_TOKEN and the config file)")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to configuration file (default: ~/.config/bypass/config.yaml)",
)
@click.option("--log-level", default="WARNING", help="Logging level")
@click.pass_context
def cli(ctx: click.Context, token: str | None, config_path: Path | None, log_level: str) -> None:
    """bypass: bulk-create Shortcut objectives, epics and stories."""
    try:
        configure_logging(log_level)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--log-level") from e

    ctx.obj = {"token": token, "config_path": config_path}


@cli.command()
@click.option(
    "--file",
    "-f",
    "file_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Input file (.yaml, .yml, .csv or .xlsx)",
)
@click.option(
    "--type",
    "resource_type",
    type=click.Choice([t.value for t in ResourceType]),
    default=None,
    help="Resource type of every row (required for CSV; reads the first sheet of a workbook)",
)
@click.option(
    "--template",
    "template_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Markdown template rendered into each epic's description",
)
@click.option("--dry-run", is_flag=True, help="Validate only; create nothing")
@click.option(
    "--output",
    type=click.Choice([f.value for f in OutputFormat]),
    default=OutputFormat.TEXT.value,
    help="Output format",
)
@click.pass_context
def create(
    ctx: click.Context,
    file_path: Path,
    resource_type: str | None,
    template_path: Path | None,
    dry_run: bool,
    output: str,
) -> None:
    """Create resources from an input file."""
    try:
        settings = BypassSettings.load(ctx.obj["token"], ctx.obj["config_path"])
        batch = parse_file(file_path, ResourceType(resource_type) if resource_type else None)

        if batch.total == 0:
            click.echo(click.style("No items found in the input file.", fg="yellow"), err=True)
            return

        template = DescriptionTemplate.load(template_path) if template_path else None
        reporter = create_reporter(OutputFormat(output))
        ok = asyncio.run(_create(settings, batch, reporter, template, dry_run))
    except BypassError as e:
        click.echo(f"Error: {e}", err=True)
        log.debug("create_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)

    if not ok:
        sys.exit(1)


async def _create(
    settings: BypassSettings,
    batch: InputFile,
    reporter: StatusReporter,
    template: DescriptionTemplate | None,
    dry_run: bool,
) -> bool:
    """Build the resolver, then create or validate the batch.

    Returns:
        True if every record was created (or, in dry-run, the batch is valid)
    """
    reporter.parsed(batch)

    async with ShortcutClient(
        token=settings.token,
        base_url=settings.base_url,
        timeout=settings.timeout,
        retry_policy=settings.retry_policy(),
    ) as client:
        reporter.fetching_workspace()
        try:
            resolver = await Resolver.build(client)
        except BypassError:
            reporter.workspace_failed()
            raise
        reporter.workspace_ready()

        pipeline = CreationPipeline(client, resolver, reporter, global_template=template)
        if dry_run:
            return pipeline.dry_run(batch).valid

        results = await pipeline.run(batch)
        return results.ok


if __name__ == "__main__":
    cli()
