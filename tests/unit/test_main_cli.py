"""Unit tests for bypass.main CLI module.

The Shortcut client and resolver construction are patched out; these tests
cover option handling, output formats and exit codes.
"""

import json
from itertools import count
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from bypass.api.models import Epic, Objective, Story
from bypass.exceptions import ApiError
from bypass.main import cli

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep real tokens, config files and logging setup out of the tests."""
    monkeypatch.delenv("SHORTCUT_API_TOKEN", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    with patch("bypass.main.configure_logging"):
        yield


@pytest.fixture
def shortcut(mock_client, resolver):
    """Patch client construction and resolver build; yield the fake client."""
    ids = count(100)

    async def create_objective(request):
        return Objective(id=next(ids), name=request.name, app_url="https://app/objective")

    async def create_epic(request):
        return Epic(id=next(ids), name=request.name, app_url="https://app/epic")

    async def create_story(request):
        return Story(id=next(ids), name=request.name, app_url="https://app/story")

    mock_client.create_objective.side_effect = create_objective
    mock_client.create_epic.side_effect = create_epic
    mock_client.create_story.side_effect = create_story

    client_cls = MagicMock()
    client_cls.return_value.__aenter__ = AsyncMock(return_value=mock_client)
    client_cls.return_value.__aexit__ = AsyncMock(return_value=False)

    with (
        patch("bypass.main.ShortcutClient", client_cls),
        patch("bypass.main.Resolver.build", new=AsyncMock(return_value=resolver)) as build,
    ):
        mock_client.client_cls = client_cls
        mock_client.build = build
        yield mock_client


MANIFEST = """
objectives:
  - name: Q3
epics:
  - name: Retry
    objective: Q3
    owners: alice
stories:
  - name: Backoff
    epic: Retry
    type: feature
"""


# =============================================================================
# Help and global options
# =============================================================================


class TestCliBasics:
    """Tests for help output and global options."""

    def test_help(self, cli_runner):
        result = cli_runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "create" in result.output
        assert "--token" in result.output

    def test_create_help(self, cli_runner):
        result = cli_runner.invoke(cli, ["create", "--help"])
        assert result.exit_code == 0
        for option in ("--file", "--type", "--template", "--dry-run", "--output"):
            assert option in result.output

    def test_file_required(self, cli_runner):
        result = cli_runner.invoke(cli, ["create"])
        assert result.exit_code == 2

    def test_invalid_log_level(self, cli_runner, write_file):
        """An unknown log level should be a usage error."""
        path = write_file("b.yaml", MANIFEST)
        with patch("bypass.main.configure_logging", side_effect=ValueError("Invalid log level 'LOUD'")):
            result = cli_runner.invoke(cli, ["--log-level", "LOUD", "create", "-f", str(path)])
        assert result.exit_code == 2
        assert "Invalid log level" in result.output


# =============================================================================
# create: apply mode
# =============================================================================


class TestCreate:
    """Tests for the create command."""

    def test_text_output(self, cli_runner, write_file, shortcut):
        """A successful run should print each record and a summary."""
        path = write_file("b.yaml", MANIFEST)

        result = cli_runner.invoke(cli, ["--token", "t", "create", "-f", str(path)])

        assert result.exit_code == 0, result.output
        assert "Parsed  1 objective(s)  1 epic(s)  1 story/stories" in result.output
        assert "✓ objective: Q3 (#100) https://app/objective" in result.output
        assert "✓ epic: Retry (#101)" in result.output
        assert "✓ story: Backoff (#102)" in result.output
        assert "Stories created    : 1" in result.output
        shortcut.client_cls.assert_called_once()
        assert shortcut.client_cls.call_args.kwargs["token"] == "t"

    def test_json_output(self, cli_runner, write_file, shortcut):
        """JSON output should be one event per line ending in a summary."""
        path = write_file("b.yaml", MANIFEST)

        result = cli_runner.invoke(cli, ["--token", "t", "create", "-f", str(path), "--output", "json"])

        assert result.exit_code == 0, result.output
        events = [json.loads(line) for line in result.output.splitlines() if line.strip()]
        assert [e["event"] for e in events] == ["created", "created", "created", "summary"]
        assert events[0] == {
            "event": "created",
            "kind": "objective",
            "id": 100,
            "name": "Q3",
            "url": "https://app/objective",
        }
        assert events[-1]["error_count"] == 0

    def test_token_from_environment(self, cli_runner, write_file, shortcut, monkeypatch):
        monkeypatch.setenv("SHORTCUT_API_TOKEN", "env-token")
        path = write_file("b.yaml", MANIFEST)

        result = cli_runner.invoke(cli, ["create", "-f", str(path)])

        assert result.exit_code == 0, result.output
        assert shortcut.client_cls.call_args.kwargs["token"] == "env-token"

    def test_record_failure_exits_1(self, cli_runner, write_file, shortcut):
        """Any failed record should make the command exit 1 after the summary."""
        shortcut.create_story.side_effect = ApiError(422, "Bad story")
        path = write_file("b.yaml", MANIFEST)

        result = cli_runner.invoke(cli, ["--token", "t", "create", "-f", str(path), "--output", "json"])

        assert result.exit_code == 1
        events = [json.loads(line) for line in result.output.splitlines() if line.strip()]
        assert events[2] == {
            "event": "error",
            "kind": "story",
            "name": "Backoff",
            "error": "Shortcut API error (HTTP 422): Bad story",
        }
        assert events[3]["errors"] == ["Story 'Backoff': Shortcut API error (HTTP 422): Bad story"]

    def test_csv(self, cli_runner, write_file, shortcut):
        path = write_file("s.csv", "name,type\nOne,bug\nTwo,chore\n")

        result = cli_runner.invoke(cli, ["--token", "t", "create", "-f", str(path), "--type", "story"])

        assert result.exit_code == 0, result.output
        assert shortcut.create_story.await_count == 2

    def test_csv_without_type(self, cli_runner, write_file, shortcut):
        path = write_file("s.csv", "name\nOne\n")

        result = cli_runner.invoke(cli, ["--token", "t", "create", "-f", str(path)])

        assert result.exit_code == 1
        assert "Error: --type is required for CSV files." in result.output
        shortcut.build.assert_not_called()

    def test_empty_input(self, cli_runner, write_file, shortcut):
        """An empty manifest should exit 0 without contacting the API."""
        path = write_file("e.yaml", "objectives: []\n")

        result = cli_runner.invoke(cli, ["--token", "t", "create", "-f", str(path)])

        assert result.exit_code == 0
        assert "No items found in the input file." in result.output
        shortcut.client_cls.assert_not_called()

    def test_missing_token(self, cli_runner, write_file, shortcut):
        path = write_file("b.yaml", MANIFEST)

        result = cli_runner.invoke(cli, ["create", "-f", str(path)])

        assert result.exit_code == 1
        assert "Error: No Shortcut API token found" in result.output

    def test_resolver_failure_aborts(self, cli_runner, write_file, shortcut):
        """A failure while fetching workspace data should abort before any create."""
        shortcut.build.side_effect = ApiError(401, "Unauthorized")
        path = write_file("b.yaml", MANIFEST)

        result = cli_runner.invoke(cli, ["--token", "t", "create", "-f", str(path)])

        assert result.exit_code == 1
        assert "Error: Shortcut API error (HTTP 401): Unauthorized" in result.output
        shortcut.create_objective.assert_not_called()

    def test_missing_global_template(self, cli_runner, write_file, shortcut, tmp_path):
        path = write_file("b.yaml", MANIFEST)

        result = cli_runner.invoke(
            cli, ["--token", "t", "create", "-f", str(path), "--template", str(tmp_path / "none.md")]
        )

        assert result.exit_code == 1
        assert "Cannot read template" in result.output

    def test_keyboard_interrupt(self, cli_runner, write_file):
        path = write_file("b.yaml", MANIFEST)

        with patch("bypass.main.asyncio.run", side_effect=KeyboardInterrupt):
            result = cli_runner.invoke(cli, ["--token", "t", "create", "-f", str(path)])

        assert result.exit_code == 130
        assert "Interrupted by user" in result.output


# =============================================================================
# create: dry-run
# =============================================================================


class TestDryRun:
    """Tests for create --dry-run."""

    def test_valid_batch(self, cli_runner, write_file, shortcut):
        path = write_file("b.yaml", MANIFEST)

        result = cli_runner.invoke(cli, ["--token", "t", "create", "-f", str(path), "--dry-run"])

        assert result.exit_code == 0, result.output
        assert "All validations passed" in result.output
        shortcut.create_objective.assert_not_called()
        shortcut.create_epic.assert_not_called()
        shortcut.create_story.assert_not_called()

    def test_violations_json(self, cli_runner, write_file, shortcut):
        """Violations should be reported in one dry_run event and exit 1."""
        path = write_file("b.yaml", "epics:\n  - name: E\n    teams: Nowhere\n")

        result = cli_runner.invoke(
            cli, ["--token", "t", "create", "-f", str(path), "--dry-run", "--output", "json"]
        )

        assert result.exit_code == 1
        event = json.loads(result.output.strip())
        assert event["event"] == "dry_run"
        assert event["valid"] is False
        assert event["errors"] == ["Epic 'E': unknown team 'Nowhere'. Available: Platform, platform"]
        shortcut.create_epic.assert_not_called()

    def test_violations_text(self, cli_runner, write_file, shortcut):
        path = write_file("b.yaml", "stories:\n  - name: S\n    type: task\n")

        result = cli_runner.invoke(cli, ["--token", "t", "create", "-f", str(path), "--dry-run"])

        assert result.exit_code == 1
        assert "✗ 1 validation error(s):" in result.output
        assert "• Story 'S': invalid type 'task'" in result.output
