"""Pytest configuration and shared fixtures."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
import structlog

from bypass.api.client import ShortcutClient
from bypass.api.models import Group, Member, Workflow
from bypass.engine.resolver import Resolver
from bypass.utils.status_reporter import StatusReporter


@pytest.fixture(autouse=True)
def captured_logs():
    """Capture structlog events instead of printing them."""
    with structlog.testing.capture_logs() as logs:
        yield logs


@pytest.fixture
def sample_members() -> list[Member]:
    """Two active members and one disabled member."""
    return [
        Member.model_validate(
            {
                "id": "m-alice",
                "profile": {"name": "Alice Smith", "mention_name": "alice", "email_address": "alice@example.com"},
            }
        ),
        Member.model_validate(
            {
                "id": "m-bob",
                "profile": {"name": "Bob Jones", "mention_name": "bob", "email_address": None},
            }
        ),
        Member.model_validate(
            {
                "id": "m-carol",
                "disabled": True,
                "profile": {"name": "Carol Old", "mention_name": "carol"},
            }
        ),
    ]


@pytest.fixture
def sample_groups() -> list[Group]:
    """One active team and one archived team."""
    return [
        Group(id="g-platform", name="Platform", mention_name="platform"),
        Group(id="g-legacy", name="Legacy", mention_name="legacy", archived=True),
    ]


@pytest.fixture
def sample_workflows() -> list[Workflow]:
    """Two workflows sharing a "Done" state name."""
    return [
        Workflow.model_validate(
            {
                "id": 1,
                "name": "Engineering",
                "default_state_id": 500,
                "states": [
                    {"id": 500, "name": "Backlog", "type": "unstarted"},
                    {"id": 501, "name": "In Progress", "type": "started"},
                    {"id": 502, "name": "Done", "type": "done"},
                ],
            }
        ),
        Workflow.model_validate(
            {
                "id": 2,
                "name": "Support",
                "default_state_id": 600,
                "states": [
                    {"id": 600, "name": "Triage", "type": "unstarted"},
                    {"id": 602, "name": "Done", "type": "done"},
                ],
            }
        ),
    ]


@pytest.fixture
def resolver(sample_members, sample_groups, sample_workflows) -> Resolver:
    """Resolver built from the sample workspace."""
    return Resolver.from_workspace(sample_members, sample_groups, sample_workflows)


@pytest.fixture
def mock_client() -> MagicMock:
    """ShortcutClient stand-in with async create methods."""
    client = MagicMock(spec=ShortcutClient)
    client.create_objective = AsyncMock()
    client.create_epic = AsyncMock()
    client.create_story = AsyncMock()
    return client


@pytest.fixture
def mock_reporter() -> MagicMock:
    """Reporter that records every event it receives."""
    return MagicMock(spec=StatusReporter)


@pytest.fixture
def write_file(tmp_path: Path):
    """Write ``content`` to ``name`` under tmp_path and return the path."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write
