"""
Name resolution against live workspace data.

The Resolver turns the human-readable references in a manifest (people,
teams, workflow states, parent objectives and epics) into the IDs the
Shortcut API requires.

Static maps are built once from three read calls issued concurrently:

- person full name, mention name and email -> member ID (disabled members skipped)
- team name and mention name -> group ID (archived groups skipped)
- workflow state name -> state ID (a name shared by several workflows
  keeps the ID from the last workflow listed)

Dynamic maps (objective name -> ID, epic name -> ID) start empty and are
filled by the creation pipeline right after each successful create, so a
later record in the same batch can reference an entity created earlier in
the run. The Resolver never registers anything itself.

Example:
    >>> resolver = await Resolver.build(client)
    >>> resolver.resolve_person("alice")
    '5f3c...'
    >>> resolver.register_objective("Q3 reliability", 17)
    >>> resolver.resolve_objective("Q3 reliability")
    17
"""

import asyncio
import re
from collections.abc import Iterable, Sequence

import structlog

from bypass.api.client import ShortcutClient
from bypass.api.models import Group, Member, Workflow
from bypass.exceptions import NameNotFoundError

log = structlog.get_logger(__name__)

HINT_LIMIT = 5
UNSTARTED = "unstarted"


def format_sample(names: Iterable[str], limit: int = HINT_LIMIT) -> str:
    """Render a bounded, sorted, de-duplicated sample of names for error hints.

    Example:
        >>> format_sample(["f", "a", "b", "a", "c", "d", "e", "g"])
        'a, b, c, d, e … (+2)'
    """
    unique = sorted(set(names))
    preview = ", ".join(unique[:limit])
    if len(unique) > limit:
        return f"{preview} … (+{len(unique) - limit})"
    return preview


_NUMERIC_ID = re.compile(r"-?[0-9]+", re.ASCII)


def parse_numeric_id(value: str) -> int | None:
    """Return ``value`` as an integer ID if it is a plain run of ASCII digits, else None.

    Forms ``int()`` would accept but an ID never has (``+5``, ``1_000``,
    non-ASCII digits) are treated as names.
    """
    if _NUMERIC_ID.fullmatch(value) is None:
        return None
    return int(value)


class Resolver:
    """Lookup tables built from workspace data plus IDs created in this run.

    Owned by a single pipeline for the duration of one run; no locking is
    done because records are processed one at a time.

    Attributes:
        member_map: Full name, mention name and email -> member ID
        group_map: Team name and mention name -> group ID
        workflow_state_map: Workflow state name -> state ID
        default_workflow_state_id: State used for stories that name none
        objective_map: Objective name -> ID, for objectives created this run
        epic_map: Epic name -> ID, for epics created this run
    """

    def __init__(
        self,
        member_map: dict[str, str],
        group_map: dict[str, str],
        workflow_state_map: dict[str, int],
        default_workflow_state_id: int | None,
    ) -> None:
        self.member_map = member_map
        self.group_map = group_map
        self.workflow_state_map = workflow_state_map
        self.default_workflow_state_id = default_workflow_state_id

        self.objective_map: dict[str, int] = {}
        self.epic_map: dict[str, int] = {}

    @classmethod
    async def build(cls, client: ShortcutClient) -> "Resolver":
        """Fetch members, groups and workflows concurrently and build the maps.

        If any of the three reads fails, the other two are cancelled before
        this returns, the first failure propagates and no Resolver is created.

        Raises:
            ApiError: If a read endpoint returns a non-2xx status
            TransportError: On network failure or an undecodable body
        """
        try:
            async with asyncio.TaskGroup() as tg:
                members_task = tg.create_task(client.list_members(), name="list_members")
                groups_task = tg.create_task(client.list_groups(), name="list_groups")
                workflows_task = tg.create_task(client.list_workflows(), name="list_workflows")
        except ExceptionGroup as eg:
            log.warning("resolver_build_failed", errors=[str(e) for e in eg.exceptions])
            raise eg.exceptions[0] from None
        return cls.from_workspace(members_task.result(), groups_task.result(), workflows_task.result())

    @classmethod
    def from_workspace(
        cls,
        members: Sequence[Member],
        groups: Sequence[Group],
        workflows: Sequence[Workflow],
    ) -> "Resolver":
        """Build a Resolver from already-fetched workspace data."""
        member_map: dict[str, str] = {}
        for member in members:
            if member.disabled:
                continue
            member_map[member.profile.name] = member.id
            member_map[member.profile.mention_name] = member.id
            if member.profile.email_address:
                member_map[member.profile.email_address] = member.id

        group_map: dict[str, str] = {}
        for group in groups:
            if group.archived:
                continue
            group_map[group.name] = group.id
            group_map[group.mention_name] = group.id

        workflow_state_map: dict[str, int] = {}
        first_unstarted: int | None = None
        for workflow in workflows:
            for state in workflow.states:
                previous = workflow_state_map.get(state.name)
                if previous is not None and previous != state.id:
                    log.debug(
                        "workflow_state_name_shadowed",
                        state=state.name,
                        previous_id=previous,
                        id=state.id,
                        workflow=workflow.name,
                    )
                workflow_state_map[state.name] = state.id
                if first_unstarted is None and state.type == UNSTARTED:
                    first_unstarted = state.id

        default_state_id = first_unstarted
        if default_state_id is None and workflows:
            default_state_id = workflows[0].default_state_id

        log.info(
            "resolver_built",
            members=len(member_map),
            groups=len(group_map),
            workflow_states=len(workflow_state_map),
            default_workflow_state_id=default_state_id,
        )
        return cls(member_map, group_map, workflow_state_map, default_state_id)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def resolve_person(self, name: str) -> str:
        """Resolve a full name, mention name or email to a member ID.

        Raises:
            NameNotFoundError: If no enabled member matches
        """
        member_id = self.member_map.get(name.strip())
        if member_id is None:
            raise NameNotFoundError("user", name, format_sample(self.member_map))
        return member_id

    def resolve_people(self, names: Sequence[str]) -> list[str]:
        """Resolve every name, failing on the first that does not resolve."""
        return [self.resolve_person(name) for name in names]

    def resolve_team(self, name: str) -> str:
        """Resolve a team name or mention name to a group ID.

        Raises:
            NameNotFoundError: If no active team matches
        """
        group_id = self.group_map.get(name.strip())
        if group_id is None:
            raise NameNotFoundError("team", name, format_sample(self.group_map))
        return group_id

    def resolve_teams(self, names: Sequence[str]) -> list[str]:
        """Resolve every team name, failing on the first that does not resolve."""
        return [self.resolve_team(name) for name in names]

    def resolve_workflow_stage(self, name: str) -> int:
        """Resolve a workflow state name to its ID.

        Raises:
            NameNotFoundError: If no workflow has a state by that name
        """
        state_id = self.workflow_state_map.get(name.strip())
        if state_id is None:
            raise NameNotFoundError("workflow state", name, format_sample(self.workflow_state_map))
        return state_id

    def resolve_objective(self, name: str) -> int:
        """Resolve an objective created in this run, or pass a numeric ID through.

        Raises:
            NameNotFoundError: If the name is not numeric and no objective by
                that name has been created yet
        """
        key = name.strip()
        numeric = parse_numeric_id(key)
        if numeric is not None:
            return numeric
        objective_id = self.objective_map.get(key)
        if objective_id is None:
            raise NameNotFoundError("objective", name)
        return objective_id

    def resolve_epic(self, name: str) -> int:
        """Resolve an epic created in this run, or pass a numeric ID through.

        Raises:
            NameNotFoundError: If the name is not numeric and no epic by that
                name has been created yet
        """
        key = name.strip()
        numeric = parse_numeric_id(key)
        if numeric is not None:
            return numeric
        epic_id = self.epic_map.get(key)
        if epic_id is None:
            raise NameNotFoundError("epic", name)
        return epic_id

    # Membership checks used by dry-run validation

    def has_person(self, name: str) -> bool:
        return name.strip() in self.member_map

    def has_team(self, name: str) -> bool:
        return name.strip() in self.group_map

    def has_workflow_stage(self, name: str) -> bool:
        return name.strip() in self.workflow_state_map

    def has_objective(self, name: str) -> bool:
        return name.strip() in self.objective_map

    def has_epic(self, name: str) -> bool:
        return name.strip() in self.epic_map

    # -------------------------------------------------------------------------
    # Registration (called by the pipeline after a successful create)
    # -------------------------------------------------------------------------

    def register_objective(self, name: str, objective_id: int) -> None:
        self.objective_map[name.strip()] = objective_id

    def register_epic(self, name: str, epic_id: int) -> None:
        self.epic_map[name.strip()] = epic_id

    # -------------------------------------------------------------------------
    # Available names (snapshots, for error hints)
    # -------------------------------------------------------------------------

    def available_people(self) -> list[str]:
        return list(self.member_map)

    def available_teams(self) -> list[str]:
        return list(self.group_map)

    def available_workflow_stages(self) -> list[str]:
        return list(self.workflow_state_map)
