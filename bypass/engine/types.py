"""Run results and the events a run reports to the presentation layer.

A run produces, in order:

- one ``RecordEvent`` per processed record (apply mode), then one
  ``SummaryEvent``; or
- a single ``ValidationEvent`` (dry-run mode).

Each event has a ``to_dict()`` giving the JSON-lines shape used by
``--output json``::

    {"event": "created", "kind": "epic", "id": 42, "name": "Retry", "url": "..."}
    {"event": "error", "kind": "story", "name": "Backoff", "error": "..."}
    {"event": "summary", "objectives_created": 1, ..., "errors": [...]}
    {"event": "dry_run", "valid": false, "errors": [...]}
"""

from dataclasses import dataclass, field
from typing import Any

from bypass.enums import ResourceType


@dataclass(frozen=True)
class FailureEntry:
    """One record that could not be created."""

    kind: ResourceType
    name: str
    message: str

    def __str__(self) -> str:
        return f"{self.kind.label} '{self.name}': {self.message}"


@dataclass
class RunResults:
    """Counters and failures accumulated over one apply-mode run.

    Created empty when the pipeline starts and mutated once per record.
    """

    objectives_created: int = 0
    epics_created: int = 0
    stories_created: int = 0
    failures: list[FailureEntry] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when no record failed."""
        return not self.failures

    def record_success(self, kind: ResourceType) -> None:
        if kind == ResourceType.OBJECTIVE:
            self.objectives_created += 1
        elif kind == ResourceType.EPIC:
            self.epics_created += 1
        else:
            self.stories_created += 1

    def record_failure(self, kind: ResourceType, name: str, message: str) -> FailureEntry:
        entry = FailureEntry(kind=kind, name=name, message=message)
        self.failures.append(entry)
        return entry


@dataclass(frozen=True)
class RecordEvent:
    """Outcome of one record: created (with ID and URL) or failed (with message)."""

    kind: ResourceType
    name: str
    id: int | None = None
    url: str | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        if self.succeeded:
            return {"event": "created", "kind": str(self.kind), "id": self.id, "name": self.name, "url": self.url}
        return {"event": "error", "kind": str(self.kind), "name": self.name, "error": self.error}


@dataclass(frozen=True)
class SummaryEvent:
    """Terminal event of an apply-mode run."""

    objectives_created: int
    epics_created: int
    stories_created: int
    errors: tuple[str, ...] = ()

    @classmethod
    def from_results(cls, results: RunResults) -> "SummaryEvent":
        return cls(
            objectives_created=results.objectives_created,
            epics_created=results.epics_created,
            stories_created=results.stories_created,
            errors=tuple(str(failure) for failure in results.failures),
        )

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event": "summary",
            "objectives_created": self.objectives_created,
            "epics_created": self.epics_created,
            "stories_created": self.stories_created,
            "error_count": self.error_count,
            "errors": list(self.errors),
        }


@dataclass(frozen=True)
class ValidationEvent:
    """Single event of a dry-run: overall verdict plus every violation found."""

    errors: tuple[str, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {"event": "dry_run", "valid": self.valid, "errors": list(self.errors)}
