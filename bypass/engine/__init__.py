"""Name resolution and creation engine.

Key Components:
    - Resolver: Name -> ID lookups built from workspace data, grown during a run
    - CreationPipeline: Creates objectives, epics and stories in tier order
    - DryRunValidator: Reports every problem in a batch without creating anything

Type Definitions:
    - RunResults: Per-tier counters and failures of one run
    - RecordEvent, SummaryEvent, ValidationEvent: Events sent to the reporter
"""

from bypass.engine.pipeline import CreationPipeline
from bypass.engine.resolver import Resolver, format_sample
from bypass.engine.types import FailureEntry, RecordEvent, RunResults, SummaryEvent, ValidationEvent
from bypass.engine.validation import DryRunValidator

__all__ = [
    "CreationPipeline",
    "DryRunValidator",
    "FailureEntry",
    "RecordEvent",
    "Resolver",
    "RunResults",
    "SummaryEvent",
    "ValidationEvent",
    "format_sample",
]
