"""Sandboxed Jinja2 rendering of epic description templates.

A description template is a markdown file read once per run and rendered
for each epic it applies to. Templates run in Jinja2's
``SandboxedEnvironment`` so a manifest cannot execute arbitrary code
through a template it points at.

Available variables:
    - ``{{ name }}``: epic name
    - ``{{ description }}``: raw description from the input (may be empty)
    - ``{{ objective }}``: linked objective reference (may be empty)
    - ``{{ owners }}``, ``{{ teams }}``, ``{{ labels }}``: comma-separated names
    - ``{{ start_date }}``, ``{{ deadline }}``: dates as written in the input

Placeholders that are not in this list are written back out
(``DebugUndefined``) in Jinja's spaced form, so ``{{ticket}}`` renders as
``{{ ticket }}``. Text that must survive byte-for-byte, including literal
``{%`` or ``{#``, goes inside a ``{% raw %}`` block; outside one those
delimiters are template syntax.

Example:
    >>> template = DescriptionTemplate.load(Path("templates/epic.md"))
    >>> description = template.render(epic)
"""

from pathlib import Path
from typing import Any

import structlog
from jinja2 import DebugUndefined, TemplateError as JinjaTemplateError, TemplateSyntaxError
from jinja2.sandbox import SandboxedEnvironment

from bypass.exceptions import TemplateError
from bypass.input.models import PendingEpic

log = structlog.get_logger(__name__)


def _create_environment() -> SandboxedEnvironment:
    return SandboxedEnvironment(
        undefined=DebugUndefined,  # Leave unknown placeholders as written
        autoescape=False,  # Markdown, not HTML
        keep_trailing_newline=True,
    )


class DescriptionTemplate:
    """A compiled description template.

    Attributes:
        source: Raw template text
        origin: Where the text came from (file path or "<string>")
    """

    def __init__(self, source: str, origin: str = "<string>") -> None:
        """Compile a template.

        Raises:
            TemplateError: If the template has a syntax error
        """
        self.source = source
        self.origin = origin
        try:
            self._template = _create_environment().from_string(source)
        except TemplateSyntaxError as e:
            raise TemplateError(f"Invalid template '{origin}' (line {e.lineno}): {e.message}") from e

    @classmethod
    def load(cls, path: Path) -> "DescriptionTemplate":
        """Read and compile a template file.

        Raises:
            TemplateError: If the file cannot be read or does not compile
        """
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise TemplateError(f"Cannot read template '{path}': {e}") from e
        log.debug("template_loaded", path=str(path))
        return cls(source, origin=str(path))

    @staticmethod
    def context_for(epic: PendingEpic) -> dict[str, Any]:
        """Build the variables exposed to a template for ``epic``."""
        return {
            "name": epic.name,
            "description": epic.description or "",
            "objective": epic.objective or "",
            "owners": ", ".join(epic.owners),
            "teams": ", ".join(epic.teams),
            "labels": ", ".join(epic.labels),
            "start_date": epic.start_date or "",
            "deadline": epic.deadline or "",
        }

    def render(self, epic: PendingEpic) -> str:
        """Render the template for one epic.

        Raises:
            TemplateError: If rendering fails (e.g. a sandbox violation)
        """
        try:
            return self._template.render(self.context_for(epic))
        except JinjaTemplateError as e:
            raise TemplateError(f"Failed to render template '{self.origin}' for epic '{epic.name}': {e}") from e
