"""Shortcut API access.

Key Components:
    - ShortcutClient: Authenticated async client with retry on 429/5xx
    - RequestDescriptor: Immutable request re-sent on each retry
    - models: Pydantic models for members, groups, workflows and the
      objective/epic/story create endpoints

Example:
    >>> from bypass.api import ShortcutClient
    >>> async with ShortcutClient(token=token) as client:
    ...     workflows = await client.list_workflows()
"""

from bypass.api.client import SHORTCUT_API_URL, RequestDescriptor, ShortcutClient

__all__ = ["SHORTCUT_API_URL", "RequestDescriptor", "ShortcutClient"]
