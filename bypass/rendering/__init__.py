"""Description template rendering.

Key Exports:
    DescriptionTemplate: Sandboxed Jinja2 template rendered once per epic.
"""

from .engine import DescriptionTemplate

__all__ = ["DescriptionTemplate"]
