"""Configuration for bypass.

Settings come from three places, highest priority first: the ``--token``
command-line flag, ``SHORTCUT_*`` environment variables, and an optional
YAML config file.

Example:
    >>> from bypass.config import BypassSettings
    >>> settings = BypassSettings.load(cli_token=None)
    >>> client = ShortcutClient(settings.token, retry_policy=settings.retry_policy())
"""

from .settings import BypassSettings, default_config_path

__all__ = ["BypassSettings", "default_config_path"]
