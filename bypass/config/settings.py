"""
Settings and API token discovery.

Example config file (``~/.config/bypass/config.yaml``)::

    api_token: "${SHORTCUT_TOKEN_FROM_VAULT}"
    timeout: 60
    max_retries: 3
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bypass.api.client import SHORTCUT_API_URL
from bypass.exceptions import ConfigurationError
from bypass.utils.retry import RetryPolicy

log = structlog.get_logger(__name__)

CONFIG_DIR_NAME = "bypass"
CONFIG_FILE_NAME = "config.yaml"

MISSING_TOKEN_MESSAGE = (
    "No Shortcut API token found. Provide one of:\n"
    "  1. --token <TOKEN>\n"
    "  2. SHORTCUT_API_TOKEN environment variable\n"
    "  3. api_token in {path}"
)


def default_config_path() -> Path:
    """Return ``$XDG_CONFIG_HOME/bypass/config.yaml``, falling back to ``~/.config``."""
    base = os.getenv("XDG_CONFIG_HOME")
    config_home = Path(base) if base else Path.home() / ".config"
    return config_home / CONFIG_DIR_NAME / CONFIG_FILE_NAME


class BypassSettings(BaseSettings):
    """Runtime settings for the Shortcut client.

    Every field can be set through a ``SHORTCUT_``-prefixed environment
    variable (``SHORTCUT_API_TOKEN``, ``SHORTCUT_TIMEOUT``, ...) or the same
    key, unprefixed, in the YAML config file.
    """

    model_config = SettingsConfigDict(
        env_prefix="SHORTCUT_",
        case_sensitive=False,
        extra="ignore",
    )

    api_token: SecretStr | None = Field(default=None, description="Shortcut API token")
    base_url: str = Field(default=SHORTCUT_API_URL, description="Shortcut v3 API root")
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    max_retries: int = Field(default=5, ge=0, description="Retries for 429/500/503/504 responses")
    base_delay: float = Field(default=1.0, gt=0, description="First backoff delay in seconds")
    max_delay: float = Field(default=30.0, gt=0, description="Upper bound on any single delay")

    @field_validator("api_token", mode="before")
    @classmethod
    def _blank_token_is_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def token(self) -> str:
        """The API token as plain text.

        Raises:
            ConfigurationError: If no token was configured
        """
        if self.api_token is None:
            raise ConfigurationError(MISSING_TOKEN_MESSAGE.format(path=default_config_path()))
        return self.api_token.get_secret_value().strip()

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
        )

    @classmethod
    def load(cls, cli_token: str | None = None, config_path: Path | None = None) -> BypassSettings:
        """Resolve settings from the CLI flag, the environment and the config file.

        An explicit ``config_path`` must exist; the default location is read
        only if present.

        Raises:
            ConfigurationError: If the config file is unreadable or invalid,
                or no API token is available from any source
        """
        if config_path is not None:
            file_values = cls.read_config_file(config_path)
            source_path = config_path
        else:
            source_path = default_config_path()
            file_values = cls.read_config_file(source_path) if source_path.exists() else {}

        try:
            from_env = cls()
            # Environment beats the file; the flag beats both
            values = {**file_values, **from_env.model_dump(include=from_env.model_fields_set)}
            if cli_token is not None and cli_token.strip():
                values["api_token"] = cli_token
            settings = cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        if settings.api_token is None:
            raise ConfigurationError(MISSING_TOKEN_MESSAGE.format(path=source_path))

        log.debug(
            "settings_loaded",
            config_file=str(source_path) if file_values else None,
            base_url=settings.base_url,
            timeout=settings.timeout,
            max_retries=settings.max_retries,
        )
        return settings

    @classmethod
    def read_config_file(cls, config_path: Path) -> dict[str, Any]:
        """Read a YAML config file with environment variable interpolation.

        Raises:
            ConfigurationError: If the file is missing, unreadable or not a YAML mapping
        """
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            yaml_content = config_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Cannot read configuration file: {config_path}") from e

        try:
            yaml_content = cls._interpolate_env_vars(yaml_content)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment variable reference in config: {e}") from e

        try:
            config_dict = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e

        if config_dict is None:
            return {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")
        return config_dict

    @staticmethod
    def _interpolate_env_vars(content: str) -> str:
        """Interpolate ``${VAR_NAME}`` and ``${VAR_NAME:-default}`` placeholders.

        Comment lines are left untouched.

        Raises:
            ValueError: If a referenced variable is unset and has no default
        """
        pattern = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            value = os.getenv(var_name)

            if value is not None:
                return value
            if default_value is not None:
                return default_value
            raise ValueError(f"Environment variable {var_name} is not set")

        def process_line(line: str) -> str:
            if line.lstrip().startswith("#"):
                return line
            return pattern.sub(replace_var, line)

        return "\n".join(process_line(line) for line in content.split("\n"))
