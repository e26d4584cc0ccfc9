"""Configuration management for fsaudit.

Handles configuration loading from multiple sources with precedence:
CLI args > environment variables > .fsauditrc > pyproject.toml > defaults
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from fsaudit.report import DEFAULT_REDACT_FIELDS

# tomllib is only available in Python 3.11+
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import-not-found]


@dataclass
class AuditConfig:
    """Configuration for an audit run.

    Attributes:
        schema: Path to the JSON schema file (default: "schema.json")
        output: Path the JSON report is written to (default: "audit-report.json")
        credentials: Service-account credentials file. None uses application
            default credentials.
        limit: Documents fetched per top-level collection, 0 for unlimited (default: 1000)
        parent_limit: Parent documents enumerated per subcollection, 0 for unlimited (default: 0)
        redact_fields: Field names redacted from report snapshots
    """

    schema: str = "schema.json"
    output: str = "audit-report.json"
    credentials: str | None = None
    limit: int = 1000
    parent_limit: int = 0
    redact_fields: tuple[str, ...] = DEFAULT_REDACT_FIELDS

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if isinstance(self.redact_fields, list):
            self.redact_fields = tuple(self.redact_fields)
        self._validate()

    def _validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If any configuration value is invalid.
        """
        if not self.schema or not isinstance(self.schema, str):
            raise ValueError("schema must be a non-empty string")

        if not self.output or not isinstance(self.output, str):
            raise ValueError("output must be a non-empty string")

        if self.credentials is not None and (
            not self.credentials or not isinstance(self.credentials, str)
        ):
            raise ValueError("credentials must be a non-empty string")

        for name in ("limit", "parent_limit"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer")

        if not isinstance(self.redact_fields, tuple) or not all(
            isinstance(f, str) and f for f in self.redact_fields
        ):
            raise ValueError("redact_fields must be a list of non-empty strings")

    def get_schema_path(self, base_path: Path | None = None) -> Path:
        """Get the schema file path, resolved against base_path (default: cwd)."""
        return (base_path or Path.cwd()) / self.schema

    def get_output_path(self, base_path: Path | None = None) -> Path:
        """Get the report output path, resolved against base_path (default: cwd)."""
        return (base_path or Path.cwd()) / self.output

    def get_credentials_path(self, base_path: Path | None = None) -> Path | None:
        """Get the credentials file path, or None for default credentials."""
        if self.credentials is None:
            return None
        return (base_path or Path.cwd()) / self.credentials


def _get_config_field_names() -> set[str]:
    """Get the set of valid configuration field names."""
    return {f.name for f in fields(AuditConfig)}


def find_config_file(filename: str = ".fsauditrc", start_dir: Path | None = None) -> Path | None:
    """Find a configuration file by traversing up the directory tree.

    Args:
        filename: Name of the config file to find.
        start_dir: Directory to start searching from. Defaults to current directory.

    Returns:
        Path to the config file if found, None otherwise.
    """
    current = (start_dir or Path.cwd()).resolve()

    while True:
        config_path = current / filename
        if config_path.is_file():
            return config_path

        parent = current.parent
        if parent == current:
            # Reached filesystem root
            return None
        current = parent


def _load_toml_file(path: Path) -> dict[str, Any]:
    """Load a TOML file and return its contents.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        tomllib.TOMLDecodeError: If the file is not valid TOML.
    """
    with open(path, "rb") as f:
        result: dict[str, Any] = tomllib.load(f)
        return result


def _filter_fields(data: dict[str, Any]) -> dict[str, Any]:
    valid_fields = _get_config_field_names()
    return {k.replace("-", "_"): v for k, v in data.items() if k.replace("-", "_") in valid_fields}


def _load_from_rcfile(start_dir: Path | None = None) -> dict[str, Any]:
    """Load configuration from a .fsauditrc file, or {} if there is none."""
    config_path = find_config_file(".fsauditrc", start_dir)
    if config_path is None:
        return {}

    try:
        return _filter_fields(_load_toml_file(config_path))
    except (tomllib.TOMLDecodeError, OSError):
        return {}


def _load_from_pyproject(start_dir: Path | None = None) -> dict[str, Any]:
    """Load configuration from the pyproject.toml [tool.fsaudit] section."""
    config_path = find_config_file("pyproject.toml", start_dir)
    if config_path is None:
        return {}

    try:
        data = _load_toml_file(config_path)
        return _filter_fields(data.get("tool", {}).get("fsaudit", {}))
    except (tomllib.TOMLDecodeError, OSError):
        return {}


def _load_from_env() -> dict[str, Any]:
    """Load configuration from environment variables.

    Environment variables are prefixed with FSAUDIT_ and use uppercase names.
    For example: FSAUDIT_SCHEMA, FSAUDIT_LIMIT, FSAUDIT_CREDENTIALS

    Raises:
        ValueError: If a numeric variable is not an integer.
    """
    env_mapping = {
        "FSAUDIT_SCHEMA": "schema",
        "FSAUDIT_OUTPUT": "output",
        "FSAUDIT_CREDENTIALS": "credentials",
        "FSAUDIT_LIMIT": "limit",
        "FSAUDIT_PARENT_LIMIT": "parent_limit",
    }

    result: dict[str, Any] = {}
    for env_var, config_key in env_mapping.items():
        value = os.environ.get(env_var)
        if value is None:
            continue
        if config_key in ("limit", "parent_limit"):
            try:
                result[config_key] = int(value)
            except ValueError:
                raise ValueError(f"{env_var} must be an integer, got {value!r}") from None
        else:
            result[config_key] = value

    return result


def _merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Merge configuration dictionaries; later ones take precedence."""
    result: dict[str, Any] = {}
    for config in configs:
        for key, value in config.items():
            if value is not None:
                result[key] = value
    return result


def load_config(
    cli_overrides: dict[str, Any] | None = None,
    start_dir: Path | None = None,
) -> AuditConfig:
    """Load configuration with full precedence chain.

    Precedence (highest to lowest):
    1. CLI arguments (cli_overrides)
    2. Environment variables (FSAUDIT_*)
    3. .fsauditrc file
    4. pyproject.toml [tool.fsaudit] section
    5. Default values

    Args:
        cli_overrides: Configuration overrides from CLI arguments. None values
            are ignored.
        start_dir: Directory to start searching for config files.

    Returns:
        Fully resolved AuditConfig instance.

    Raises:
        ValueError: If the resulting configuration is invalid.
    """
    pyproject_config = _load_from_pyproject(start_dir)
    rc_config = _load_from_rcfile(start_dir)
    env_config = _load_from_env()
    cli_config = _filter_fields(cli_overrides or {})

    merged = _merge_configs(pyproject_config, rc_config, env_config, cli_config)

    # Create config instance (defaults are applied by the dataclass)
    return AuditConfig(**merged)
