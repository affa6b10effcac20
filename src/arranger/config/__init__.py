"""Configuration management for Arranger."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import ArrangerConfig
from .resolver import (
    ENV_PREFIX,
    env_overrides,
    expand_dotted,
    flatten_for_env,
    merge_overrides,
    parse_literal,
    resolve_with_precedence,
)

DEFAULT_CONFIG_PATH = Path("~/.arranger/config.yaml")
_HEADER = textwrap.dedent(
    """\
    # Arranger configuration
    # Layout, drag, animation, upload and reorganization settings for the sidebar engine.
    # Edit with `arranger config set KEY --value VALUE`; inspect with `arranger config view`.
    """
)


class ConfigManager:
    """Read and write the YAML configuration file.

    The effective configuration layers, in increasing precedence, the model
    defaults, the file, ``ARRANGER__SECTION__KEY`` environment variables and
    explicit CLI overrides.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = os.environ if env is None else env

    @property
    def config_path(self) -> Path:
        return self._path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
    ) -> ArrangerConfig:
        """Return the effective configuration.

        Args:
            cli_overrides: Dotted-key overrides taking precedence over everything else.
            include_env: Whether ``ARRANGER__`` environment variables apply.
            ensure_file: Whether to write a default file when none exists.

        Raises:
            ConfigError: If the file or any override is invalid.
        """
        if ensure_file:
            self.ensure_exists()
        return resolve_with_precedence(
            defaults=ArrangerConfig(),
            file_overrides=self.load_file_overrides(),
            env_overrides=env_overrides(self._env) if include_env else None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the raw mapping stored in the file (empty when absent)."""
        if not self._path.exists():
            return {}
        try:
            data = yaml.safe_load(self._path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return data

    def set_value(self, key: str, raw_value: str) -> ArrangerConfig:
        """Persist one dotted key, validating the whole file first.

        Args:
            key: Dotted path such as ``drag.folder_padding``.
            raw_value: Value parsed as a YAML literal.

        Returns:
            ArrangerConfig: The configuration stored in the file afterwards.

        Raises:
            ConfigError: If the key is unknown or the value is invalid.
        """
        updated = merge_overrides(self.load_file_overrides(), expand_dotted({key: parse_literal(raw_value)}))
        config = resolve_with_precedence(defaults=ArrangerConfig(), file_overrides=updated)
        self.save(config)
        return config

    def save(self, config: ArrangerConfig | Mapping[str, Any]) -> None:
        data = config.model_dump(mode="python") if isinstance(config, ArrangerConfig) else dict(config)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        body = yaml.safe_dump(data, sort_keys=False)
        self._path.write_text(f"{_HEADER}# Last updated: {stamp}\n{body}", encoding="utf-8")

    def ensure_exists(self) -> Path:
        """Write the default configuration when the file is missing."""
        if not self._path.exists():
            self.save(ArrangerConfig())
        return self._path

    def read_text(self) -> str:
        return self._path.read_text(encoding="utf-8") if self._path.exists() else ""


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
    "ArrangerConfig",
    "ConfigError",
    "resolve_with_precedence",
    "flatten_for_env",
]
