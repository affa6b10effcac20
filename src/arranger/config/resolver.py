"""Merging of configuration layers into a validated :class:`ArrangerConfig`."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Iterable, Mapping, Tuple

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import ArrangerConfig

ENV_PREFIX = "ARRANGER__"

Layer = Tuple[str, Mapping[str, Any] | None]


def resolve_with_precedence(
    *,
    defaults: ArrangerConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> ArrangerConfig:
    """Layer the sources over the defaults and validate the result.

    Later layers win: file, then environment, then CLI. Keys of any layer
    may be nested mappings or dotted paths such as ``"drag.folder_padding"``.

    Raises:
        ConfigError: If a layer is malformed or the merged values are invalid.
    """
    layers: Iterable[Layer] = (
        ("file", file_overrides),
        ("environment", env_overrides),
        ("cli", cli_overrides),
    )
    merged: Dict[str, Any] = defaults.model_dump(mode="python")
    for name, layer in layers:
        if layer is not None:
            merged = merge_overrides(merged, expand_dotted(layer, source=name))

    try:
        return ArrangerConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def env_overrides(env: Mapping[str, str]) -> Dict[str, Any]:
    """Collect ``ARRANGER__SECTION__KEY`` variables as nested overrides.

    Values are parsed as YAML literals so numbers, booleans and lists keep
    their types; unparsable values are kept as strings.
    """
    overrides: Dict[str, Any] = {}
    for key, raw in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        segments = [segment.lower() for segment in key[len(ENV_PREFIX) :].split("__") if segment]
        if not segments:
            continue
        _set_path(overrides, segments, parse_literal(raw), source="environment")
    return overrides


def flatten_for_env(config: ArrangerConfig) -> Dict[str, str]:
    """Render ``config`` as the environment variables that would reproduce it."""
    flat: Dict[str, str] = {}
    stack: list[tuple[list[str], Any]] = [([key], value) for key, value in config.model_dump(mode="python").items()]
    while stack:
        path, value = stack.pop()
        if isinstance(value, dict):
            stack.extend((path + [str(key)], child) for key, child in value.items())
            continue
        if isinstance(value, list):
            rendered = yaml.safe_dump(value, default_flow_style=True).strip()
        else:
            rendered = "null" if value is None else str(value)
        flat[ENV_PREFIX + "__".join(part.upper() for part in path)] = rendered
    return dict(sorted(flat.items()))


def parse_literal(raw: str) -> Any:
    """Parse a command-line or environment value as a YAML scalar."""
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw


def expand_dotted(overrides: Mapping[str, Any], *, source: str = "cli") -> Dict[str, Any]:
    """Return ``overrides`` with dotted keys expanded into nested mappings."""
    if not isinstance(overrides, MappingABC):
        raise ConfigError(f"{source.capitalize()} overrides must be a mapping.")
    expanded: Dict[str, Any] = {}
    for key, value in overrides.items():
        if not isinstance(key, str):
            raise ConfigError(f"{source.capitalize()} override keys must be strings.")
        if isinstance(value, MappingABC):
            value = expand_dotted(value, source=source)
        _set_path(expanded, key.split("."), value, source=source)
    return expanded


def merge_overrides(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Deep-merge ``overrides`` into a copy of ``base``."""
    merged = {key: deepcopy(value) for key, value in base.items()}
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(value, MappingABC) and isinstance(current, MappingABC):
            merged[key] = merge_overrides(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


def _set_path(target: Dict[str, Any], path: list[str], value: Any, *, source: str) -> None:
    node = target
    for segment in path[:-1]:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            raise ConfigError(f"{source.capitalize()} override for {'.'.join(path)} conflicts with existing value.")
        node = child
    leaf = path[-1]
    if isinstance(value, MappingABC) and isinstance(node.get(leaf), MappingABC):
        node[leaf] = merge_overrides(node[leaf], value)
    else:
        node[leaf] = value


__all__ = [
    "ENV_PREFIX",
    "resolve_with_precedence",
    "env_overrides",
    "flatten_for_env",
    "parse_literal",
    "expand_dotted",
    "merge_overrides",
]
