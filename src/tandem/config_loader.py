"""Load TandemConfig from tandem.yaml or tandem.toml if present.

Merges file config with keyword overrides. Overrides win.
"""

from __future__ import annotations

import importlib
import tomllib
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from tandem._errors import ConfigError
from tandem.config import TandemConfig

_HOOK_KEYS = frozenset({"log", "track"})
_KNOWN_KEYS = frozenset(f.name for f in fields(TandemConfig))


def load_config(root: Path, **overrides: object) -> TandemConfig:
    """Load TandemConfig from root, optionally merging tandem.yaml.

    Looks for tandem.yaml, tandem.yml, or tandem.toml in root. Hook entries
    (``log``, ``track``) may be given as ``"module:attribute"`` strings and
    are imported here.

    Raises:
        ConfigError: If the file is malformed, names an unknown key, or a
            hook path cannot be resolved.

    """
    file_config = _read_tandem_config(root)
    merged: dict[str, Any] = {**file_config, **overrides}

    unknown = sorted(set(merged) - _KNOWN_KEYS)
    if unknown:
        msg = f"Unknown configuration key(s): {', '.join(unknown)}"
        raise ConfigError(msg)

    for key in _HOOK_KEYS & merged.keys():
        if isinstance(merged[key], str):
            merged[key] = resolve_hook(merged[key])

    return TandemConfig(**merged)


def resolve_hook(spec: str) -> Any:
    """Import a ``module:attribute`` hook reference and return the callable."""
    module_part, _, attr = spec.partition(":")
    if not module_part or not attr:
        msg = f"Hook {spec!r} must have the form 'module:attribute'"
        raise ConfigError(msg)
    try:
        module = importlib.import_module(module_part)
    except ImportError as exc:
        msg = f"Hook {spec!r}: cannot import {module_part!r}"
        raise ConfigError(msg) from exc
    hook = getattr(module, attr, None)
    if not callable(hook):
        msg = f"Hook {spec!r}: {attr} not callable in {module_part}"
        raise ConfigError(msg)
    return hook


def _read_tandem_config(root: Path) -> dict[str, object]:
    """Read tandem config from yaml/toml if present. Returns empty dict otherwise."""
    for name in ("tandem.yaml", "tandem.yml"):
        path = root / name
        if path.is_file():
            return _parse_yaml(path)
    toml_path = root / "tandem.toml"
    if toml_path.is_file():
        return _parse_toml(toml_path)
    return {}


def _parse_yaml(path: Path) -> dict[str, object]:
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        msg = f"Invalid YAML in {path}: {exc}"
        raise ConfigError(msg) from exc
    return _flatten_tandem_section(data, path)


def _parse_toml(path: Path) -> dict[str, object]:
    try:
        data = tomllib.loads(path.read_text())
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ConfigError(msg) from exc
    return _flatten_tandem_section(data, path)


def _flatten_tandem_section(data: object, path: Path) -> dict[str, object]:
    """Extract tandem.* keys into top-level config."""
    if not isinstance(data, dict):
        msg = f"{path} must contain a mapping at the top level"
        raise ConfigError(msg)
    result: dict[str, object] = {k: v for k, v in data.items() if k != "tandem"}
    section = data.get("tandem")
    if section is not None:
        if not isinstance(section, dict):
            msg = f"{path}: 'tandem' section must be a mapping"
            raise ConfigError(msg)
        result.update(section)
    return result
