"""YAML configuration loading and runtime overrides.

Precedence: CLI flags > config file > built-in Constants. The file is looked
up from ``--config``, then ``$CUDALIS_CONFIG``, then the default locations.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import yaml

from constants import Constants

logger = logging.getLogger(__name__)

# Config key -> Constants attribute it overrides.
CONSTANT_KEYS = {
    "index_url": "INDEX_URL",
    "tag_registry_url": "TAG_REGISTRY_URL",
    "cpu_base_image": "CPU_BASE_IMAGE",
    "image_repository": "IMAGE_REPOSITORY",
    "request_timeout": "REQUEST_TIMEOUT",
}
CONSTRAINT_KEYS = ("python", "torch", "cuda")
FLAG_KEYS = ("keep_base_image",)


class ConfigError(Exception):
    """A config file could not be read or holds an invalid value."""


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def find_config_path(explicit: Optional[str] = None) -> Optional[str]:
    """Return the config file to load, or None when there is none."""
    if explicit:
        return explicit
    env_path = os.environ.get(Constants.CONFIG_ENV)
    if env_path:
        return env_path
    for candidate in Constants.CONFIG_LOCATIONS:
        path = os.path.expanduser(candidate)
        if os.path.isfile(path):
            return path
    return None


def load_config(explicit: Optional[str] = None) -> Dict[str, Any]:
    """Load the YAML config.

    Raises:
        ConfigError: If the selected config file cannot be read or parsed.
    """
    path = find_config_path(explicit)
    if path is None:
        return {}
    try:
        cfg = _read_yaml(path)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config {path}: {e}") from e
    logger.debug("Loaded config from %s", path)

    known = set(CONSTANT_KEYS) | set(CONSTRAINT_KEYS) | set(FLAG_KEYS)
    for key in sorted(set(cfg) - known):
        logger.warning("Ignoring unknown config key: %s", key)
    return {k: v for k, v in cfg.items() if k in known}


def apply_constant_overrides(cfg: Dict[str, Any]) -> None:
    """Apply config values onto Constants.

    Raises:
        ConfigError: If ``request_timeout`` is not a positive integer.
    """
    for key, attr in CONSTANT_KEYS.items():
        if cfg.get(key) is None:
            continue
        value = cfg[key]
        if attr == "REQUEST_TIMEOUT":
            value = _positive_int(key, value)
        else:
            value = str(value)
        setattr(Constants, attr, value)


def _positive_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"Config key {key} must be an integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Config key {key} must be an integer, got {value!r}") from e
    if number <= 0:
        raise ConfigError(f"Config key {key} must be positive, got {number}")
    return number


def merge_cli(args, cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Return effective settings with CLI values taking precedence.

    Raises:
        ConfigError: If ``keep_base_image`` is not a YAML boolean.
    """

    def _pick(cli_value, key):
        # Unquoted YAML versions such as 3.10 load as floats; quote them.
        if cli_value is not None:
            return cli_value
        value = cfg.get(key)
        return str(value) if value is not None else None

    keep = getattr(args, "KEEP_BASE_IMAGE", None)
    if keep is None:
        keep = cfg.get("keep_base_image")
        if keep is None:
            keep = False
        elif not isinstance(keep, bool):
            # "false" quoted in YAML is a truthy string
            raise ConfigError(f"Config key keep_base_image must be true or false, got {keep!r}")
    return {
        "python": _pick(getattr(args, "PYTHON", None), "python"),
        "torch": _pick(getattr(args, "TORCH", None), "torch"),
        "cuda": _pick(getattr(args, "CUDA", None), "cuda"),
        "keep_base_image": keep,
    }
