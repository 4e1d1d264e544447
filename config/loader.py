"""Configuration loading utilities."""

import json
import logging
import os
import re
import shlex
from pathlib import Path
from typing import Any, Mapping

from .defaults import (
    DEFAULT_SETTINGS,
    ENV_INIT_TIMEOUT,
    ENV_LANGUAGE_SERVER,
    ENV_LANGUAGE_SERVER_ARGS,
    ENV_LOG_LEVEL,
    ENV_REQUEST_TIMEOUT,
    GLOBAL_CONFIG_PATH,
    PROJECT_CONFIG_NAMES,
)
from .settings import BridgeSettings

logger = logging.getLogger(__name__)

# String literals are matched first so "//" inside a value survives
_JSONC_TOKEN = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL)


def strip_jsonc_comments(content: str) -> str:
    """
    Strip comments from JSONC content to convert to valid JSON.

    Handles:
    - Single-line comments: // comment
    - Multi-line comments: /* comment */

    Args:
        content: JSONC content string

    Returns:
        JSON string with comments removed
    """
    return _JSONC_TOKEN.sub(lambda match: match.group(1) or "", content)


def load_config_file(path: Path) -> dict[str, Any] | None:
    """
    Load a config file from the given path.

    Supports both .json and .jsonc files with comment stripping.

    Args:
        path: Path to the config file

    Returns:
        Parsed config dictionary or None if the file doesn't exist or is invalid
    """
    if not path.exists():
        return None

    try:
        content = path.read_text(encoding="utf-8")
        if path.suffix == ".jsonc":
            content = strip_jsonc_comments(content)
        data = json.loads(content)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to load config from %s: %s", path, e)
        return None

    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: expected a JSON object", path)
        return None
    return data


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two configuration dictionaries.

    Args:
        base: Base configuration
        override: Override configuration (takes precedence)

    Returns:
        Merged configuration dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Settings taken from environment variables."""
    environ = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}

    if environ.get(ENV_LANGUAGE_SERVER):
        overrides["language_server"] = environ[ENV_LANGUAGE_SERVER]
    if environ.get(ENV_LANGUAGE_SERVER_ARGS):
        overrides["language_server_args"] = shlex.split(environ[ENV_LANGUAGE_SERVER_ARGS])
    if environ.get(ENV_INIT_TIMEOUT):
        overrides["init_timeout"] = environ[ENV_INIT_TIMEOUT]
    if environ.get(ENV_REQUEST_TIMEOUT):
        overrides["request_timeout"] = environ[ENV_REQUEST_TIMEOUT]
    if environ.get(ENV_LOG_LEVEL):
        overrides["log_level"] = environ[ENV_LOG_LEVEL]

    return overrides


def load_settings(
    workspace: Path | None = None,
    overrides: dict[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    global_config_path: Path | None = None,
) -> BridgeSettings:
    """
    Load settings from multiple sources with precedence.

    Lowest to highest:
    1. Built-in defaults
    2. Global: ~/.config/lsp-bridge/config.jsonc
    3. Project: <workspace>/.lsp-bridge.jsonc or <workspace>/.lsp-bridge.json
    4. Environment variables
    5. Explicit overrides (command-line flags); None values are skipped

    Args:
        workspace: Workspace root (defaults to current working directory)
        overrides: Highest-precedence values
        environ: Environment to read (defaults to os.environ)
        global_config_path: Global config file location

    Returns:
        Validated BridgeSettings

    Raises:
        pydantic.ValidationError: If the merged values are invalid
    """
    workspace = Path(workspace) if workspace is not None else Path.cwd()
    global_path = global_config_path or Path(GLOBAL_CONFIG_PATH).expanduser()

    data = dict(DEFAULT_SETTINGS)
    data = merge_configs(data, load_config_file(global_path) or {})

    for name in PROJECT_CONFIG_NAMES:
        project_config = load_config_file(workspace / name)
        if project_config:
            logger.debug("Using project config %s", workspace / name)
            data = merge_configs(data, project_config)
            break

    data = merge_configs(data, env_overrides(environ))
    data = merge_configs(data, {k: v for k, v in (overrides or {}).items() if v is not None})
    data["workspace"] = workspace

    return BridgeSettings(**data)
