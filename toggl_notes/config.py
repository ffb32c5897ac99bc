# toggl_notes/config.py
# Description: Configuration management for the toggl_notes application.
#
# Imports
import copy
import os
import sys
if sys.version_info < (3, 11):
    import tomli as tomllib
else:
    import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Optional
#
# Third-Party Imports
import toml
from loguru import logger
#
# Local Imports
from .Utils.atomic_file_ops import atomic_write_text
#
#######################################################################################################################
#
# Functions:

# --- Path to the configuration file ---
DEFAULT_CONFIG_PATH = Path(
    os.environ.get("TOGGL_NOTES_CONFIG", Path.home() / ".config" / "toggl_notes" / "config.toml")
).expanduser()

CONFIG_TOML_CONTENT = """
# Configuration for toggl_notes
# This file is created on first run and saved whenever a setting changes.

[toggl]
# API token from the bottom of https://track.toggl.com/profile
api_token = ""
# Filled in by the `connect` command. 0 means "not connected yet".
default_workspace_id = 0
base_url = "https://api.track.toggl.com/api/v9"
request_timeout = 30.0
created_with = "Toggl Notes"

[notes]
# Root folder of the notes vault. Note paths are resolved relative to it.
vault_path = "."
# Front-matter key holding the ids of the time entries owned by a note.
owned_ids_field = "_time_entries"

[sync]
# Default pull window: this many calendar months back ...
pull_months_back = 3
# ... through this many days forward.
pull_days_forward = 1

[logging]
log_level = "INFO"
log_to_file = false
log_filename = "toggl_notes.log"
"""

try:
    DEFAULT_CONFIG_FROM_TOML: Dict[str, Any] = tomllib.loads(CONFIG_TOML_CONTENT)
except tomllib.TOMLDecodeError as e:
    logger.critical(f"FATAL: Could not parse internal CONFIG_TOML_CONTENT: {e}")
    DEFAULT_CONFIG_FROM_TOML = {}


@dataclass(frozen=True)
class TogglSettings:
    """The persisted settings the engine needs: credential and cached workspace."""
    api_token: str
    default_workspace_id: Optional[int]


def deep_merge_dicts(base: Dict, update: Dict) -> Dict:
    """Recursively merges update into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in update.items():
        if isinstance(value, dict) and key in merged and isinstance(merged[key], dict):
            merged[key] = deep_merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


def mask_token(token: Optional[str]) -> str:
    """Render an API token safely for log output."""
    if not token:
        return "<unset>"
    if len(token) <= 8:
        return "***"
    return f"{token[:4]}...{token[-4:]}"


# --- Primary Configuration Loading Logic ---
_CONFIG_CACHE: Optional[Dict[str, Any]] = None


def load_cli_config_and_ensure_existence(force_reload: bool = False) -> Dict[str, Any]:
    """
    Loads settings from DEFAULT_CONFIG_PATH.
    If the file doesn't exist, it's created from CONFIG_TOML_CONTENT.
    User values are merged on top of the programmatic defaults.
    """
    global _CONFIG_CACHE
    if _CONFIG_CACHE is not None and not force_reload:
        return _CONFIG_CACHE

    loaded_config = copy.deepcopy(DEFAULT_CONFIG_FROM_TOML)

    if not DEFAULT_CONFIG_PATH.exists():
        logger.info(f"Config file not found at {DEFAULT_CONFIG_PATH}. Creating it with default values.")
        try:
            atomic_write_text(DEFAULT_CONFIG_PATH, CONFIG_TOML_CONTENT.lstrip())
            loaded_config["_first_run"] = True
        except OSError as e:
            logger.error(f"Could not create default config file {DEFAULT_CONFIG_PATH}: {e}. Using internal defaults.")
    else:
        logger.debug(f"Loading config from: {DEFAULT_CONFIG_PATH}")
        try:
            with open(DEFAULT_CONFIG_PATH, "rb") as f:
                user_config_from_file = tomllib.load(f)
            loaded_config = deep_merge_dicts(loaded_config, user_config_from_file)
        except tomllib.TOMLDecodeError as e:
            logger.error(f"Error decoding TOML config file {DEFAULT_CONFIG_PATH}: {e}. Using internal defaults.")
        except OSError as e:
            logger.error(f"Could not read config file {DEFAULT_CONFIG_PATH}: {e}. Using internal defaults.")

    _CONFIG_CACHE = loaded_config
    return _CONFIG_CACHE


def save_setting_to_cli_config(section: str, key: str, value: Any) -> bool:
    """
    Saves a single setting to the user's TOML configuration file.

    Reads the current file, sets ``[section].key`` (nested sections use dots,
    e.g. "toggl.extra"), writes the whole file back and drops the cache so the
    next read sees the change.

    Returns:
        True if the setting was saved, False otherwise.
    """
    global _CONFIG_CACHE
    shown = mask_token(value) if key == "api_token" else repr(value)
    logger.info(f"Saving setting: [{section}].{key} = {shown}")

    config_data: Dict[str, Any] = {}
    if DEFAULT_CONFIG_PATH.exists():
        try:
            with open(DEFAULT_CONFIG_PATH, "rb") as f:
                config_data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            logger.error(f"Corrupted config file at {DEFAULT_CONFIG_PATH}. Cannot save. Error: {e}")
            return False

    current_level = config_data
    try:
        for part in section.split('.'):
            current_level = current_level.setdefault(part, {})
        current_level[key] = value
    except (TypeError, AttributeError):
        logger.error(
            f"Configuration structure conflict. Could not set '{key}' in section '{section}' "
            f"because a part of the path is not a table."
        )
        return False

    try:
        atomic_write_text(DEFAULT_CONFIG_PATH, toml.dumps(config_data))
    except OSError as e:
        logger.error(f"Failed to write updated config to {DEFAULT_CONFIG_PATH}: {e}")
        return False

    _CONFIG_CACHE = None
    logger.success(f"Saved setting to {DEFAULT_CONFIG_PATH}")
    return True


def get_cli_setting(section: str, key: str, default: Any = None) -> Any:
    """Helper to get a specific setting from the loaded configuration."""
    config = load_cli_config_and_ensure_existence()
    section_data = config.get(section)
    if isinstance(section_data, dict):
        return section_data.get(key, default)
    return default


def load_toggl_settings() -> TogglSettings:
    """Reads the credential and the cached default workspace id."""
    token = get_cli_setting("toggl", "api_token", "") or ""
    env_token = os.environ.get("TOGGL_API_TOKEN")
    if not token and env_token:
        token = env_token
    workspace_id = get_cli_setting("toggl", "default_workspace_id", 0)
    try:
        workspace_id = int(workspace_id)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-numeric default_workspace_id in config: {workspace_id!r}")
        workspace_id = 0
    return TogglSettings(api_token=token, default_workspace_id=workspace_id or None)


def get_vault_path() -> Path:
    return Path(get_cli_setting("notes", "vault_path", ".")).expanduser().resolve()


def get_log_file_path() -> Path:
    log_filename = get_cli_setting("logging", "log_filename", "toggl_notes.log")
    return DEFAULT_CONFIG_PATH.parent / log_filename

#
# End of config.py
#######################################################################################################################
