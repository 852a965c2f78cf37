# setup/config_loader.py
# -*- coding: utf-8 -*-
"""
Configuration loader for the provisioner.

Handles loading settings from Pydantic model defaults, environment
variables, an optional YAML file and command-line arguments, applying the
following order of precedence (lowest first):
1. Pydantic Model Defaults
2. Environment Variables (DOCKER_PROVISION_ prefix)
3. YAML Configuration File
4. Command-Line Arguments
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from docker_provisioner.common.errors import ConfigError

from .config_models import AppSettings

module_logger = logging.getLogger(__name__)


def _deep_update(
    source: Dict[str, Any], overrides: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Recursively updates `source` with the values of `overrides`.

    Nested dictionaries are merged key by key; any other value replaces the
    one in `source`. `source` is modified in place and returned.
    """
    for key, value in overrides.items():
        if (
            isinstance(value, dict)
            and key in source
            and isinstance(source[key], dict)
        ):
            source[key] = _deep_update(source[key], value)
        else:
            source[key] = value
    return source


def load_yaml_config(
    config_file_path: Path, current_logger: Optional[logging.Logger] = None
) -> Dict[str, Any]:
    """
    Reads a YAML settings file.

    A missing file is logged and yields an empty mapping. A file that cannot
    be read or parsed, or whose top level is not a mapping, raises
    ConfigError.
    """
    logger_to_use = current_logger if current_logger else module_logger

    if not config_file_path.is_file():
        logger_to_use.warning(
            f"Configuration file '{config_file_path}' not found. Using defaults, environment variables, and CLI args."
        )
        return {}

    try:
        with open(config_file_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Could not parse YAML config file '{config_file_path}': {e}"
        ) from e
    except OSError as e:
        raise ConfigError(
            f"Could not read config file '{config_file_path}': {e}"
        ) from e

    if yaml_data is None:
        return {}
    if not isinstance(yaml_data, dict):
        raise ConfigError(
            f"Config file '{config_file_path}' does not contain a YAML mapping."
        )
    logger_to_use.info(f"Loaded configuration from {config_file_path}")
    return yaml_data


def _cli_overrides(cli_args: argparse.Namespace) -> Dict[str, Any]:
    """Maps parsed command-line arguments onto the settings structure."""
    cli_arg_dict = vars(cli_args)
    overrides: Dict[str, Any] = {}
    daemon: Dict[str, Any] = {}
    post_install: Dict[str, Any] = {}
    repo: Dict[str, Any] = {}

    if cli_arg_dict.get("apply_defaults"):
        daemon["apply_defaults"] = True
    if cli_arg_dict.get("data_root") is not None:
        daemon["data_root"] = cli_arg_dict["data_root"]
    if cli_arg_dict.get("additional_users"):
        post_install["additional_users"] = list(cli_arg_dict["additional_users"])
    if cli_arg_dict.get("distribution"):
        repo["distribution"] = cli_arg_dict["distribution"]
    if cli_arg_dict.get("repo_only"):
        overrides["repo_only"] = True

    if daemon:
        overrides["daemon"] = daemon
    if post_install:
        overrides["post_install"] = post_install
    if repo:
        overrides["repo"] = repo
    return overrides


def load_app_settings(
    cli_args: Optional[argparse.Namespace] = None,
    config_file_path: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
) -> AppSettings:
    """
    Loads application settings with the precedence described in the module
    docstring.

    Args:
        cli_args: Parsed command-line arguments (from argparse).
        config_file_path: Path to the YAML configuration file, if any.
        current_logger: Optional logger to use instead of the module logger.

    Returns:
        An instance of AppSettings with the fully resolved configuration.

    Raises:
        ConfigError: The configuration file or a setting is invalid.
    """
    logger_to_use = current_logger if current_logger else module_logger

    try:
        # Model defaults < environment variables.
        settings_after_env_and_defaults = AppSettings()
    except ValidationError as e:
        raise ConfigError(f"Invalid environment configuration: {e}") from e
    current_values_dict = settings_after_env_and_defaults.model_dump()

    if config_file_path:
        current_values_dict = _deep_update(
            current_values_dict,
            load_yaml_config(Path(config_file_path), logger_to_use),
        )

    if cli_args is not None:
        current_values_dict = _deep_update(
            current_values_dict, _cli_overrides(cli_args)
        )

    try:
        final_settings = AppSettings(**current_values_dict)
    except ValidationError as e:
        logger_to_use.error(f"Configuration validation failed: {e}")
        raise ConfigError(f"Configuration error: {e}") from e

    logger_to_use.debug("Successfully loaded and validated application settings")
    return final_settings
