# common/system_utils.py
# -*- coding: utf-8 -*-
"""
System-level utility functions for the provisioner.

This module includes the privilege check, host facts needed to build the
repository entry (codename, architecture) and the systemd service
operations.
"""

import logging
import os
import subprocess
from typing import Optional

from docker_provisioner.common.command_utils import (
    get_symbols,
    log_message,
    run_command,
    run_elevated_command,
)
from docker_provisioner.common.errors import PrivilegeError, ProvisioningError
from docker_provisioner.setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def require_root(
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """Raises PrivilegeError unless the effective user is root."""
    logger_to_use = current_logger if current_logger else module_logger
    if os.geteuid() != 0:
        symbols = get_symbols(app_settings)
        log_message(
            f"{symbols.get('error', '❌')} This script requires root/sudo privileges to run.",
            "error",
            logger_to_use,
            app_settings,
        )
        raise PrivilegeError("This script requires root/sudo privileges to run.")


def _read_single_value(
    command: list,
    description: str,
    app_settings: Optional[AppSettings],
    logger_to_use: logging.Logger,
) -> str:
    try:
        result = run_command(
            command,
            app_settings,
            capture_output=True,
            check=True,
            current_logger=logger_to_use,
        )
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        raise ProvisioningError(f"Could not determine {description}: {e}") from e
    value = (result.stdout or "").strip()
    if not value:
        raise ProvisioningError(f"Could not determine {description}.")
    return value


def get_codename(
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> str:
    """Returns the distribution codename (e.g. 'noble', 'bookworm')."""
    logger_to_use = current_logger if current_logger else module_logger
    return _read_single_value(
        ["lsb_release", "-cs"], "distribution codename", app_settings, logger_to_use
    )


def get_architecture(
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> str:
    """Returns the dpkg architecture (e.g. 'amd64', 'arm64')."""
    logger_to_use = current_logger if current_logger else module_logger
    return _read_single_value(
        ["dpkg", "--print-architecture"],
        "system architecture",
        app_settings,
        logger_to_use,
    )


def _systemctl(
    action: str,
    unit: str,
    app_settings: AppSettings,
    logger_to_use: logging.Logger,
) -> None:
    symbols = app_settings.symbols
    log_message(
        f"{symbols.get('gear', '⚙️')} systemctl {action} {unit}",
        "info",
        logger_to_use,
        app_settings,
    )
    try:
        run_elevated_command(
            ["systemctl", action, unit],
            app_settings,
            current_logger=logger_to_use,
        )
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        raise ProvisioningError(f"Failed to {action} {unit}: {e}") from e


def systemd_enable(
    unit: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    _systemctl("enable", unit, app_settings, current_logger or module_logger)


def systemd_start(
    unit: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    _systemctl("start", unit, app_settings, current_logger or module_logger)


def systemd_restart(
    unit: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    _systemctl("restart", unit, app_settings, current_logger or module_logger)


def systemd_is_active(
    unit: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """Returns True if `systemctl is-active --quiet` succeeds for the unit."""
    logger_to_use = current_logger if current_logger else module_logger
    result = run_elevated_command(
        ["systemctl", "is-active", "--quiet", unit],
        app_settings,
        check=False,
        current_logger=logger_to_use,
    )
    return result.returncode == 0
