# configure/docker_configurator.py
# -*- coding: utf-8 -*-
"""
Post-installation configuration and verification of Docker Engine.

Creates the docker group, grants group membership to the invoking user and
any additional users, enables and starts (or restarts) the Docker services
and runs a test container.
"""

import logging
import subprocess
from typing import List, Optional

from docker_provisioner.common.command_utils import log_message, run_elevated_command
from docker_provisioner.common.errors import VerificationError
from docker_provisioner.common.group_utils import (
    add_user_to_group,
    create_group,
    group_exists,
    resolve_invoking_user,
    user_exists,
    user_in_group,
)
from docker_provisioner.common.system_utils import (
    systemd_enable,
    systemd_is_active,
    systemd_restart,
    systemd_start,
)
from docker_provisioner.setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def ensure_docker_group(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> bool:
    """
    Creates the docker group if it does not exist.

    Returns:
        True if the group was created.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols
    group = app_settings.post_install.group

    if group_exists(group):
        log_message(
            f"   - '{group}' group already exists.",
            "info",
            logger_to_use,
            app_settings,
        )
        return False

    create_group(group, app_settings, current_logger=logger_to_use)
    log_message(
        f"   {symbols.get('success', '✅')} Created '{group}' group.",
        "success",
        logger_to_use,
        app_settings,
    )
    return True


def add_users_to_docker_group(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> List[str]:
    """
    Adds the invoking user and the configured additional users to the group.

    The invoking user is skipped when running as root directly. Additional
    users that do not exist are skipped with a warning.

    Returns:
        The users that were added and need to log in again.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols
    group = app_settings.post_install.group
    added: List[str] = []

    invoking_user = resolve_invoking_user()
    if invoking_user is None:
        log_message(
            f"   - Skipping adding current user to '{group}' group (running as root or user unknown).",
            "info",
            logger_to_use,
            app_settings,
        )

    candidates = [(invoking_user, False)] if invoking_user else []
    candidates += [
        (user, True) for user in app_settings.post_install.additional_users
    ]

    for user, is_additional in candidates:
        label = "Additional user" if is_additional else "User"
        if user in added:
            continue
        if is_additional and not user_exists(user):
            log_message(
                f"   {symbols.get('warning', '!')} Additional user '{user}' not found, skipping.",
                "warning",
                logger_to_use,
                app_settings,
            )
            continue
        if user_in_group(user, group):
            log_message(
                f"   - {label} '{user}' is already in the '{group}' group.",
                "info",
                logger_to_use,
                app_settings,
            )
            continue
        add_user_to_group(user, group, app_settings, current_logger=logger_to_use)
        log_message(
            f"   {symbols.get('success', '✅')} Added {label.lower()} '{user}' to the '{group}' group.",
            "success",
            logger_to_use,
            app_settings,
        )
        added.append(user)

    return added


def enable_and_start_services(
    app_settings: AppSettings,
    restart: bool,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Enables the Docker services and makes sure they are running.

    Args:
        app_settings: The application settings.
        restart: Restart the daemon service because its configuration
            changed. Otherwise services are only started when not active.
        current_logger: Optional logger instance.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols
    post_install = app_settings.post_install
    services = post_install.services

    log_message(
        f"   - Enabling and starting Docker services ({', '.join(services)})...",
        "info",
        logger_to_use,
        app_settings,
    )
    for unit in services:
        systemd_enable(unit, app_settings, current_logger=logger_to_use)

    for unit in services:
        if restart and unit == post_install.daemon_service:
            continue
        if systemd_is_active(unit, app_settings, current_logger=logger_to_use):
            log_message(
                f"   - {unit} is already running.",
                "info",
                logger_to_use,
                app_settings,
            )
        else:
            systemd_start(unit, app_settings, current_logger=logger_to_use)

    # The daemon unit is restarted even when it is not listed in services.
    if restart:
        unit = post_install.daemon_service
        log_message(
            f"   {symbols.get('gear', '⚙️')} Daemon configuration changed, restarting {unit}.",
            "info",
            logger_to_use,
            app_settings,
        )
        systemd_restart(unit, app_settings, current_logger=logger_to_use)


def verify_docker_installation(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Runs the verification image and raises VerificationError on failure.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols
    image = app_settings.post_install.verify_image

    log_message(
        f"{symbols.get('test', '🧪')} Verifying installation by running {image} container...",
        "info",
        logger_to_use,
        app_settings,
    )
    try:
        run_elevated_command(
            ["docker", "run", "--rm", image],
            app_settings,
            capture_output=True,
            current_logger=logger_to_use,
        )
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        log_message(
            f"{symbols.get('error', '❌')} The 'docker run {image}' command failed.",
            "error",
            logger_to_use,
            app_settings,
        )
        log_message(
            "   Please check the Docker service status: sudo systemctl status docker",
            "error",
            logger_to_use,
            app_settings,
        )
        raise VerificationError(f"Verification with '{image}' failed: {e}") from e

    log_message(
        f"{symbols.get('success', '✅')} Docker appears to be installed and working correctly!",
        "success",
        logger_to_use,
        app_settings,
    )
