# common/group_utils.py
# -*- coding: utf-8 -*-
"""
User and group management helpers.
"""

import getpass
import grp
import logging
import os
import pwd
import subprocess
from typing import Optional

from docker_provisioner.common.command_utils import run_elevated_command
from docker_provisioner.common.errors import ProvisioningError
from docker_provisioner.setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def group_exists(group_name: str) -> bool:
    try:
        grp.getgrnam(group_name)
        return True
    except KeyError:
        return False


def user_exists(user_name: str) -> bool:
    try:
        pwd.getpwnam(user_name)
        return True
    except KeyError:
        return False


def user_in_group(user_name: str, group_name: str) -> bool:
    """
    Returns True if the user is a member of the group, either as a
    supplementary member or through its primary group.
    """
    try:
        group = grp.getgrnam(group_name)
    except KeyError:
        return False
    if user_name in group.gr_mem:
        return True
    try:
        return pwd.getpwnam(user_name).pw_gid == group.gr_gid
    except KeyError:
        return False


def create_group(
    group_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    try:
        run_elevated_command(
            ["groupadd", group_name], app_settings, current_logger=logger_to_use
        )
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        raise ProvisioningError(f"Failed to create group '{group_name}': {e}") from e


def add_user_to_group(
    user_name: str,
    group_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    try:
        run_elevated_command(
            ["usermod", "-aG", group_name, user_name],
            app_settings,
            current_logger=logger_to_use,
        )
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        raise ProvisioningError(
            f"Failed to add user '{user_name}' to group '{group_name}': {e}"
        ) from e


def resolve_invoking_user() -> Optional[str]:
    """
    Returns the user who invoked the provisioner.

    SUDO_USER is preferred over the current login. Returns None when the
    user is root or cannot be determined.
    """
    user = os.environ.get("SUDO_USER")
    if not user:
        try:
            user = getpass.getuser()
        except (KeyError, OSError):
            return None
    if not user or user == "root":
        return None
    return user
