# installer/docker_installer.py
# -*- coding: utf-8 -*-
"""
Handles the package-level installation of Docker Engine.
"""

import logging
from typing import List, Optional

from docker_provisioner.common.command_utils import log_message
from docker_provisioner.common.debian.apt_manager import AptManager
from docker_provisioner.common.system_utils import (
    get_architecture,
    get_codename,
)
from docker_provisioner.setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def build_source_line(
    app_settings: AppSettings, arch: str, codename: str
) -> str:
    """Returns the one-line APT source entry for the Docker repository."""
    repo = app_settings.repo
    return (
        f"deb [arch={arch} signed-by={repo.keyring_path}] "
        f"{repo.resolved_repo_url} {codename} {repo.channel}"
    )


def remove_conflicting_packages(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    apt_manager: Optional[AptManager] = None,
) -> List[str]:
    """
    Removes unofficial or conflicting container-runtime packages.

    Each conflicting package is queried individually; only installed ones are
    removed, followed by an autoremove of their dependencies.

    Returns:
        The packages that were removed.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols
    apt = apt_manager or AptManager(app_settings, logger=logger_to_use)

    log_message(
        f"{symbols.get('search', '🔎')} Checking for and uninstalling older Docker versions...",
        "info",
        logger_to_use,
        app_settings,
    )
    removed = apt.remove(app_settings.packages.conflicting_packages)

    if removed:
        apt.autoremove()
        log_message(
            f"{symbols.get('success', '✅')} Old packages removed: {', '.join(removed)}.",
            "success",
            logger_to_use,
            app_settings,
        )
    else:
        log_message(
            f"{symbols.get('success', '✅')} No conflicting old packages found to remove.",
            "success",
            logger_to_use,
            app_settings,
        )
    return removed


def setup_docker_repository(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    apt_manager: Optional[AptManager] = None,
) -> str:
    """
    Registers Docker's official APT repository.

    Installs the prerequisites, stores the dearmored GPG key, writes the
    source entry for the host's architecture and codename and refreshes the
    package index.

    Returns:
        The source line that was written.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols
    repo = app_settings.repo
    apt = apt_manager or AptManager(app_settings, logger=logger_to_use)

    log_message(
        f"{symbols.get('tools', '🛠️')} Setting up Docker's official APT repository...",
        "info",
        logger_to_use,
        app_settings,
    )

    apt.install(repo.prerequisite_packages, update_first=True)

    try:
        apt.add_gpg_key_from_url(repo.resolved_key_url, repo.keyring_path)
        log_message(
            f"{symbols.get('success', '✅')} Docker GPG key installed.",
            "success",
            logger_to_use,
            app_settings,
        )
    except Exception as e:
        log_message(
            f"{symbols.get('error', '❌')} Failed to download/install Docker GPG key: {e}",
            "error",
            logger_to_use,
            app_settings,
        )
        raise

    arch = get_architecture(app_settings, current_logger=logger_to_use)
    codename = get_codename(app_settings, current_logger=logger_to_use)
    source_line = build_source_line(app_settings, arch, codename)

    try:
        apt.add_repository(source_line, repo.sources_list_path, update_after=True)
    except Exception as e:
        log_message(
            f"{symbols.get('error', '❌')} Failed to configure Docker apt source: {e}",
            "error",
            logger_to_use,
            app_settings,
        )
        raise

    log_message(
        f"{symbols.get('success', '✅')} Docker APT repository set up.",
        "success",
        logger_to_use,
        app_settings,
    )
    return source_line


def install_docker_packages(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    apt_manager: Optional[AptManager] = None,
) -> List[str]:
    """
    Installs Docker Engine, CLI, containerd and the buildx and compose plugins.

    The package index was refreshed when the repository was registered, so
    no update is run here. The whole set is always handed to apt-get so that
    installed packages are upgraded to the repository's current version.

    Returns:
        The packages that were handed to apt-get.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols
    apt = apt_manager or AptManager(app_settings, logger=logger_to_use)
    pkgs = app_settings.packages.packages

    log_message(
        f"{symbols.get('package', '📦')} Installing Docker packages: {', '.join(pkgs)}...",
        "info",
        logger_to_use,
        app_settings,
    )
    installed = apt.install(pkgs, update_first=False, skip_installed=False)
    log_message(
        f"{symbols.get('success', '✅')} Docker packages installed.",
        "success",
        logger_to_use,
        app_settings,
    )
    return installed
