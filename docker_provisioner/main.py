# -*- coding: utf-8 -*-
"""
Command-line entry point of the Docker Engine provisioner.

Exit status is 0 on success, 1 on any fatal provisioning error and 2 on
invalid command-line input or configuration.
"""

import argparse
import functools
import logging
import os
import sys
from typing import List, Optional

from docker_provisioner.common.command_utils import log_message
from docker_provisioner.common.debian.apt_manager import AptManager
from docker_provisioner.common.errors import ConfigError, ProvisioningError
from docker_provisioner.common.logging_config import setup_logging
from docker_provisioner.common.system_utils import require_root
from docker_provisioner.configure.daemon_config_reconciler import (
    apply_daemon_config,
)
from docker_provisioner.configure.docker_configurator import (
    add_users_to_docker_group,
    enable_and_start_services,
    ensure_docker_group,
    verify_docker_installation,
)
from docker_provisioner.installer.docker_installer import (
    install_docker_packages,
    remove_conflicting_packages,
    setup_docker_repository,
)
from docker_provisioner.setup.config_loader import load_app_settings
from docker_provisioner.setup.config_models import (
    AppSettings,
    ReconcileOptions,
    validate_data_root,
)
from docker_provisioner.setup.step_executor import execute_step

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

LOGGER_NAME = "docker_provisioner"


def _absolute_path(value: str) -> str:
    try:
        return validate_data_root(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="install_docker",
        description=(
            "Removes conflicting container runtimes, registers Docker's APT "
            "repository, installs Docker Engine and configures it. Must be "
            "run as root."
        ),
    )
    parser.add_argument(
        "-d",
        "--apply-defaults",
        action="store_true",
        help="Merge default daemon settings (json-file log rotation, buildkit) into daemon.json.",
    )
    parser.add_argument(
        "-r",
        "--data-root",
        type=_absolute_path,
        metavar="PATH",
        help="Set a custom Docker data-root in daemon.json. Must be an absolute path.",
    )
    parser.add_argument(
        "-u",
        "--additional-user",
        dest="additional_users",
        action="append",
        metavar="USER",
        help="Also add USER to the docker group. May be repeated.",
    )
    parser.add_argument(
        "--distribution",
        choices=["ubuntu", "debian"],
        help="Docker repository distribution (default: ubuntu).",
    )
    parser.add_argument(
        "--repo-only",
        action="store_true",
        help="Only register Docker's APT repository, then exit.",
    )
    parser.add_argument(
        "--config",
        metavar="FILE",
        help="YAML file with provisioner settings.",
    )
    parser.add_argument(
        "--log-file",
        metavar="FILE",
        help="Also write JSON log lines to FILE.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose output"
    )
    return parser.parse_args(args)


def run_repository_setup(
    app_settings: AppSettings, logger: logging.Logger
) -> None:
    """Registers the Docker APT repository only."""
    apt = AptManager(app_settings, logger=logger)
    execute_step(
        "docker_repo",
        "Set up Docker APT repository",
        functools.partial(setup_docker_repository, apt_manager=apt),
        app_settings,
        logger,
    )


def run_full_install(
    app_settings: AppSettings, logger: logging.Logger
) -> List[str]:
    """
    Runs the complete provisioning sequence.

    Returns:
        The users added to the docker group, who must log in again.
    """
    apt = AptManager(app_settings, logger=logger)
    options = ReconcileOptions.from_settings(app_settings.daemon)

    execute_step(
        "remove_conflicts",
        "Uninstall old/conflicting Docker packages",
        functools.partial(remove_conflicting_packages, apt_manager=apt),
        app_settings,
        logger,
    )
    execute_step(
        "docker_repo",
        "Set up Docker APT repository",
        functools.partial(setup_docker_repository, apt_manager=apt),
        app_settings,
        logger,
    )
    execute_step(
        "docker_packages",
        "Install Docker Engine packages",
        functools.partial(install_docker_packages, apt_manager=apt),
        app_settings,
        logger,
    )

    config_changed = False
    if options.requested:
        config_changed = execute_step(
            "daemon_config",
            "Reconcile Docker daemon configuration",
            lambda settings, step_logger: apply_daemon_config(
                settings, options, step_logger
            ),
            app_settings,
            logger,
        )
    else:
        log_message(
            "No daemon settings requested; leaving daemon configuration untouched.",
            "info",
            logger,
            app_settings,
        )

    execute_step(
        "docker_group",
        "Ensure docker group exists",
        ensure_docker_group,
        app_settings,
        logger,
    )
    added_users = execute_step(
        "docker_users",
        "Add users to docker group",
        add_users_to_docker_group,
        app_settings,
        logger,
    )
    execute_step(
        "docker_services",
        "Enable and start Docker services",
        lambda settings, step_logger: enable_and_start_services(
            settings, restart=config_changed, current_logger=step_logger
        ),
        app_settings,
        logger,
    )
    execute_step(
        "verify",
        "Verify Docker installation",
        verify_docker_installation,
        app_settings,
        logger,
    )
    return added_users


def _log_final_instructions(
    app_settings: AppSettings, added_users: List[str], logger: logging.Logger
) -> None:
    symbols = app_settings.symbols
    group = app_settings.post_install.group
    log_message(
        f"{symbols.get('sparkles', '🎉')} Docker installation successful!",
        "success",
        logger,
        app_settings,
    )
    if added_users:
        log_message(
            f"{symbols.get('warning', '!')} IMPORTANT: For users added to the '{group}' group ({' '.join(added_users)}),",
            "warning",
            logger,
            app_settings,
        )
        log_message(
            f"   you must log out and log back in, or run 'newgrp {group}', before you can run Docker commands without sudo.",
            "warning",
            logger,
            app_settings,
        )
    log_message(
        f"   You can test Docker without sudo (after re-logging in) by running: docker run {app_settings.post_install.verify_image}",
        "info",
        logger,
        app_settings,
    )


def main(args: Optional[List[str]] = None) -> int:
    """
    Main entry point for the provisioner.

    Args:
        args: Command-line arguments. If None, sys.argv[1:] is used.

    Returns:
        Exit code.
    """
    parsed_args = parse_args(args)
    logger = setup_logging(
        LOGGER_NAME,
        verbose=parsed_args.verbose,
        log_file_path=parsed_args.log_file,
    )

    try:
        app_settings = load_app_settings(
            cli_args=parsed_args,
            config_file_path=parsed_args.config,
            current_logger=logger,
        )
    except ConfigError as e:
        logger.error(str(e))
        return EXIT_USAGE

    symbols = app_settings.symbols
    try:
        require_root(app_settings, current_logger=logger)
        if app_settings.repo_only:
            log_message(
                f"{symbols.get('rocket', '🚀')} Setting up Docker APT repository...",
                "info",
                logger,
                app_settings,
            )
            run_repository_setup(app_settings, logger)
            log_message(
                f"{symbols.get('sparkles', '🎉')} Docker APT repository setup complete!",
                "success",
                logger,
                app_settings,
            )
            return EXIT_SUCCESS

        log_message(
            f"{symbols.get('rocket', '🚀')} Starting Docker Engine installation (pid {os.getpid()})...",
            "info",
            logger,
            app_settings,
        )
        added_users = run_full_install(app_settings, logger)
    except ProvisioningError as e:
        step = f" during step '{e.step_tag}'" if e.step_tag else ""
        log_message(
            f"{symbols.get('critical', '🔥')} Provisioning aborted{step}: {e}",
            "critical",
            logger,
            app_settings,
        )
        return EXIT_FAILURE
    except KeyboardInterrupt:
        log_message(
            f"{symbols.get('warning', '!')} Interrupted. Steps already completed remain applied.",
            "warning",
            logger,
            app_settings,
        )
        return 130

    _log_final_instructions(app_settings, added_users, logger)
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
