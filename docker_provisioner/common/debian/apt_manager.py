# common/debian/apt_manager.py
# -*- coding: utf-8 -*-
import logging
import os
import subprocess
import tempfile
from typing import List, Optional

from docker_provisioner.common.command_utils import (
    check_package_installed,
    command_exists,
    run_command,
    run_elevated_command,
)
from docker_provisioner.common.errors import AptError
from docker_provisioner.common.file_utils import write_file_atomic
from docker_provisioner.setup.config_models import AppSettings


class AptManager:
    """
    A centralized manager for Debian apt packages using command-line tools.

    Every operation is attempted once. Failures are logged and raised as
    AptError so the caller can abort the run.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initializes the AptManager.
        Args:
            app_settings: The application settings.
            logger: An optional logging object.
        """
        self.app_settings = app_settings
        self.logger = logger or logging.getLogger(__name__)
        if not command_exists("apt-get"):
            self.logger.critical(
                "'apt-get' command not found. This manager cannot function."
            )
            raise AptError(
                "'apt-get' not found. Is this a Debian-based system?"
            )

    def update(self) -> bool:
        """Updates the list of available packages using 'apt-get update'."""
        self.logger.info("Updating apt package lists via 'apt-get update'...")
        try:
            run_elevated_command(
                ["apt-get", "update", "-yq"],
                self.app_settings,
                current_logger=self.logger,
            )
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            self.logger.error(f"Failed to update apt cache: {e}")
            raise AptError(f"Failed to update apt cache: {e}") from e
        self.logger.info("Apt package lists updated successfully.")
        return True

    def is_installed(self, package_name: str) -> bool:
        return check_package_installed(
            package_name, self.app_settings, current_logger=self.logger
        )

    def install(
        self,
        packages: List[str],
        update_first: bool = True,
        skip_installed: bool = True,
    ) -> List[str]:
        """
        Installs packages using 'apt-get install'.

        Args:
            packages: The package names.
            update_first: Whether to update the package lists before installing.
            skip_installed: Leave packages that are already installed out of
                the apt-get call. When False every package is handed to
                apt-get, which also upgrades installed ones to the candidate
                version.

        Returns:
            The packages that were handed to apt-get.
        """
        if update_first:
            self.update()

        if skip_installed:
            packages_to_install = []
            for pkg_name in packages:
                if self.is_installed(pkg_name):
                    self.logger.info(
                        f"Package '{pkg_name}' is already installed. Skipping."
                    )
                else:
                    self.logger.info(
                        f"Marking package for installation: {pkg_name}"
                    )
                    packages_to_install.append(pkg_name)
        else:
            packages_to_install = list(packages)

        if not packages_to_install:
            self.logger.info("All requested packages are already installed.")
            return []

        self.logger.info(
            f"Committing installation for: {', '.join(packages_to_install)}"
        )
        try:
            run_elevated_command(
                ["apt-get", "install", "-yq"] + packages_to_install,
                self.app_settings,
                current_logger=self.logger,
            )
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            self.logger.error(f"Failed to install packages: {e}")
            raise AptError(f"Failed to install packages: {e}") from e
        self.logger.info("Packages installed successfully.")
        return packages_to_install

    def remove(self, packages: List[str]) -> List[str]:
        """
        Removes the installed packages among the given ones.

        Returns:
            The packages that were removed.
        """
        packages_to_remove = []
        for pkg_name in packages:
            if self.is_installed(pkg_name):
                self.logger.info(f"Marking package for removal: {pkg_name}")
                packages_to_remove.append(pkg_name)
            else:
                self.logger.info(
                    f"Package '{pkg_name}' is not installed. Skipping."
                )

        if not packages_to_remove:
            return []

        self.logger.info(
            f"Committing remove for: {', '.join(packages_to_remove)}"
        )
        try:
            run_elevated_command(
                ["apt-get", "remove", "-yq"] + packages_to_remove,
                self.app_settings,
                current_logger=self.logger,
            )
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            self.logger.error(f"Failed to remove packages: {e}")
            raise AptError(f"Failed to remove packages: {e}") from e
        return packages_to_remove

    def autoremove(self) -> bool:
        """Removes automatically installed packages that are no longer needed."""
        self.logger.info("Running autoremove to clean up unused packages...")
        try:
            run_elevated_command(
                ["apt-get", "autoremove", "-yq"],
                self.app_settings,
                current_logger=self.logger,
            )
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            self.logger.error(f"Failed to autoremove packages: {e}")
            raise AptError(f"Failed to autoremove packages: {e}") from e
        self.logger.info("Autoremove completed successfully.")
        return True

    def add_gpg_key_from_url(self, key_url: str, keyring_path: str) -> bool:
        """
        Downloads an ASCII-armored GPG key and stores it dearmored.

        The keyring directory is created with mode 0755 and the keyring file
        is made world-readable so apt can use it. An existing keyring is
        overwritten.

        Args:
            key_url: The URL of the GPG key.
            keyring_path: The path to save the keyring file.
        """
        self.logger.info(f"Adding GPG key from {key_url} to {keyring_path}")

        keyring_dir = os.path.dirname(keyring_path)
        fd, temp_key_path = tempfile.mkstemp(suffix=".asc")
        os.close(fd)
        try:
            run_elevated_command(
                ["install", "-m", "0755", "-d", keyring_dir],
                self.app_settings,
                current_logger=self.logger,
            )
            self.logger.info(f"Downloading GPG key to {temp_key_path}...")
            run_command(
                ["curl", "-fsSL", key_url, "-o", temp_key_path],
                self.app_settings,
                check=True,
                current_logger=self.logger,
            )
            run_elevated_command(
                [
                    "gpg",
                    "--dearmor",
                    "--batch",
                    "--yes",
                    "-o",
                    keyring_path,
                    temp_key_path,
                ],
                self.app_settings,
                current_logger=self.logger,
            )
            run_elevated_command(
                ["chmod", "a+r", keyring_path],
                self.app_settings,
                current_logger=self.logger,
            )
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            self.logger.error(f"Failed to add GPG key: {e}")
            raise AptError(f"Failed to add GPG key from {key_url}: {e}") from e
        finally:
            if os.path.exists(temp_key_path):
                os.remove(temp_key_path)

        self.logger.info("GPG key added and permissions set.")
        return True

    def add_repository(
        self,
        source_line: str,
        sources_list_path: str,
        update_after: bool = True,
    ) -> bool:
        """
        Registers an apt repository by writing a one-line source list file.

        Args:
            source_line: The complete `deb ...` line.
            sources_list_path: The file under sources.list.d to write.
            update_after: Whether to update package lists after adding.
        """
        self.logger.info(f"Adding repository: {source_line}")
        try:
            write_file_atomic(
                sources_list_path, f"{source_line}\n".encode("utf-8"), 0o644
            )
        except OSError as e:
            self.logger.error(
                f"Failed to create repository file '{sources_list_path}': {e}"
            )
            raise AptError(
                f"Failed to create repository file '{sources_list_path}': {e}"
            ) from e
        self.logger.info(
            f"Successfully created repository file: {sources_list_path}"
        )

        if update_after:
            return self.update()
        return True
