# -*- coding: utf-8 -*-
"""
Package-level installation steps for Docker Engine.

This package removes conflicting packages, registers the Docker APT
repository and installs the Docker packages.
"""

from docker_provisioner.installer.docker_installer import (
    install_docker_packages,
    remove_conflicting_packages,
    setup_docker_repository,
)

__all__ = [
    "install_docker_packages",
    "remove_conflicting_packages",
    "setup_docker_repository",
]
