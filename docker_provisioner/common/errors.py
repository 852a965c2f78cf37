# common/errors.py
# -*- coding: utf-8 -*-
"""
Exception types raised by the provisioner.

ProvisioningError and its subclasses are fatal: the run stops and the
process exits with status 1. ConfigError is raised for invalid settings or
command-line input and is reported before any change is made to the host.
"""

from typing import Optional


class ProvisioningError(Exception):
    """A fatal error that aborts the provisioning run."""

    def __init__(self, message: str, step_tag: Optional[str] = None):
        super().__init__(message)
        self.step_tag = step_tag


class PrivilegeError(ProvisioningError):
    """The process lacks the root privileges the run requires."""


class AptError(ProvisioningError):
    """An apt, dpkg or keyring operation failed."""


class ReconcileError(ProvisioningError):
    """The daemon configuration file could not be written."""


class VerificationError(ProvisioningError):
    """The post-install verification workload failed."""


class ConfigError(Exception):
    """Invalid settings, configuration file or command-line input."""
