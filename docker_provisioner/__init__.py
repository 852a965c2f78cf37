# -*- coding: utf-8 -*-
"""
Docker Engine provisioner.

Removes conflicting container runtimes, registers the Docker APT repository,
installs Docker Engine, reconciles the daemon configuration and performs the
post-install steps on a single Debian-family host.
"""

__version__ = "1.0.0"
