# setup/config_models.py
# -*- coding: utf-8 -*-
"""
Pydantic models for provisioner configuration.

This module defines the structured settings for the Docker Engine
provisioner, including defaults, type annotations and descriptions.
Settings can be overridden by environment variables using the
``DOCKER_PROVISION_`` prefix and ``__`` as the nested delimiter, e.g.
``DOCKER_PROVISION_DAEMON__DATA_ROOT=/srv/docker``.
"""

import os
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Default Static Values (can be overridden by config file/env/cli) ---
LOG_PREFIX_DEFAULT: str = "[DOCKER-SETUP]"

DOCKER_DOWNLOAD_BASE_URL: str = "https://download.docker.com/linux"
DISTRIBUTION_DEFAULT: str = "ubuntu"
KEYRING_PATH_DEFAULT: str = "/etc/apt/keyrings/docker.gpg"
SOURCES_LIST_PATH_DEFAULT: str = "/etc/apt/sources.list.d/docker.list"
REPO_CHANNEL_DEFAULT: str = "stable"

PREREQUISITE_PACKAGES_DEFAULT: List[str] = [
    "ca-certificates",
    "curl",
    "gnupg",
    "lsb-release",
]
DOCKER_PACKAGES_DEFAULT: List[str] = [
    "docker-ce",
    "docker-ce-cli",
    "containerd.io",
    "docker-buildx-plugin",
    "docker-compose-plugin",
]
CONFLICTING_PACKAGES_DEFAULT: List[str] = [
    "docker.io",
    "docker-doc",
    "docker-compose",
    "docker-compose-v2",
    "podman-docker",
    "containerd",
    "runc",
    "docker-engine",
]

DAEMON_CONFIG_PATH_DEFAULT: str = "/etc/docker/daemon.json"
DAEMON_CONFIG_MODE_DEFAULT: int = 0o644

# Top-level keys merged into daemon.json when defaults are requested. Each
# key replaces any existing value wholesale.
DAEMON_DEFAULTS: Dict[str, Any] = {
    "log-driver": "json-file",
    "log-opts": {"max-size": "10m", "max-file": "3"},
    "features": {"buildkit": True},
}

DOCKER_GROUP_DEFAULT: str = "docker"
DOCKER_DAEMON_SERVICE_DEFAULT: str = "docker.service"
DOCKER_SERVICES_DEFAULT: List[str] = [
    DOCKER_DAEMON_SERVICE_DEFAULT,
    "containerd.service",
]
VERIFY_IMAGE_DEFAULT: str = "hello-world"

SYMBOLS_DEFAULT: Dict[str, str] = {
    "success": "✅",
    "error": "❌",
    "warning": "⚠️",
    "info": "ℹ️",
    "step": "➡️",
    "gear": "⚙️",
    "package": "📦",
    "rocket": "🚀",
    "search": "🔎",
    "tools": "🛠️",
    "test": "🧪",
    "sparkles": "🎉",
    "critical": "🔥",
    "debug": "🐛",
}


def validate_data_root(value: Optional[str]) -> Optional[str]:
    """
    Validates a custom Docker data-root.

    Returns the value unchanged when it is None or an absolute path, and
    raises ValueError otherwise.
    """
    if value is None:
        return None
    if not value or not os.path.isabs(value):
        raise ValueError(
            f"Custom data-root must be an absolute path, got '{value}'."
        )
    return value


class DockerRepoSettings(BaseModel):
    """Docker APT repository settings."""

    distribution: Literal["ubuntu", "debian"] = Field(
        default=DISTRIBUTION_DEFAULT,
        description="Distribution path used in the Docker download URLs.",
    )
    key_url: Optional[str] = Field(
        default=None,
        description="URL of Docker's GPG key. Derived from the distribution when unset.",
    )
    repo_url: Optional[str] = Field(
        default=None,
        description="Base URL of the Docker APT repository. Derived from the distribution when unset.",
    )
    keyring_path: str = Field(
        default=KEYRING_PATH_DEFAULT,
        description="Destination of the dearmored GPG keyring.",
    )
    sources_list_path: str = Field(
        default=SOURCES_LIST_PATH_DEFAULT,
        description="APT source list file for the Docker repository.",
    )
    channel: str = Field(
        default=REPO_CHANNEL_DEFAULT,
        description="Repository component (stable, test, nightly).",
    )
    prerequisite_packages: List[str] = Field(
        default_factory=lambda: list(PREREQUISITE_PACKAGES_DEFAULT),
        description="Packages required to fetch the key and detect the codename.",
    )

    @property
    def resolved_repo_url(self) -> str:
        return self.repo_url or f"{DOCKER_DOWNLOAD_BASE_URL}/{self.distribution}"

    @property
    def resolved_key_url(self) -> str:
        return self.key_url or f"{self.resolved_repo_url}/gpg"


class DockerPackageSettings(BaseModel):
    """Package sets installed and removed by the provisioner."""

    packages: List[str] = Field(
        default_factory=lambda: list(DOCKER_PACKAGES_DEFAULT),
        description="Docker Engine packages to install.",
    )
    conflicting_packages: List[str] = Field(
        default_factory=lambda: list(CONFLICTING_PACKAGES_DEFAULT),
        description="Unofficial or conflicting packages removed before installing.",
    )


class DaemonSettings(BaseModel):
    """Docker daemon configuration (daemon.json) settings."""

    config_path: str = Field(
        default=DAEMON_CONFIG_PATH_DEFAULT,
        description="Path of the daemon configuration file.",
    )
    apply_defaults: bool = Field(
        default=False,
        description="Merge the default log rotation and buildkit settings.",
    )
    data_root: Optional[str] = Field(
        default=None,
        description="Custom absolute path for Docker's data-root.",
    )
    file_mode: int = Field(
        default=DAEMON_CONFIG_MODE_DEFAULT,
        description="Permission mode applied to the written file.",
    )

    @field_validator("data_root")
    @classmethod
    def _check_data_root(cls, value: Optional[str]) -> Optional[str]:
        return validate_data_root(value)


class PostInstallSettings(BaseModel):
    """Group, user and service settings applied after installation."""

    group: str = Field(
        default=DOCKER_GROUP_DEFAULT,
        description="Group granting access to the Docker socket.",
    )
    services: List[str] = Field(
        default_factory=lambda: list(DOCKER_SERVICES_DEFAULT),
        description="Systemd units to enable and start.",
    )
    daemon_service: str = Field(
        default=DOCKER_DAEMON_SERVICE_DEFAULT,
        description="Unit restarted when the daemon configuration changes.",
    )
    additional_users: List[str] = Field(
        default_factory=list,
        description="Users other than the invoking user to add to the group.",
    )
    verify_image: str = Field(
        default=VERIFY_IMAGE_DEFAULT,
        description="Image run to verify the installation.",
    )


class ReconcileOptions(BaseModel):
    """Immutable inputs of a daemon configuration reconciliation."""

    model_config = ConfigDict(frozen=True)

    apply_defaults: bool = False
    data_root: Optional[str] = None

    @field_validator("data_root")
    @classmethod
    def _check_data_root(cls, value: Optional[str]) -> Optional[str]:
        return validate_data_root(value)

    @classmethod
    def from_settings(cls, daemon: DaemonSettings) -> "ReconcileOptions":
        return cls(apply_defaults=daemon.apply_defaults, data_root=daemon.data_root)

    @property
    def requested(self) -> bool:
        """True when at least one daemon setting was asked for."""
        return self.apply_defaults or self.data_root is not None


class AppSettings(BaseSettings):
    """Main provisioner settings."""

    model_config = SettingsConfigDict(
        env_prefix="DOCKER_PROVISION_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_prefix: str = Field(
        default=LOG_PREFIX_DEFAULT,
        description="Prefix for log messages from the provisioner.",
    )
    repo_only: bool = Field(
        default=False,
        description="Only register the Docker APT repository.",
    )

    repo: DockerRepoSettings = Field(default_factory=DockerRepoSettings)
    packages: DockerPackageSettings = Field(default_factory=DockerPackageSettings)
    daemon: DaemonSettings = Field(default_factory=DaemonSettings)
    post_install: PostInstallSettings = Field(default_factory=PostInstallSettings)

    symbols: Dict[str, str] = Field(
        default_factory=lambda: dict(SYMBOLS_DEFAULT)
    )
