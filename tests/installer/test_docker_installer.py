# tests/installer/test_docker_installer.py
from unittest.mock import create_autospec

import pytest

from docker_provisioner.common.debian.apt_manager import AptManager
from docker_provisioner.common.errors import AptError, ProvisioningError
from docker_provisioner.installer.docker_installer import (
    build_source_line,
    install_docker_packages,
    remove_conflicting_packages,
    setup_docker_repository,
)
from docker_provisioner.setup.config_models import (
    CONFLICTING_PACKAGES_DEFAULT,
    DOCKER_PACKAGES_DEFAULT,
    PREREQUISITE_PACKAGES_DEFAULT,
    AppSettings,
)


@pytest.fixture
def mock_apt():
    return create_autospec(AptManager, instance=True)


def test_build_source_line_ubuntu():
    settings = AppSettings()

    line = build_source_line(settings, "amd64", "noble")

    assert line == (
        "deb [arch=amd64 signed-by=/etc/apt/keyrings/docker.gpg] "
        "https://download.docker.com/linux/ubuntu noble stable"
    )


def test_build_source_line_debian_and_custom_channel():
    settings = AppSettings(repo={"distribution": "debian", "channel": "test"})

    line = build_source_line(settings, "arm64", "bookworm")

    assert line == (
        "deb [arch=arm64 signed-by=/etc/apt/keyrings/docker.gpg] "
        "https://download.docker.com/linux/debian bookworm test"
    )


def test_remove_conflicting_packages_with_installed(mock_apt, mock_logger):
    """Test that removal is followed by an autoremove."""
    settings = AppSettings()
    mock_apt.remove.return_value = ["docker.io", "runc"]

    removed = remove_conflicting_packages(
        settings, current_logger=mock_logger, apt_manager=mock_apt
    )

    assert removed == ["docker.io", "runc"]
    mock_apt.remove.assert_called_once_with(CONFLICTING_PACKAGES_DEFAULT)
    mock_apt.autoremove.assert_called_once_with()
    mock_logger.info.assert_any_call(
        "✅ Old packages removed: docker.io, runc.", exc_info=False
    )


def test_remove_conflicting_packages_none_installed(mock_apt, mock_logger):
    settings = AppSettings()
    mock_apt.remove.return_value = []

    assert (
        remove_conflicting_packages(
            settings, current_logger=mock_logger, apt_manager=mock_apt
        )
        == []
    )
    mock_apt.autoremove.assert_not_called()


def test_setup_docker_repository_success(mocker, mock_apt, mock_logger):
    """Test the full repository registration sequence."""
    settings = AppSettings()
    mocker.patch(
        "docker_provisioner.installer.docker_installer.get_architecture",
        return_value="amd64",
    )
    mocker.patch(
        "docker_provisioner.installer.docker_installer.get_codename",
        return_value="jammy",
    )

    line = setup_docker_repository(
        settings, current_logger=mock_logger, apt_manager=mock_apt
    )

    mock_apt.install.assert_called_once_with(
        PREREQUISITE_PACKAGES_DEFAULT, update_first=True
    )
    mock_apt.add_gpg_key_from_url.assert_called_once_with(
        "https://download.docker.com/linux/ubuntu/gpg",
        "/etc/apt/keyrings/docker.gpg",
    )
    mock_apt.add_repository.assert_called_once_with(
        line, "/etc/apt/sources.list.d/docker.list", update_after=True
    )
    assert line.endswith("https://download.docker.com/linux/ubuntu jammy stable")
    assert "arch=amd64" in line


def test_setup_docker_repository_gpg_key_failure(mocker, mock_apt, mock_logger):
    """Test that a key failure stops before the source entry is written."""
    settings = AppSettings()
    mock_apt.add_gpg_key_from_url.side_effect = AptError("GPG key error")
    mock_codename = mocker.patch(
        "docker_provisioner.installer.docker_installer.get_codename"
    )

    with pytest.raises(AptError, match="GPG key error"):
        setup_docker_repository(
            settings, current_logger=mock_logger, apt_manager=mock_apt
        )

    mock_apt.add_repository.assert_not_called()
    mock_codename.assert_not_called()


def test_setup_docker_repository_codename_error(mocker, mock_apt, mock_logger):
    settings = AppSettings()
    mocker.patch(
        "docker_provisioner.installer.docker_installer.get_architecture",
        return_value="amd64",
    )
    mocker.patch(
        "docker_provisioner.installer.docker_installer.get_codename",
        side_effect=ProvisioningError("Could not determine distribution codename."),
    )

    with pytest.raises(ProvisioningError, match="codename"):
        setup_docker_repository(
            settings, current_logger=mock_logger, apt_manager=mock_apt
        )

    mock_apt.add_repository.assert_not_called()


def test_install_docker_packages(mock_apt, mock_logger):
    settings = AppSettings()
    mock_apt.install.return_value = list(DOCKER_PACKAGES_DEFAULT)

    installed = install_docker_packages(
        settings, current_logger=mock_logger, apt_manager=mock_apt
    )

    assert installed == DOCKER_PACKAGES_DEFAULT
    mock_apt.install.assert_called_once_with(
        DOCKER_PACKAGES_DEFAULT, update_first=False, skip_installed=False
    )


def test_install_docker_packages_failure(mock_apt, mock_logger):
    settings = AppSettings()
    mock_apt.install.side_effect = AptError("Failed to install packages")

    with pytest.raises(AptError):
        install_docker_packages(
            settings, current_logger=mock_logger, apt_manager=mock_apt
        )


def test_install_docker_packages_upgrades_installed_set(mocker, mock_logger):
    """Test that a rerun hands the installed Docker set to apt-get again."""
    settings = AppSettings()
    mocker.patch(
        "docker_provisioner.common.debian.apt_manager.command_exists",
        return_value=True,
    )
    mocker.patch(
        "docker_provisioner.common.debian.apt_manager.check_package_installed",
        return_value=True,
    )
    mock_run = mocker.patch(
        "docker_provisioner.common.debian.apt_manager.run_elevated_command"
    )
    apt = AptManager(settings, logger=mock_logger)

    install_docker_packages(settings, current_logger=mock_logger, apt_manager=apt)

    mock_run.assert_called_once_with(
        ["apt-get", "install", "-yq"] + DOCKER_PACKAGES_DEFAULT,
        settings,
        current_logger=mock_logger,
    )
