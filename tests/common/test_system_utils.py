# tests/common/test_system_utils.py
import subprocess
from unittest.mock import MagicMock

import pytest

from docker_provisioner.common.errors import PrivilegeError, ProvisioningError
from docker_provisioner.common.system_utils import (
    get_architecture,
    get_codename,
    require_root,
    systemd_enable,
    systemd_is_active,
    systemd_restart,
)
from docker_provisioner.setup.config_models import AppSettings

MODULE = "docker_provisioner.common.system_utils"


def test_require_root_as_root(mocker):
    mocker.patch(f"{MODULE}.os.geteuid", return_value=0)

    require_root()


def test_require_root_as_user(mocker, mock_logger):
    mocker.patch(f"{MODULE}.os.geteuid", return_value=1000)

    with pytest.raises(PrivilegeError, match="root"):
        require_root(current_logger=mock_logger)

    mock_logger.error.assert_called_once()


def test_get_codename(mocker, mock_logger):
    mock_run = mocker.patch(
        f"{MODULE}.run_command", return_value=MagicMock(stdout="noble\n")
    )

    assert get_codename(None, mock_logger) == "noble"
    assert mock_run.call_args[0][0] == ["lsb_release", "-cs"]


def test_get_architecture(mocker, mock_logger):
    mock_run = mocker.patch(
        f"{MODULE}.run_command", return_value=MagicMock(stdout="arm64\n")
    )

    assert get_architecture(None, mock_logger) == "arm64"
    assert mock_run.call_args[0][0] == ["dpkg", "--print-architecture"]


def test_get_codename_command_missing(mocker, mock_logger):
    mocker.patch(f"{MODULE}.run_command", side_effect=FileNotFoundError("lsb_release"))

    with pytest.raises(ProvisioningError, match="distribution codename"):
        get_codename(None, mock_logger)


def test_get_codename_empty_output(mocker, mock_logger):
    mocker.patch(f"{MODULE}.run_command", return_value=MagicMock(stdout="  "))

    with pytest.raises(ProvisioningError):
        get_codename(None, mock_logger)


def test_systemd_enable(mocker, mock_logger):
    settings = AppSettings()
    mock_run = mocker.patch(f"{MODULE}.run_elevated_command")

    systemd_enable("docker.service", settings, mock_logger)

    mock_run.assert_called_once_with(
        ["systemctl", "enable", "docker.service"],
        settings,
        current_logger=mock_logger,
    )


def test_systemd_restart_failure(mocker, mock_logger):
    settings = AppSettings()
    mocker.patch(
        f"{MODULE}.run_elevated_command",
        side_effect=subprocess.CalledProcessError(1, "systemctl"),
    )

    with pytest.raises(ProvisioningError, match="Failed to restart docker.service"):
        systemd_restart("docker.service", settings, mock_logger)


@pytest.mark.parametrize("returncode, expected", [(0, True), (3, False)])
def test_systemd_is_active(mocker, mock_logger, returncode, expected):
    settings = AppSettings()
    mock_run = mocker.patch(
        f"{MODULE}.run_elevated_command",
        return_value=MagicMock(returncode=returncode),
    )

    assert systemd_is_active("containerd.service", settings, mock_logger) is expected
    assert mock_run.call_args[0][0] == [
        "systemctl",
        "is-active",
        "--quiet",
        "containerd.service",
    ]
    assert mock_run.call_args[1]["check"] is False
