# tests/test_main.py
# -*- coding: utf-8 -*-
import logging
from unittest.mock import MagicMock

import pytest

from docker_provisioner import main as cli
from docker_provisioner.common.errors import (
    ConfigError,
    PrivilegeError,
    VerificationError,
)
from docker_provisioner.setup.config_models import AppSettings

MODULE = "docker_provisioner.main"


@pytest.fixture
def no_logging_setup(mocker):
    return mocker.patch(
        f"{MODULE}.setup_logging", return_value=MagicMock(spec=logging.Logger)
    )


@pytest.fixture
def steps(mocker):
    """Patches every host-changing step and records the call order."""
    order = []

    def recorder(name, result=None):
        def _step(*args, **kwargs):
            order.append(name)
            return result

        return _step

    mocker.patch(f"{MODULE}.AptManager")
    mocker.patch(
        f"{MODULE}.remove_conflicting_packages",
        side_effect=recorder("remove_conflicts", []),
    )
    mocker.patch(
        f"{MODULE}.setup_docker_repository",
        side_effect=recorder("docker_repo", "deb ..."),
    )
    mocker.patch(
        f"{MODULE}.install_docker_packages",
        side_effect=recorder("docker_packages", []),
    )
    apply_mock = mocker.patch(
        f"{MODULE}.apply_daemon_config",
        side_effect=recorder("daemon_config", True),
    )
    mocker.patch(
        f"{MODULE}.ensure_docker_group",
        side_effect=recorder("docker_group", False),
    )
    mocker.patch(
        f"{MODULE}.add_users_to_docker_group",
        side_effect=recorder("docker_users", ["alice"]),
    )
    services_mock = mocker.patch(
        f"{MODULE}.enable_and_start_services",
        side_effect=recorder("docker_services"),
    )
    verify_mock = mocker.patch(
        f"{MODULE}.verify_docker_installation",
        side_effect=recorder("verify"),
    )
    return {
        "order": order,
        "apply": apply_mock,
        "services": services_mock,
        "verify": verify_mock,
    }


def test_help_exits_zero(capsys):
    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args(["--help"])

    assert exc_info.value.code == 0
    out = capsys.readouterr().out
    assert "--apply-defaults" in out
    assert "--data-root" in out


def test_relative_data_root_rejected_before_any_action(mocker, capsys):
    mock_setup_logging = mocker.patch(f"{MODULE}.setup_logging")
    mock_require_root = mocker.patch(f"{MODULE}.require_root")
    mock_apt = mocker.patch(f"{MODULE}.AptManager")

    with pytest.raises(SystemExit) as exc_info:
        cli.main(["--data-root", "relative/path"])

    assert exc_info.value.code == 2
    assert "absolute path" in capsys.readouterr().err
    mock_setup_logging.assert_not_called()
    mock_require_root.assert_not_called()
    mock_apt.assert_not_called()


def test_additional_user_is_repeatable():
    args = cli.parse_args(["-u", "alice", "--additional-user", "bob", "-d"])

    assert args.additional_users == ["alice", "bob"]
    assert args.apply_defaults is True
    assert args.data_root is None


def test_config_error_exits_two(mocker, no_logging_setup):
    mocker.patch(
        f"{MODULE}.load_app_settings", side_effect=ConfigError("bad config")
    )
    mock_require_root = mocker.patch(f"{MODULE}.require_root")

    assert cli.main([]) == cli.EXIT_USAGE
    mock_require_root.assert_not_called()


def test_not_root_exits_one(mocker, no_logging_setup, steps):
    mocker.patch(f"{MODULE}.load_app_settings", return_value=AppSettings())
    mocker.patch(
        f"{MODULE}.require_root", side_effect=PrivilegeError("needs root")
    )

    assert cli.main([]) == cli.EXIT_FAILURE
    assert steps["order"] == []


def test_full_install_step_order_with_daemon_settings(
    mocker, no_logging_setup, steps
):
    mocker.patch(f"{MODULE}.require_root")
    mocker.patch(
        f"{MODULE}.load_app_settings",
        return_value=AppSettings(daemon={"apply_defaults": True}),
    )

    assert cli.main(["-d"]) == cli.EXIT_SUCCESS

    assert steps["order"] == [
        "remove_conflicts",
        "docker_repo",
        "docker_packages",
        "daemon_config",
        "docker_group",
        "docker_users",
        "docker_services",
        "verify",
    ]
    assert steps["services"].call_args[1]["restart"] is True


def test_full_install_without_daemon_settings_skips_reconcile(
    mocker, no_logging_setup, steps
):
    mocker.patch(f"{MODULE}.require_root")
    mocker.patch(f"{MODULE}.load_app_settings", return_value=AppSettings())

    assert cli.main([]) == cli.EXIT_SUCCESS

    steps["apply"].assert_not_called()
    assert "daemon_config" not in steps["order"]
    assert steps["services"].call_args[1]["restart"] is False


def test_unchanged_config_does_not_restart(mocker, no_logging_setup, steps):
    mocker.patch(f"{MODULE}.require_root")
    mocker.patch(
        f"{MODULE}.load_app_settings",
        return_value=AppSettings(daemon={"data_root": "/srv/docker"}),
    )
    steps["apply"].side_effect = None
    steps["apply"].return_value = False

    assert cli.main(["-r", "/srv/docker"]) == cli.EXIT_SUCCESS

    steps["apply"].assert_called_once()
    assert steps["services"].call_args[1]["restart"] is False


def test_verification_failure_exits_one(mocker, no_logging_setup, steps):
    mocker.patch(f"{MODULE}.require_root")
    mocker.patch(f"{MODULE}.load_app_settings", return_value=AppSettings())
    steps["verify"].side_effect = VerificationError("hello-world failed")

    assert cli.main([]) == cli.EXIT_FAILURE

    logger = no_logging_setup.return_value
    logger.critical.assert_called_once()
    assert "'verify'" in logger.critical.call_args[0][0]


def test_repo_only_runs_repository_step_only(mocker, no_logging_setup, steps):
    mocker.patch(f"{MODULE}.require_root")
    mocker.patch(
        f"{MODULE}.load_app_settings",
        return_value=AppSettings(repo_only=True),
    )

    assert cli.main(["--repo-only"]) == cli.EXIT_SUCCESS

    assert steps["order"] == ["docker_repo"]
