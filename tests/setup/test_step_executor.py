import pytest

from docker_provisioner.common.errors import AptError, ProvisioningError
from docker_provisioner.setup.config_models import AppSettings
from docker_provisioner.setup.step_executor import execute_step


def test_execute_step_returns_result(mock_logger):
    settings = AppSettings()
    calls = []

    def step(app_settings, logger):
        calls.append((app_settings, logger))
        return True

    assert execute_step("daemon_config", "Reconcile", step, settings, mock_logger) is True
    assert calls == [(settings, mock_logger)]
    mock_logger.info.assert_any_call(
        "--- ✅ Successfully completed: Reconcile (daemon_config) ---",
        exc_info=False,
    )


def test_execute_step_tags_provisioning_error(mock_logger):
    settings = AppSettings()
    mock_logger.isEnabledFor.return_value = False

    def step(app_settings, logger):
        raise AptError("Failed to install packages")

    with pytest.raises(AptError) as exc_info:
        execute_step("docker_packages", "Install", step, settings, mock_logger)

    assert exc_info.value.step_tag == "docker_packages"
    mock_logger.error.assert_any_call(
        "❌ FAILED: Install (docker_packages)", exc_info=False
    )


def test_execute_step_keeps_existing_tag(mock_logger):
    settings = AppSettings()
    mock_logger.isEnabledFor.return_value = False

    def step(app_settings, logger):
        raise ProvisioningError("boom", step_tag="inner")

    with pytest.raises(ProvisioningError) as exc_info:
        execute_step("outer", "Outer", step, settings, mock_logger)

    assert exc_info.value.step_tag == "inner"


def test_execute_step_wraps_other_exceptions(mock_logger):
    settings = AppSettings()
    mock_logger.isEnabledFor.return_value = False

    def step(app_settings, logger):
        raise RuntimeError("unexpected")

    with pytest.raises(ProvisioningError, match="unexpected") as exc_info:
        execute_step("verify", "Verify", step, settings, mock_logger)

    assert exc_info.value.step_tag == "verify"
    assert isinstance(exc_info.value.__cause__, RuntimeError)
