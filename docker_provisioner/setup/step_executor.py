# setup/step_executor.py
# -*- coding: utf-8 -*-
"""
Provides functionality to execute individual provisioning steps.

Steps run in a fixed linear order. A failing step aborts the run: its error
is logged and re-raised as a ProvisioningError carrying the step tag. No
step is retried.
"""

import logging
from typing import Any, Callable, Optional

from docker_provisioner.common.command_utils import log_message
from docker_provisioner.common.errors import ProvisioningError
from docker_provisioner.setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def execute_step(
    step_tag: str,
    step_description: str,
    step_function: Callable[[AppSettings, Optional[logging.Logger]], Any],
    app_settings: AppSettings,
    current_logger_instance: Optional[logging.Logger] = None,
) -> Any:
    """
    Execute a single provisioning step.

    Args:
        step_tag: A unique string identifier for the step.
        step_description: A human-readable description of the step.
        step_function: The function to call to execute the step.
                       Expected signature: (app_settings: AppSettings, current_logger: Optional[logging.Logger]) -> Any
        app_settings: The application settings object.
        current_logger_instance: The logger instance to use.

    Returns:
        Whatever the step function returned.

    Raises:
        ProvisioningError: The step function raised. Provisioning errors
            are re-raised with the step tag set; other exceptions are
            wrapped.
    """
    logger_to_use = (
        current_logger_instance if current_logger_instance else module_logger
    )
    symbols = app_settings.symbols

    log_message(
        f"--- {symbols.get('step', '➡️')} Executing: {step_description} ({step_tag}) ---",
        "info",
        logger_to_use,
        app_settings,
    )
    try:
        step_result = step_function(app_settings, logger_to_use)
    except Exception as e:
        log_message(
            f"{symbols.get('error', '❌')} FAILED: {step_description} ({step_tag})",
            "error",
            logger_to_use,
            app_settings,
        )
        log_message(
            f"   Error details: {str(e)}",
            "error",
            logger_to_use,
            app_settings,
            exc_info=logger_to_use.isEnabledFor(logging.DEBUG),
        )
        if isinstance(e, ProvisioningError):
            if e.step_tag is None:
                e.step_tag = step_tag
            raise
        raise ProvisioningError(str(e), step_tag=step_tag) from e

    log_message(
        f"--- {symbols.get('success', '✅')} Successfully completed: {step_description} ({step_tag}) ---",
        "success",
        logger_to_use,
        app_settings,
    )
    return step_result
