# configure/daemon_config_reconciler.py
# -*- coding: utf-8 -*-
"""
Reconciles the Docker daemon configuration file (daemon.json).

The desired configuration is the existing file with the requested settings
merged on top. Merging is shallow: each requested top-level key replaces the
existing value wholesale, and keys that are not requested are kept as they
are. The file is only rewritten when the desired configuration differs from
what is on disk, which is what decides whether the daemon must be restarted.
"""

import copy
import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from docker_provisioner.common.command_utils import get_symbols, log_message
from docker_provisioner.common.errors import ReconcileError
from docker_provisioner.common.file_utils import (
    read_bytes_if_exists,
    write_file_atomic,
)
from docker_provisioner.common.json_utils import (
    canonical_json,
    parse_json_object,
    pretty_json,
)
from docker_provisioner.setup.config_models import (
    DAEMON_DEFAULTS,
    AppSettings,
    ReconcileOptions,
)

module_logger = logging.getLogger(__name__)


class ReconcileResult(BaseModel):
    """Outcome of a reconciliation, before anything is written."""

    model_config = ConfigDict(frozen=True)

    desired: Dict[str, Any]
    content: str
    changed: bool
    existed: bool


def _merge_update(
    desired: Dict[str, Any],
    update: Dict[str, Any],
    description: str,
    logger_to_use: logging.Logger,
    app_settings: Optional[AppSettings],
) -> Dict[str, Any]:
    """
    Returns a copy of `desired` with the top-level keys of `update` replaced.

    If the merged document cannot be serialized, the pre-merge document is
    returned and a warning is logged.
    """
    symbols = get_symbols(app_settings)
    candidate = dict(desired)
    try:
        candidate.update(copy.deepcopy(update))
        canonical_json(candidate)
    except (TypeError, ValueError) as e:
        log_message(
            f"{symbols.get('warning', '!')} Could not apply {description} to the daemon configuration, keeping previous values: {e}",
            "warning",
            logger_to_use,
            app_settings,
        )
        return desired
    return candidate


def merge_daemon_config(
    existing: Dict[str, Any],
    options: ReconcileOptions,
    current_logger: Optional[logging.Logger] = None,
    app_settings: Optional[AppSettings] = None,
) -> Dict[str, Any]:
    """
    Computes the desired daemon configuration.

    Args:
        existing: The parsed existing configuration. It is not modified.
        options: Which settings to merge.
        current_logger: Optional logger instance.
        app_settings: Optional settings providing log symbols.

    Returns:
        A new dictionary in natural key order: existing keys first, in their
        original order, followed by keys introduced by the merge.
    """
    logger_to_use = current_logger if current_logger else module_logger
    desired = dict(existing)

    if options.apply_defaults:
        desired = _merge_update(
            desired, DAEMON_DEFAULTS, "default settings", logger_to_use, app_settings
        )

    if options.data_root is not None:
        desired = _merge_update(
            desired,
            {"data-root": options.data_root},
            f"data-root '{options.data_root}'",
            logger_to_use,
            app_settings,
        )

    return desired


def reconcile_daemon_config(
    existing_content: Optional[bytes],
    options: ReconcileOptions,
    current_logger: Optional[logging.Logger] = None,
    app_settings: Optional[AppSettings] = None,
) -> ReconcileResult:
    """
    Computes the desired configuration and whether it differs from disk.

    This function has no side effects besides logging.

    Args:
        existing_content: Raw bytes of the current file, or None if absent.
        options: Which settings to merge.
        current_logger: Optional logger instance.
        app_settings: Optional settings providing log symbols.

    Returns:
        ReconcileResult. `changed` is always True when the file is absent
        or its content is not a JSON object; otherwise it compares both
        documents after normalizing key order and whitespace.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    existed = existing_content is not None

    existing, valid = parse_json_object(existing_content)
    if existed and not valid:
        log_message(
            f"{symbols.get('warning', '!')} Existing daemon configuration is empty or not a valid JSON object; treating it as {{}}.",
            "warning",
            logger_to_use,
            app_settings,
        )

    desired = merge_daemon_config(
        existing, options, current_logger=logger_to_use, app_settings=app_settings
    )

    if valid:
        changed = canonical_json(desired) != canonical_json(existing)
    else:
        changed = True

    return ReconcileResult(
        desired=desired,
        content=pretty_json(desired),
        changed=changed,
        existed=existed,
    )


def apply_daemon_config(
    app_settings: AppSettings,
    options: ReconcileOptions,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Reconciles the daemon configuration file on disk.

    Reads the file once, writes it at most once and never deletes it.

    Returns:
        True if the file was written and the daemon needs a restart.

    Raises:
        ReconcileError: The file could not be read or written.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols
    daemon_settings = app_settings.daemon
    config_path = daemon_settings.config_path

    log_message(
        f"{symbols.get('gear', '⚙️')} Reconciling Docker daemon configuration at {config_path}...",
        "info",
        logger_to_use,
        app_settings,
    )

    try:
        existing_content = read_bytes_if_exists(config_path, logger_to_use)
    except OSError as e:
        raise ReconcileError(
            f"Could not read daemon configuration {config_path}: {e}"
        ) from e

    result = reconcile_daemon_config(
        existing_content,
        options,
        current_logger=logger_to_use,
        app_settings=app_settings,
    )

    if not result.changed:
        log_message(
            f"{symbols.get('success', '✅')} Docker daemon configuration is already up to date.",
            "success",
            logger_to_use,
            app_settings,
        )
        return False

    try:
        write_file_atomic(
            config_path,
            result.content.encode("utf-8"),
            daemon_settings.file_mode,
            current_logger=logger_to_use,
        )
    except OSError as e:
        log_message(
            f"{symbols.get('error', '❌')} Failed to write daemon configuration {config_path}: {e}",
            "error",
            logger_to_use,
            app_settings,
        )
        raise ReconcileError(
            f"Failed to write daemon configuration {config_path}: {e}"
        ) from e

    action = "Updated" if result.existed else "Created"
    log_message(
        f"{symbols.get('success', '✅')} {action} Docker daemon configuration {config_path}.",
        "success",
        logger_to_use,
        app_settings,
    )
    return True
