# lampstack/installer/requirements.py
# -*- coding: utf-8 -*-
"""
Pre-flight host checks run before anything is changed.

Privilege, OS identity and OS version are fatal; disk space and memory only
produce warnings.
"""

import logging
import os
from typing import Callable, List, Optional

from lampstack.common.command_utils import get_symbols, log_installer
from lampstack.common.system_utils import (
    free_disk_mb,
    read_os_release,
    total_memory_mb,
    version_at_least,
)
from lampstack.setup.config_models import AppSettings, RequirementReport

module_logger = logging.getLogger(__name__)


def _fatal(
    reason: str,
    app_settings: AppSettings,
    logger: logging.Logger,
    os_id: Optional[str] = None,
    os_version: Optional[str] = None,
) -> RequirementReport:
    log_installer(
        f"{get_symbols(app_settings).get('error', '❌')} {reason}",
        "error",
        logger,
        app_settings,
    )
    return RequirementReport(
        passed=False, reason=reason, os_id=os_id, os_version=os_version
    )


def check_requirements(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    geteuid: Callable[[], int] = os.geteuid,
) -> RequirementReport:
    """
    Validate the host before any mutation.

    Checks, in order: effective UID 0, a supported OS id, the per-OS minimum
    VERSION_ID, free disk space and total memory. The first failing fatal
    check ends the evaluation.

    Args:
        app_settings: Settings with the supported OS table and thresholds.
        current_logger: Optional logger.
        geteuid: UID probe, injectable for tests.

    Returns:
        A RequirementReport; ``passed`` is False on a fatal failure.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    log_installer(
        f"{symbols.get('info', 'ℹ️')} Checking system requirements...",
        "info",
        logger_to_use,
        app_settings,
    )

    if geteuid() != 0:
        return _fatal(
            "This script must be run as root.", app_settings, logger_to_use
        )

    try:
        os_release = read_os_release(app_settings.os_release_path)
    except OSError:
        return _fatal(
            f"Cannot determine the operating system: {app_settings.os_release_path} is not readable.",
            app_settings,
            logger_to_use,
        )

    os_id = os_release.get("ID", "").lower()
    os_version = os_release.get("VERSION_ID", "")
    if os_id not in app_settings.supported_os:
        return _fatal(
            f"Unsupported operating system '{os_id or 'unknown'}'. "
            f"Supported: {', '.join(sorted(app_settings.supported_os))}.",
            app_settings,
            logger_to_use,
            os_id=os_id or None,
            os_version=os_version or None,
        )

    minimum_version = app_settings.supported_os[os_id]
    if not version_at_least(os_version, minimum_version):
        return _fatal(
            f"{os_id.capitalize()} {os_version or 'unknown'} is not supported; "
            f"version {minimum_version} or newer is required.",
            app_settings,
            logger_to_use,
            os_id=os_id,
            os_version=os_version or None,
        )

    warnings: List[str] = []
    disk_mb = free_disk_mb("/")
    if disk_mb < app_settings.min_disk_mb:
        warnings.append(
            f"Low disk space: {disk_mb}MB free, {app_settings.min_disk_mb}MB recommended."
        )
    memory_mb = total_memory_mb()
    if memory_mb < app_settings.min_memory_mb:
        warnings.append(
            f"Low memory: {memory_mb}MB total, {app_settings.min_memory_mb}MB recommended."
        )
    for warning in warnings:
        log_installer(
            f"{symbols.get('warning', '!')} {warning}",
            "warning",
            logger_to_use,
            app_settings,
        )

    log_installer(
        f"{symbols.get('success', '✅')} System requirements met ({os_id} {os_version})",
        "success",
        logger_to_use,
        app_settings,
    )
    return RequirementReport(
        passed=True, warnings=warnings, os_id=os_id, os_version=os_version
    )
