# lampstack/common/system_utils.py
# -*- coding: utf-8 -*-
"""
System-level utility functions for the stack installer.

This module includes helpers for host identification (os-release, primary IP
address, disk and memory), systemd service control and the bounded-retry
service restart used by every installer step.
"""

import logging
import shutil
import socket
import subprocess
import time
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from lampstack.common.command_utils import (
    get_symbols,
    log_installer,
    run_elevated_command,
)
from lampstack.setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def get_primary_ip_address(
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> Optional[str]:
    """
    Get the primary IP address of the machine.

    This function attempts to determine the primary IP address by creating a socket
    connection to an external host (doesn't actually connect).

    Returns:
        The primary IP address as a string, or None if it cannot be determined.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    try:
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            s.connect(("8.8.8.8", 80))
            return str(s.getsockname()[0])
        finally:
            s.close()
    except OSError as e:
        log_installer(
            f"{symbols.get('warning', '!')} Could not determine primary IP address: {e}",
            "warning",
            logger_to_use,
            app_settings,
        )
        return None


def read_os_release(path: str = "/etc/os-release") -> Dict[str, str]:
    """
    Parse an os-release file into a dict.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    values: Dict[str, str] = {}
    for raw_line in Path(path).read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        values[key.strip()] = value.strip().strip('"').strip("'")
    return values


def _version_tuple(version: str) -> Tuple[int, ...]:
    parts = []
    for piece in version.split("."):
        digits = "".join(ch for ch in piece if ch.isdigit())
        if not digits:
            break
        parts.append(int(digits))
    return tuple(parts)


def version_at_least(actual: str, minimum: str) -> bool:
    """Numeric dotted-version comparison; "22.04" >= "20.04", "12" >= "11"."""
    actual_parts = _version_tuple(actual)
    if not actual_parts:
        return False
    minimum_parts = _version_tuple(minimum)
    width = max(len(actual_parts), len(minimum_parts))
    pad = lambda parts: parts + (0,) * (width - len(parts))  # noqa: E731
    return pad(actual_parts) >= pad(minimum_parts)


def free_disk_mb(path: str = "/") -> int:
    """Free space on the filesystem holding ``path``, in MB."""
    return shutil.disk_usage(path).free // (1024 * 1024)


def total_memory_mb(meminfo_path: str = "/proc/meminfo") -> int:
    """Total memory in MB as reported by /proc/meminfo (0 when unreadable)."""
    try:
        for line in Path(meminfo_path).read_text(encoding="utf-8").splitlines():
            if line.startswith("MemTotal:"):
                return int(line.split()[1]) // 1024
    except (OSError, ValueError, IndexError):
        return 0
    return 0


def is_service_active(
    service: str,
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """``systemctl is-active --quiet <service>``."""
    try:
        result = run_elevated_command(
            ["systemctl", "is-active", "--quiet", service],
            app_settings,
            check=False,
            current_logger=current_logger,
        )
    except FileNotFoundError:
        return False
    return result.returncode == 0


def start_and_enable_service(
    service: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Start a service and enable it at boot.

    Raises:
        subprocess.CalledProcessError: If systemctl fails.
    """
    run_elevated_command(
        ["systemctl", "start", service], app_settings, current_logger=current_logger
    )
    run_elevated_command(
        ["systemctl", "enable", service], app_settings, current_logger=current_logger
    )


def stop_service(
    service: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """Stop a service. Returns False instead of raising when systemctl fails."""
    try:
        run_elevated_command(
            ["systemctl", "stop", service],
            app_settings,
            current_logger=current_logger,
        )
        return True
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False


def disable_service(
    service: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """Disable a service at boot. Returns False when systemctl fails."""
    try:
        run_elevated_command(
            ["systemctl", "disable", service],
            app_settings,
            current_logger=current_logger,
        )
        return True
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False


def safe_restart(
    service: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    max_attempts: Optional[int] = None,
    delay: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """
    Restart a service and confirm it is active, with bounded retries.

    Each attempt runs ``systemctl restart`` followed by an active-state check.
    After a failed attempt the helper waits ``delay`` seconds, except after the
    last one. A failure is reported, not raised; the caller decides whether it
    is fatal.

    Args:
        service: The systemd unit name.
        app_settings: Settings; supply the default attempt count and delay.
        current_logger: Optional logger.
        max_attempts: Overrides ``app_settings.service_restart_attempts``.
        delay: Overrides ``app_settings.service_restart_delay``.
        sleep: Sleep function, injectable for tests.

    Returns:
        True once the service is active, False after the last failed attempt.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    attempts = max_attempts if max_attempts is not None else app_settings.service_restart_attempts
    wait = delay if delay is not None else app_settings.service_restart_delay

    for attempt in range(1, attempts + 1):
        log_installer(
            f"{symbols.get('info', 'ℹ️')} Attempting to restart {service} (attempt {attempt}/{attempts})",
            "info",
            logger_to_use,
            app_settings,
        )
        try:
            result = run_elevated_command(
                ["systemctl", "restart", service],
                app_settings,
                check=False,
                current_logger=logger_to_use,
            )
            restarted = result.returncode == 0
        except FileNotFoundError:
            restarted = False

        if restarted and is_service_active(service, app_settings, logger_to_use):
            log_installer(
                f"{symbols.get('success', '✅')} {service} restarted successfully",
                "success",
                logger_to_use,
                app_settings,
            )
            return True

        if attempt < attempts:
            sleep(wait)

    log_installer(
        f"{symbols.get('error', '❌')} Failed to restart {service} after {attempts} attempts",
        "error",
        logger_to_use,
        app_settings,
    )
    return False
