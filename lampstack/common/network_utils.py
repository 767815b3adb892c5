# lampstack/common/network_utils.py
# -*- coding: utf-8 -*-
"""
Network-related utility functions: connectivity probe, downloads, port
cleanup and the optional completion e-mail.
"""
import logging
import subprocess
from pathlib import Path
from typing import Iterable, List, Optional, Union

import requests

from lampstack.common.command_utils import (
    command_exists,
    get_symbols,
    log_installer,
    run_command,
    run_elevated_command,
)
from lampstack.setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def check_connectivity(
    hosts: Iterable[str],
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Ping each host once; True as soon as one answers.

    An unreachable network is only a warning for the installer.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    for host in hosts:
        try:
            result = run_command(
                ["ping", "-c", "1", "-W", "5", host],
                app_settings,
                check=False,
                capture_output=True,
                current_logger=logger_to_use,
            )
        except FileNotFoundError:
            break
        if result.returncode == 0:
            log_installer(
                f"{symbols.get('success', '✅')} Network connectivity confirmed via {host}",
                "debug",
                logger_to_use,
                app_settings,
            )
            return True

    log_installer(
        f"{symbols.get('warning', '!')} Network connectivity issues detected",
        "warning",
        logger_to_use,
        app_settings,
    )
    return False


def port_in_use(
    port: int,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """True when ``lsof`` reports a process bound to the TCP/UDP port."""
    try:
        result = run_elevated_command(
            ["lsof", "-i", f":{port}"],
            app_settings,
            check=False,
            capture_output=True,
            current_logger=current_logger,
        )
    except FileNotFoundError:
        return False
    return result.returncode == 0 and bool(result.stdout.strip())


def free_ports(
    ports: Iterable[int],
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> List[int]:
    """
    Kill any process still bound to one of ``ports``.

    Returns:
        The ports on which processes were found and killed.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    killed: List[int] = []

    log_installer(
        f"{symbols.get('info', 'ℹ️')} Checking for running services",
        "info",
        logger_to_use,
        app_settings,
    )
    for port in ports:
        if not port_in_use(port, app_settings, logger_to_use):
            log_installer(f"Port {port} is free.", "info", logger_to_use, app_settings)
            continue
        log_installer(
            f"{symbols.get('warning', '!')} Port {port} is still in use. Killing processes...",
            "warning",
            logger_to_use,
            app_settings,
        )
        try:
            run_elevated_command(
                ["fuser", "-k", f"{port}/tcp"],
                app_settings,
                check=False,
                current_logger=logger_to_use,
            )
            killed.append(port)
        except FileNotFoundError:
            log_installer(
                f"{symbols.get('error', '❌')} 'fuser' not available; cannot free port {port}",
                "error",
                logger_to_use,
                app_settings,
            )
    return killed


def send_notification(
    subject: str,
    message: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Mail ``message`` to ``app_settings.admin_email`` with the ``mail`` command.

    Does nothing (returns False) unless completion e-mails are enabled, a
    recipient is configured and ``mail`` is installed.
    """
    logger_to_use = current_logger if current_logger else module_logger
    if not (app_settings.send_completion_email and app_settings.admin_email):
        return False
    if not command_exists("mail"):
        log_installer(
            "'mail' command not found; skipping completion notification.",
            "warning",
            logger_to_use,
            app_settings,
        )
        return False
    try:
        run_command(
            ["mail", "-s", subject, app_settings.admin_email],
            app_settings,
            cmd_input=message,
            current_logger=logger_to_use,
            secret_input=True,
        )
        return True
    except subprocess.CalledProcessError:
        log_installer(
            "Failed to send completion notification.",
            "warning",
            logger_to_use,
            app_settings,
        )
        return False


def download_file(
    url: str,
    download_to_path: Union[str, Path],
    timeout: int = 120,
    current_logger: Optional[logging.Logger] = None,
) -> Path:
    """
    Stream ``url`` to ``download_to_path``.

    Raises:
        requests.RequestException: On HTTP or connection errors.
        OSError: If the file cannot be written.
    """
    logger_to_use = current_logger if current_logger else module_logger
    download_path = Path(download_to_path)
    logger_to_use.info(f"Downloading {url}")
    download_path.parent.mkdir(parents=True, exist_ok=True)

    with requests.get(url, stream=True, timeout=timeout) as response:
        response.raise_for_status()
        with open(download_path, "wb") as f:
            for chunk in response.iter_content(chunk_size=8192):
                if chunk:
                    f.write(chunk)
    logger_to_use.info(f"Downloaded to: {download_path}")
    return download_path


def fetch_text(url: str, timeout: int = 120) -> str:
    """GET ``url`` and return the body; raises requests.RequestException."""
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    return response.text
