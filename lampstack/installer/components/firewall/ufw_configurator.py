# lampstack/installer/components/firewall/ufw_configurator.py
"""
UFW (Uncomplicated Firewall) configurator module.
"""

import logging
import subprocess
from typing import List, Optional

from lampstack.common.command_utils import (
    command_exists,
    log_installer,
    run_elevated_command,
)
from lampstack.installer.base_component import BaseComponent
from lampstack.installer.registry import ComponentRegistry
from lampstack.setup.config_models import AppSettings

UFW_RULES: List[List[str]] = [
    ["default", "deny", "incoming"],
    ["default", "allow", "outgoing"],
    ["allow", "ssh"],
    ["allow", "80/tcp"],
    ["allow", "443/tcp"],
]


def allow_application_profile(
    profile: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Open a ufw application profile such as "Apache Full".

    Returns False when ufw is not installed or the rule was rejected.
    """
    if not command_exists("ufw"):
        if current_logger:
            current_logger.debug(f"ufw not installed; not opening '{profile}'.")
        return False
    result = run_elevated_command(
        ["ufw", "allow", profile],
        app_settings,
        check=False,
        current_logger=current_logger,
    )
    return result.returncode == 0


@ComponentRegistry.register(
    name="firewall",
    metadata={
        "dependencies": ["system"],
        "after": ["apache", "nginx"],
        "detect_command": "ufw",
        "description": "UFW (Uncomplicated Firewall) configuration",
    },
)
class UfwConfigurator(BaseComponent):
    """
    Configurator for UFW (Uncomplicated Firewall).

    Denies incoming traffic except SSH, HTTP and HTTPS, then enables ufw.
    """

    def install(self) -> None:
        log_installer(
            f"{self.symbols.get('info', 'ℹ️')} Setting up firewall",
            "info",
            self.logger,
            self.app_settings,
        )
        self.install_packages(["ufw"])
        self._apply_firewall_rules()
        try:
            run_elevated_command(
                ["ufw", "--force", "enable"],
                self.app_settings,
                current_logger=self.logger,
            )
        except subprocess.CalledProcessError:
            self.fail("Failed to enable ufw.")
        log_installer(
            f"{self.symbols.get('success', '✅')} Firewall configured",
            "success",
            self.logger,
            self.app_settings,
        )

    def uninstall(self) -> bool:
        """
        Reset ufw to its default, inactive state. The package is kept.
        """
        try:
            run_elevated_command(
                ["ufw", "--force", "reset"],
                self.app_settings,
                current_logger=self.logger,
            )
            return True
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            self.logger.error(f"Error resetting UFW: {str(e)}")
            return False

    def _apply_firewall_rules(self) -> None:
        for rule in UFW_RULES:
            run_elevated_command(
                ["ufw"] + rule, self.app_settings, current_logger=self.logger
            )
