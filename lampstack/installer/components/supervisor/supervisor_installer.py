# lampstack/installer/components/supervisor/supervisor_installer.py
# -*- coding: utf-8 -*-
"""
Supervisor installer module.
"""

import subprocess

from lampstack.common.command_utils import log_installer
from lampstack.common.system_utils import (
    disable_service,
    start_and_enable_service,
    stop_service,
)
from lampstack.installer.base_component import BaseComponent
from lampstack.installer.registry import ComponentRegistry
from lampstack.setup import config as static_config

SUPERVISOR_SERVICE = "supervisor"


@ComponentRegistry.register(
    name="supervisor",
    metadata={
        "dependencies": ["system"],
        "detect_command": "supervisorctl",
        "description": "Supervisor process control system",
    },
)
class SupervisorInstaller(BaseComponent):
    """Installs and starts Supervisor."""

    def install(self) -> None:
        log_installer(
            f"{self.symbols.get('package', '📦')} Installing Supervisor",
            "info",
            self.logger,
            self.app_settings,
        )
        self.install_packages(list(static_config.SUPERVISOR_PACKAGES))
        try:
            start_and_enable_service(SUPERVISOR_SERVICE, self.app_settings, self.logger)
        except subprocess.CalledProcessError:
            self.fail("Failed to start or enable Supervisor.")
        log_installer(
            f"{self.symbols.get('success', '✅')} Supervisor installed successfully",
            "success",
            self.logger,
            self.app_settings,
        )

    def uninstall(self) -> bool:
        log_installer(
            f"{self.symbols.get('info', 'ℹ️')} Removing Supervisor",
            "info",
            self.logger,
            self.app_settings,
        )
        stop_service(SUPERVISOR_SERVICE, self.app_settings, self.logger)
        purged = self.purge_packages(list(static_config.SUPERVISOR_PACKAGES))
        disable_service(SUPERVISOR_SERVICE, self.app_settings, self.logger)
        log_installer(
            f"{self.symbols.get('success', '✅')} Supervisor removed successfully",
            "success",
            self.logger,
            self.app_settings,
        )
        return purged
