# lampstack/installer/components/system/system_installer.py
# -*- coding: utf-8 -*-
"""
System package refresh, run first in every install.
"""

from lampstack.common.command_utils import log_installer
from lampstack.installer.base_component import BaseComponent
from lampstack.installer.registry import ComponentRegistry


@ComponentRegistry.register(
    name="system",
    metadata={
        "dependencies": [],
        "description": "Refresh apt package lists and upgrade installed packages",
    },
)
class SystemUpdater(BaseComponent):
    """Runs ``apt-get update`` followed by ``apt-get upgrade``."""

    def install(self) -> None:
        log_installer(
            f"{self.symbols.get('info', 'ℹ️')} Updating system packages...",
            "info",
            self.logger,
            self.app_settings,
        )
        if not self.apt_manager.update(self.app_settings):
            self.fail("System update failed.")
        if not self.apt_manager.upgrade(self.app_settings):
            self.fail("System upgrade failed.")

    def uninstall(self) -> bool:
        return True

    def is_installed(self) -> bool:
        return True
