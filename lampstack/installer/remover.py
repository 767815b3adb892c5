# lampstack/installer/remover.py
# -*- coding: utf-8 -*-
"""
Removal workflow: the inverse of the installer steps.

Every subsystem that is detected on the host is stopped, purged and deleted,
web servers first. There is no rollback for removal.
"""

import logging
from typing import Callable, Dict, List, Optional

from lampstack.common.command_utils import get_symbols, log_installer
from lampstack.common.debian.apt_manager import AptManager
from lampstack.common.network_utils import free_ports
from lampstack.installer.components import load_all_components
from lampstack.installer.registry import ComponentRegistry
from lampstack.setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)

REMOVAL_ORDER = [
    "apache",
    "nginx",
    "mysql",
    "php",
    "phpmyadmin",
    "supervisor",
    "composer",
]

# Steps removed only after the operator agrees.
CONFIRM_BEFORE_REMOVAL = {
    "supervisor": "Supervisor is installed. Do you want to remove it?",
}


class RemovalWorkflow:
    """
    Removes the stack from the host.

    Args:
        app_settings: The application settings.
        confirm: Yes/no callback used for the subsystems that need an explicit
            go-ahead. Defaults to declining.
        logger: Optional logger.
        apt_manager: Optional shared AptManager.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        confirm: Optional[Callable[[str], bool]] = None,
        logger: Optional[logging.Logger] = None,
        apt_manager: Optional[AptManager] = None,
    ):
        self.app_settings = app_settings
        self.confirm = confirm or (lambda question: False)
        self.logger = logger or module_logger
        self._apt_manager = apt_manager
        load_all_components(self.logger)

    @property
    def apt_manager(self) -> AptManager:
        if self._apt_manager is None:
            self._apt_manager = AptManager(logger=self.logger)
        return self._apt_manager

    def run(self) -> bool:
        """
        Remove every detected subsystem, then free the well-known ports and
        repair the package database.

        Returns:
            True when every attempted removal reported success.
        """
        symbols = get_symbols(self.app_settings)
        log_installer(
            f"{symbols.get('info', 'ℹ️')} Removing existing web server installation",
            "info",
            self.logger,
            self.app_settings,
        )

        outcome: Dict[str, bool] = {}
        for name in REMOVAL_ORDER:
            component = ComponentRegistry.get_component(name)(
                self.app_settings,
                request=None,
                logger=self.logger,
                apt_manager=self.apt_manager,
            )
            if not component.is_installed():
                self.logger.debug(f"{name} not detected; skipping removal.")
                continue
            question = CONFIRM_BEFORE_REMOVAL.get(name)
            if question and not self.confirm(question):
                log_installer(
                    f"{symbols.get('info', 'ℹ️')} {name} was not removed.",
                    "info",
                    self.logger,
                    self.app_settings,
                )
                continue
            outcome[name] = component.uninstall()
            if not outcome[name]:
                log_installer(
                    f"{symbols.get('warning', '!')} Removal of {name} reported errors",
                    "warning",
                    self.logger,
                    self.app_settings,
                )

        free_ports(self.app_settings.cleanup_ports, self.app_settings, self.logger)
        self._clean_package_state()

        failed: List[str] = [name for name, ok in outcome.items() if not ok]
        if failed:
            log_installer(
                f"{symbols.get('warning', '!')} Removal finished with errors in: {', '.join(failed)}",
                "warning",
                self.logger,
                self.app_settings,
            )
            return False
        log_installer(
            f"{symbols.get('success', '✅')} Existing installation removed; system is clean",
            "success",
            self.logger,
            self.app_settings,
        )
        return True

    def _clean_package_state(self) -> None:
        log_installer(
            f"{get_symbols(self.app_settings).get('info', 'ℹ️')} Checking for broken installations",
            "info",
            self.logger,
            self.app_settings,
        )
        self.apt_manager.fix_broken(self.app_settings)
        self.apt_manager.autoremove(app_settings=self.app_settings)
        self.apt_manager.autoclean(self.app_settings)
        self.apt_manager.autoclean(self.app_settings, full=True)
