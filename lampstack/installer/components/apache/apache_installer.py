# lampstack/installer/components/apache/apache_installer.py
# -*- coding: utf-8 -*-
"""
Apache installer module.

This module provides the LAMP web-server step: apache2 with mod_php for the
requested PHP version.
"""

import subprocess
from typing import List

from lampstack.common.command_utils import (
    log_installer,
    run_elevated_command,
)
from lampstack.common.file_utils import remove_paths
from lampstack.common.system_utils import (
    safe_restart,
    start_and_enable_service,
    stop_service,
)
from lampstack.installer.base_component import BaseComponent
from lampstack.installer.components.firewall.ufw_configurator import (
    allow_application_profile,
)
from lampstack.installer.registry import ComponentRegistry
from lampstack.setup import config as static_config

APACHE_SERVICE = "apache2"
APACHE_REMOVE_PATHS = [
    "/etc/apache2",
    "/var/log/apache2",
]


@ComponentRegistry.register(
    name="apache",
    metadata={
        "dependencies": ["system"],
        "after": ["php"],
        "detect_command": "apache2",
        "description": "Apache web server with mod_php",
    },
)
class ApacheInstaller(BaseComponent):
    """
    Installer for the Apache web server.

    mod_php for the requested version is added only when PHP is part of the
    request.
    """

    def _wants_php(self) -> bool:
        return self.request is not None and self.request.install_php

    def _get_apache_packages(self) -> List[str]:
        packages = list(static_config.APACHE_PACKAGES)
        if self._wants_php():
            packages.append(f"libapache2-mod-php{self.request.php_version}")
        return packages

    def install(self) -> None:
        log_installer(
            f"{self.symbols.get('package', '📦')} Installing Apache...",
            "info",
            self.logger,
            self.app_settings,
        )
        self.install_packages(self._get_apache_packages())
        allow_application_profile("Apache Full", self.app_settings, self.logger)

        try:
            start_and_enable_service(APACHE_SERVICE, self.app_settings, self.logger)
        except subprocess.CalledProcessError:
            self.fail("Failed to start or enable Apache.")

        try:
            run_elevated_command(
                ["apache2ctl", "configtest"],
                self.app_settings,
                current_logger=self.logger,
            )
        except subprocess.CalledProcessError:
            self.fail("Apache configuration test failed.")

        if self._wants_php():
            try:
                run_elevated_command(
                    ["a2enmod", f"php{self.request.php_version}"],
                    self.app_settings,
                    current_logger=self.logger,
                )
            except subprocess.CalledProcessError:
                self.fail("Failed to enable PHP module.")

        if not safe_restart(APACHE_SERVICE, self.app_settings, self.logger):
            self.fail("Failed to restart Apache.")

        log_installer(
            f"{self.symbols.get('success', '✅')} Apache installed successfully.",
            "success",
            self.logger,
            self.app_settings,
        )

    def uninstall(self) -> bool:
        """
        Uninstall (purge) Apache and delete its configuration and logs.
        """
        log_installer(
            f"{self.symbols.get('info', 'ℹ️')} Removing Apache",
            "info",
            self.logger,
            self.app_settings,
        )
        stop_service(APACHE_SERVICE, self.app_settings, self.logger)
        purged = self.purge_packages(list(static_config.APACHE_PURGE_PACKAGES))
        remove_paths(APACHE_REMOVE_PATHS, self.app_settings, self.logger)
        log_installer(
            f"{self.symbols.get('success', '✅')} Apache removed successfully.",
            "success",
            self.logger,
            self.app_settings,
        )
        return purged
