# lampstack/installer/components/php/php_installer.py
# -*- coding: utf-8 -*-
"""
PHP installer module.

Adds the third-party PHP repository (ondrej PPA on Ubuntu, sury.org on
Debian), installs the requested PHP version with its extensions, makes it the
default ``php`` and optionally tunes php.ini.
"""

import glob
import re
from pathlib import Path
from typing import Dict, List

from lampstack.common.command_utils import (
    command_exists,
    log_installer,
    run_elevated_command,
)
from lampstack.common.file_utils import remove_paths
from lampstack.common.system_utils import read_os_release, safe_restart
from lampstack.installer.base_component import BaseComponent
from lampstack.installer.registry import ComponentRegistry
from lampstack.setup import config as static_config
from lampstack.setup.config_models import PhpTuningSettings

PHP_REMOVE_PATHS = ["/etc/php", "/var/lib/php", "/var/log/php"]


def php_packages(php_version: str) -> List[str]:
    return [f"php{php_version}-{ext}" for ext in static_config.PHP_EXTENSIONS]


def tuned_ini(content: str, tuning: PhpTuningSettings) -> str:
    """
    Return php.ini ``content`` with the tuning values applied.

    Existing directives (commented out or not) are replaced in place; missing
    ones are appended.
    """
    directives: Dict[str, str] = {
        "memory_limit": tuning.memory_limit,
        "max_execution_time": str(tuning.max_execution_time),
        "upload_max_filesize": tuning.upload_max_filesize,
        "post_max_size": tuning.upload_max_filesize,
        "opcache.enable": "1",
        "opcache.memory_consumption": str(tuning.opcache_memory_consumption),
        "opcache.max_accelerated_files": str(tuning.opcache_max_accelerated_files),
        "opcache.validate_timestamps": "1",
    }
    for key, value in directives.items():
        pattern = re.compile(rf"^;?\s*{re.escape(key)}\s*=.*$", re.MULTILINE)
        line = f"{key} = {value}"
        if pattern.search(content):
            content = pattern.sub(line, content, count=1)
        else:
            if content and not content.endswith("\n"):
                content += "\n"
            content += line + "\n"
    return content


@ComponentRegistry.register(
    name="php",
    metadata={
        "dependencies": ["system"],
        "detect_command": "php",
        "description": "PHP with FPM and the common extensions",
    },
)
class PhpInstaller(BaseComponent):
    """Installs PHP ``request.php_version`` and its extensions."""

    @property
    def php_version(self) -> str:
        if self.request is not None:
            return self.request.php_version
        return static_config.PHP_VERSION_DEFAULT

    def install(self) -> None:
        php_version = self.php_version
        log_installer(
            f"{self.symbols.get('package', '📦')} Installing PHP {php_version}",
            "info",
            self.logger,
            self.app_settings,
        )
        self._add_php_repository()
        self.install_packages(php_packages(php_version))

        run_elevated_command(
            ["update-alternatives", "--set", "php", f"/usr/bin/php{php_version}"],
            self.app_settings,
            current_logger=self.logger,
        )

        if self.app_settings.php_tuning.enabled:
            self._tune_php_ini(php_version)

        log_installer(
            f"{self.symbols.get('success', '✅')} PHP {php_version} installed",
            "success",
            self.logger,
            self.app_settings,
        )

    def _add_php_repository(self) -> None:
        log_installer(
            f"{self.symbols.get('info', 'ℹ️')} Adding PHP repository",
            "info",
            self.logger,
            self.app_settings,
        )
        os_release = read_os_release(self.app_settings.os_release_path)
        os_id = os_release.get("ID", "").lower()

        if os_id == "ubuntu":
            added = self.apt_manager.add_ppa(
                static_config.ONDREJ_PHP_PPA, self.app_settings
            )
        elif os_id == "debian":
            codename = os_release.get("VERSION_CODENAME", "")
            if not codename:
                self.fail("Cannot determine the Debian codename for the PHP repository.")
            self.install_packages(["apt-transport-https", "lsb-release", "ca-certificates"])
            added = self.apt_manager.add_gpg_key_from_url(
                static_config.SURY_PHP_KEY_URL,
                static_config.SURY_PHP_KEYRING,
                self.app_settings,
            ) and self.apt_manager.add_repository(
                "php",
                {
                    "Types": "deb",
                    "URIs": "https://packages.sury.org/php/",
                    "Suites": codename,
                    "Components": "main",
                    "Signed-By": static_config.SURY_PHP_KEYRING,
                },
                self.app_settings,
            )
        else:
            self.fail(f"No PHP repository known for operating system '{os_id}'.")
            return

        if not added:
            self.fail("Failed to add the PHP repository.")

    def _tune_php_ini(self, php_version: str) -> None:
        tuning = self.app_settings.php_tuning
        for sapi in ("fpm", "cli", "apache2"):
            ini_path = Path(f"/etc/php/{php_version}/{sapi}/php.ini")
            if not ini_path.is_file():
                continue
            ini_path.write_text(
                tuned_ini(ini_path.read_text(encoding="utf-8"), tuning),
                encoding="utf-8",
            )
            self.logger.info(f"Tuned {ini_path}")
        fpm_service = f"php{php_version}-fpm"
        if not safe_restart(fpm_service, self.app_settings, self.logger):
            self.fail(f"{fpm_service} did not come back after php.ini tuning.")

    def is_installed(self) -> bool:
        return command_exists("php") or command_exists("php-fpm")

    def uninstall(self) -> bool:
        log_installer(
            f"{self.symbols.get('info', 'ℹ️')} Removing PHP",
            "info",
            self.logger,
            self.app_settings,
        )
        for unit in self._fpm_units():
            run_elevated_command(
                ["systemctl", "stop", unit],
                self.app_settings,
                check=False,
                current_logger=self.logger,
            )
        purged = self.purge_packages(["php*"])
        remove_paths(PHP_REMOVE_PATHS, self.app_settings, self.logger)
        log_installer(
            f"{self.symbols.get('success', '✅')} PHP removed",
            "success",
            self.logger,
            self.app_settings,
        )
        return purged

    def _fpm_units(self) -> List[str]:
        units = [
            Path(path).name
            for path in glob.glob("/lib/systemd/system/php*-fpm.service")
        ]
        return units or ["php-fpm"]
