# lampstack/installer/components/composer/composer_installer.py
# -*- coding: utf-8 -*-
"""
Composer installer module.
"""

import hashlib
import subprocess
from pathlib import Path

from lampstack.common.command_utils import log_installer, run_elevated_command
from lampstack.common.file_utils import remove_paths
from lampstack.common.network_utils import download_file, fetch_text
from lampstack.installer.base_component import BaseComponent
from lampstack.installer.registry import ComponentRegistry
from lampstack.setup import config as static_config

COMPOSER_SETUP_PATH = Path("/tmp/composer-setup.php")


def sha384_of(path: Path) -> str:
    digest = hashlib.sha384()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


@ComponentRegistry.register(
    name="composer",
    metadata={
        "dependencies": [],
        "after": ["php"],
        "detect_command": "composer",
        "description": "Composer, installed globally after signature verification",
    },
)
class ComposerInstaller(BaseComponent):
    """
    Downloads the Composer installer, checks it against the published
    SHA-384 signature and installs ``composer`` into /usr/local/bin.
    """

    def install(self) -> None:
        log_installer(
            f"{self.symbols.get('package', '📦')} Installing Composer",
            "info",
            self.logger,
            self.app_settings,
        )
        timeout = self.app_settings.download_timeout
        download_file(
            self.app_settings.composer_installer_url,
            COMPOSER_SETUP_PATH,
            timeout=timeout,
            current_logger=self.logger,
        )
        expected = fetch_text(self.app_settings.composer_signature_url, timeout=timeout).strip()
        actual = sha384_of(COMPOSER_SETUP_PATH)
        if actual != expected:
            remove_paths([COMPOSER_SETUP_PATH], self.app_settings, self.logger)
            self.fail("Composer installer verification failed: installer corrupt.")
        self.logger.info("Composer installer verified")

        binary = static_config.COMPOSER_BINARY_PATH
        try:
            run_elevated_command(
                [
                    "php",
                    str(COMPOSER_SETUP_PATH),
                    f"--install-dir={binary.parent}",
                    f"--filename={binary.name}",
                ],
                self.app_settings,
                current_logger=self.logger,
            )
        except subprocess.CalledProcessError:
            self.fail("Failed to install Composer.")

        log_installer(
            f"{self.symbols.get('success', '✅')} Composer installed successfully",
            "success",
            self.logger,
            self.app_settings,
        )

    def uninstall(self) -> bool:
        log_installer(
            f"{self.symbols.get('info', 'ℹ️')} Removing Composer",
            "info",
            self.logger,
            self.app_settings,
        )
        remove_paths(
            [static_config.COMPOSER_BINARY_PATH], self.app_settings, self.logger
        )
        return not static_config.COMPOSER_BINARY_PATH.exists()
