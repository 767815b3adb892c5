# lampstack/common/debian/apt_manager.py
# -*- coding: utf-8 -*-
import logging
import os
import subprocess
import tempfile
from typing import Dict, List, Optional, Union

from lampstack.common.command_utils import (
    command_exists,
    noninteractive_env,
    run_command,
    run_elevated_command,
)
from lampstack.setup.config_models import AppSettings


class AptManager:
    """
    A centralized manager for Debian apt packages using command-line tools.

    Every mutating call runs with DEBIAN_FRONTEND=noninteractive and reports
    success as a boolean; callers decide whether a failure is fatal.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initializes the AptManager.
        Args:
            logger: An optional logging object.
        """
        self.logger = logger or logging.getLogger(__name__)
        if not command_exists("apt-get"):
            self.logger.critical(
                "'apt-get' command not found. This manager cannot function."
            )
            raise FileNotFoundError(
                "'apt-get' not found. Is this a Debian-based system?"
            )

    def _run_apt(self, args: List[str], app_settings: AppSettings) -> None:
        run_elevated_command(
            ["apt-get"] + args,
            app_settings,
            current_logger=self.logger,
            env=noninteractive_env(),
        )

    def update(
        self, app_settings: AppSettings, raise_error: bool = False
    ) -> bool:
        """
        Updates the list of available packages using 'apt-get update'.

        Args:
            app_settings: The application settings.
            raise_error: Whether to raise an exception on failure.

        Returns:
            True if successful, False otherwise.
        """
        self.logger.info("Updating apt package lists via 'apt-get update'...")
        try:
            self._run_apt(["update", "-yq"], app_settings)
            self.logger.info("Apt package lists updated successfully.")
            return True
        except (subprocess.CalledProcessError, OSError) as e:
            self.logger.error(f"Failed to update apt cache: {e}")
            if raise_error:
                raise
            return False

    def upgrade(self, app_settings: AppSettings) -> bool:
        """Upgrades all installed packages using 'apt-get upgrade'."""
        self.logger.info("Upgrading installed packages...")
        try:
            self._run_apt(["upgrade", "-yq"], app_settings)
            self.logger.info("Packages upgraded successfully.")
            return True
        except (subprocess.CalledProcessError, OSError) as e:
            self.logger.error(f"Failed to upgrade packages: {e}")
            return False

    def is_installed(self, pkg_name: str, app_settings: AppSettings) -> bool:
        """Return True when dpkg reports the package as installed."""
        try:
            result = run_command(
                ["dpkg-query", "-W", "-f=${db:Status-Status}", pkg_name],
                app_settings,
                capture_output=True,
                check=True,
                current_logger=self.logger,
            )
        except subprocess.CalledProcessError:
            return False
        return (
            "installed" in result.stdout
            and "not-installed" not in result.stdout
        )

    def install(
        self,
        packages: Union[List[str], str],
        app_settings: AppSettings,
        update_first: bool = False,
    ) -> bool:
        """
        Installs one or more packages using 'apt-get install'.

        Args:
            packages: A single package name or a list of package names.
            app_settings: The application settings.
            update_first: Whether to update the package lists before installing.

        Returns:
            True if successful, False otherwise.
        """
        if not isinstance(packages, list):
            packages = [packages]

        if update_first:
            if not self.update(app_settings):
                return False

        packages_to_install = []
        for pkg_name in packages:
            if self.is_installed(pkg_name, app_settings):
                self.logger.info(
                    f"Package '{pkg_name}' is already installed. Skipping."
                )
            else:
                self.logger.info(
                    f"Marking package for installation: {pkg_name}"
                )
                packages_to_install.append(pkg_name)

        if not packages_to_install:
            self.logger.info("All requested packages are already installed.")
            return True

        self.logger.info(
            f"Committing installation for: {', '.join(packages_to_install)}"
        )
        try:
            self._run_apt(["install", "-yq"] + packages_to_install, app_settings)
            self.logger.info("Packages installed successfully.")
            return True
        except (subprocess.CalledProcessError, OSError) as e:
            self.logger.error(f"Failed to install packages: {e}")
            return False

    def purge(
        self,
        packages: Union[List[str], str],
        app_settings: AppSettings,
        update_first: bool = False,
    ) -> bool:
        """
        Purges one or more packages using 'apt-get purge'.

        Package names may be apt patterns such as ``php*``.

        Returns:
            True if successful, False otherwise.
        """
        if not isinstance(packages, list):
            packages = [packages]

        if update_first:
            if not self.update(app_settings):
                return False

        self.logger.info(f"Purging packages: {', '.join(packages)}")
        try:
            self._run_apt(["purge", "-yq"] + packages, app_settings)
            self.logger.info("Packages purged successfully.")
            return True
        except (subprocess.CalledProcessError, OSError) as e:
            self.logger.error(f"Failed to purge packages: {e}")
            return False

    def autoremove(
        self,
        purge: bool = False,
        app_settings: Optional[AppSettings] = None,
    ) -> bool:
        """
        Removes automatically installed packages that are no longer needed.

        Args:
            purge: Whether to purge configuration files as well.
            app_settings: The application settings.

        Returns:
            True if successful, False otherwise.
        """
        if app_settings is None:
            self.logger.error("app_settings must be provided for autoremove.")
            raise ValueError("app_settings must be provided")

        self.logger.info("Running autoremove to clean up unused packages...")
        try:
            cmd = ["autoremove", "-yq"]
            if purge:
                cmd.append("--purge")
            self._run_apt(cmd, app_settings)
            self.logger.info("Autoremove completed successfully.")
            return True
        except (subprocess.CalledProcessError, OSError) as e:
            self.logger.error(f"Failed to autoremove packages: {e}")
            return False

    def autoclean(self, app_settings: AppSettings, full: bool = False) -> bool:
        """Drops obsolete (or, with ``full``, all) downloaded package files."""
        action = "clean" if full else "autoclean"
        try:
            self._run_apt([action, "-yq"], app_settings)
            return True
        except (subprocess.CalledProcessError, OSError) as e:
            self.logger.error(f"Failed to run apt-get {action}: {e}")
            return False

    def fix_broken(self, app_settings: AppSettings) -> bool:
        """Finishes interrupted dpkg runs and repairs broken dependencies."""
        self.logger.info("Checking for broken installations...")
        try:
            run_elevated_command(
                ["dpkg", "--configure", "-a"],
                app_settings,
                current_logger=self.logger,
                env=noninteractive_env(),
            )
            self._run_apt(["--fix-broken", "install", "-yq"], app_settings)
            return True
        except (subprocess.CalledProcessError, OSError) as e:
            self.logger.error(f"Failed to repair package state: {e}")
            return False

    def set_debconf_selections(
        self, selections: List[str], app_settings: AppSettings
    ) -> bool:
        """
        Preseeds debconf answers, one "<owner> <question> <type> <value>"
        line per entry. The lines are not logged since they carry passwords.
        """
        try:
            run_elevated_command(
                ["debconf-set-selections"],
                app_settings,
                cmd_input="\n".join(selections) + "\n",
                current_logger=self.logger,
                secret_input=True,
            )
            return True
        except (subprocess.CalledProcessError, OSError) as e:
            self.logger.error(f"Failed to preseed debconf selections: {e}")
            return False

    def add_ppa(
        self, ppa: str, app_settings: AppSettings, update_after: bool = True
    ) -> bool:
        """Adds a Launchpad PPA with add-apt-repository (Ubuntu only)."""
        self.logger.info(f"Adding repository: {ppa}")
        if not self.install(["software-properties-common"], app_settings):
            return False
        try:
            run_elevated_command(
                ["add-apt-repository", "-y", ppa],
                app_settings,
                current_logger=self.logger,
                env=noninteractive_env(),
            )
        except (subprocess.CalledProcessError, OSError) as e:
            self.logger.error(f"Failed to add repository '{ppa}': {e}")
            return False
        if update_after:
            return self.update(app_settings)
        return True

    def add_repository(
        self,
        repo_name: str,
        repo_details: Dict[str, str],
        app_settings: AppSettings,
        update_after: bool = True,
    ) -> bool:
        """
        Adds a new apt repository by creating a deb822-style .sources file.

        Args:
            repo_name: The name for the repository file.
            repo_details: A dictionary containing the repository configuration.
            app_settings: The application settings.
            update_after: Whether to update package lists after adding.

        Returns:
            True if successful, False otherwise.
        """
        self.logger.info(
            f"Adding repository '{repo_name}' using deb822 format..."
        )

        repo_file_path = os.path.join(
            "/etc/apt/sources.list.d", f"{repo_name}.sources"
        )
        deb822_content = "".join(
            f"{key}: {value}\n" for key, value in repo_details.items()
        )

        try:
            with tempfile.NamedTemporaryFile(
                "w", delete=False, suffix=".sources", encoding="utf-8"
            ) as f:
                f.write(deb822_content)
                temp_path = f.name

            run_elevated_command(
                ["install", "-m", "644", temp_path, repo_file_path],
                app_settings,
                current_logger=self.logger,
            )
            os.unlink(temp_path)
            self.logger.info(
                f"Successfully created repository file: {repo_file_path}"
            )
        except (subprocess.CalledProcessError, OSError) as e:
            self.logger.error(
                f"Failed to create repository file '{repo_file_path}': {e}"
            )
            return False

        if update_after:
            return self.update(app_settings)
        return True

    def add_gpg_key_from_url(
        self, key_url: str, keyring_path: str, app_settings: AppSettings
    ) -> bool:
        """
        Downloads a GPG key from a URL and saves it to a specified keyring.

        Returns:
            True if successful, False otherwise.
        """
        self.logger.info(f"Adding GPG key from {key_url} to {keyring_path}")

        if not self.install(["ca-certificates", "curl"], app_settings):
            self.logger.error(
                "Failed to install required tools for GPG key download."
            )
            return False

        try:
            run_elevated_command(
                ["install", "-m", "0755", "-d", os.path.dirname(keyring_path)],
                app_settings,
                current_logger=self.logger,
            )
            run_elevated_command(
                ["curl", "-fsSL", key_url, "-o", keyring_path],
                app_settings,
                current_logger=self.logger,
            )
            run_elevated_command(
                ["chmod", "a+r", keyring_path],
                app_settings,
                current_logger=self.logger,
            )
            self.logger.info("GPG key added and permissions set.")
            return True
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            self.logger.error(f"Failed to add GPG key: {e}")
            return False
