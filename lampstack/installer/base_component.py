# lampstack/installer/base_component.py
"""
Base component class for all installer steps.

This module provides the base class that every installer step inherits from.
A step installs one package group and verifies its running state; it signals
a failed sub-operation by raising, and ``run_install`` turns that into a
``StepResult`` for the orchestrator. The same class carries the inverse
operation used by the removal workflow.
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from lampstack.common.command_utils import (
    command_exists,
    get_symbols,
    log_installer,
)
from lampstack.common.debian.apt_manager import AptManager
from lampstack.common.exceptions import InstallerError, StepFailedError
from lampstack.setup.config_models import (
    AppSettings,
    InstallationRequest,
    StepResult,
)


class BaseComponent(ABC):
    """
    Base class for all installer steps.

    Subclasses implement ``install`` (raise on failure), ``uninstall`` and,
    when the default command probe is not enough, ``is_installed``.
    """

    # Set by the registry decorator
    component_name: str = ""

    # Class-level metadata that can be overridden by subclasses or set by the registry decorator
    metadata: Dict[str, Any] = {
        "dependencies": [],  # Steps that must run first and are pulled into the plan
        "after": [],  # Steps that must run first only when they are planned too
        "detect_command": None,  # Command whose presence means "installed"
        "description": "",
    }

    def __init__(
        self,
        app_settings: AppSettings,
        request: Optional[InstallationRequest] = None,
        logger: Optional[logging.Logger] = None,
        apt_manager: Optional[AptManager] = None,
    ):
        """
        Initialize the component.

        Args:
            app_settings: The application settings.
            request: The installation request; None during removal.
            logger: Optional logger instance. If not provided, a new logger will be created.
            apt_manager: Optional shared AptManager.
        """
        self.app_settings = app_settings
        self.request = request
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self._apt_manager = apt_manager

    @property
    def name(self) -> str:
        return self.component_name or self.__class__.__name__

    @property
    def apt_manager(self) -> AptManager:
        if self._apt_manager is None:
            self._apt_manager = AptManager(logger=self.logger)
        return self._apt_manager

    @property
    def symbols(self) -> Dict[str, str]:
        return get_symbols(self.app_settings)

    @abstractmethod
    def install(self) -> None:
        """
        Install the component.

        Raises:
            InstallerError: On a failed sub-operation.
            subprocess.CalledProcessError: When a mandatory command fails.
        """

    @abstractmethod
    def uninstall(self) -> bool:
        """
        Stop, purge and delete the component's files.

        Returns:
            True if the removal was successful, False otherwise.
        """

    def is_installed(self) -> bool:
        """
        Check if the component is present on the host.

        The default looks for the ``detect_command`` named in the metadata.
        """
        detect_command = self.metadata.get("detect_command")
        if not detect_command:
            return False
        return command_exists(detect_command)

    def run_install(self) -> StepResult:
        """
        Run ``install`` and report the outcome as a StepResult.

        Never raises for step failures; the orchestrator decides what a
        failed step means for the run.
        """
        log_installer(
            f"{self.symbols.get('step', '➡️')} Running step: {self.name}",
            "info",
            self.logger,
            self.app_settings,
        )
        try:
            self.install()
        except (
            InstallerError,
            subprocess.CalledProcessError,
            requests.RequestException,
            OSError,
        ) as e:
            log_installer(
                f"{self.symbols.get('error', '❌')} Step '{self.name}' failed: {e}",
                "error",
                self.logger,
                self.app_settings,
            )
            return StepResult(name=self.name, success=False, error=str(e))

        log_installer(
            f"{self.symbols.get('success', '✅')} Step '{self.name}' completed",
            "success",
            self.logger,
            self.app_settings,
        )
        return StepResult(name=self.name, success=True)

    def get_description(self) -> str:
        return str(self.metadata.get("description", ""))

    # --- helpers shared by the steps ---

    def fail(self, message: str) -> None:
        """Abort the step with a StepFailedError."""
        raise StepFailedError(self.name, message)

    def install_packages(self, packages: List[str]) -> None:
        """Install ``packages`` or abort the step."""
        if not self.apt_manager.install(packages, self.app_settings):
            self.fail(f"Failed to install packages: {', '.join(packages)}")

    def purge_packages(self, packages: List[str]) -> bool:
        """Purge ``packages`` and drop what they pulled in."""
        purged = self.apt_manager.purge(packages, self.app_settings)
        self.apt_manager.autoremove(app_settings=self.app_settings)
        self.apt_manager.autoclean(self.app_settings)
        return purged
