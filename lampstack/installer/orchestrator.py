# lampstack/installer/orchestrator.py
# -*- coding: utf-8 -*-
"""
Orchestrator for the stack installer.

This module provides the StackOrchestrator class, the single place that
decides whether a run continues, aborts or rolls back. Steps report through
StepResult; nothing below this level terminates the process.
"""

import logging
from typing import Callable, List, Optional

from lampstack.common.command_utils import get_symbols, log_installer
from lampstack.common.debian.apt_manager import AptManager
from lampstack.common.exceptions import InstallationInterrupted, WeakPasswordError
from lampstack.common.file_utils import cleanup_temp_files
from lampstack.common.network_utils import check_connectivity, send_notification
from lampstack.installer.backup import create_backup
from lampstack.installer.components import load_all_components
from lampstack.installer.post_install import run_post_install
from lampstack.installer.registry import ComponentRegistry
from lampstack.installer.remover import RemovalWorkflow
from lampstack.installer.requirements import check_requirements
from lampstack.installer.rollback import RollbackHandler, interrupt_guard
from lampstack.installer.validators import (
    check_password_strength,
    generate_secure_password,
)
from lampstack.setup import config as static_config
from lampstack.setup.config_models import (
    AppSettings,
    InstallationRequest,
    StepResult,
)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

CompletionCallback = Callable[[InstallationRequest, List[StepResult], bool], None]


def plan_steps(request: InstallationRequest, app_settings: AppSettings) -> List[str]:
    """
    Step names for ``request`` in the order they were asked for.

    The admin UI is planned only when both PHP and MySQL are requested.
    """
    steps = ["system"]
    if request.install_php:
        steps.append("php")
    steps.append(request.stack.web_server)
    if request.install_mysql:
        steps.append("mysql")
    if request.install_admin_ui:
        steps.append("phpmyadmin")
    if request.install_composer:
        steps.append("composer")
    if request.install_supervisor:
        steps.append("supervisor")
    if app_settings.enable_firewall:
        steps.append("firewall")
    return steps


class StackOrchestrator:
    """
    Runs an installation or removal from start to finish.

    Args:
        app_settings: The application settings.
        logger: Optional logger instance.
        apt_manager: Optional AptManager shared by all steps.
        confirm: Yes/no callback for removal questions.
        on_complete: Called once after a successful install with the request
            (carrying the effective MySQL password), the step results and
            whether the password was generated.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
        apt_manager: Optional[AptManager] = None,
        confirm: Optional[Callable[[str], bool]] = None,
        on_complete: Optional[CompletionCallback] = None,
    ):
        self.app_settings = app_settings
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self._apt_manager = apt_manager
        self.confirm = confirm
        self.on_complete = on_complete
        self.results: List[StepResult] = []

        # Import all component modules to ensure they are registered
        load_all_components(self.logger)

    @property
    def apt_manager(self) -> AptManager:
        if self._apt_manager is None:
            self._apt_manager = AptManager(logger=self.logger)
        return self._apt_manager

    def _log(self, message: str, level: str = "info", symbol: str = "info") -> None:
        symbols = get_symbols(self.app_settings)
        log_installer(
            f"{symbols.get(symbol, '')} {message}".strip(),
            level,
            self.logger,
            self.app_settings,
        )

    def resolve_password(self, request: InstallationRequest) -> Optional[InstallationRequest]:
        """
        Fill in or vet the MySQL root password.

        Returns:
            The request with its effective password, or None when the supplied
            password is rejected.
        """
        if not request.install_mysql:
            return request
        if not request.mysql_password:
            self._log("No MySQL root password supplied; generating a secure one.")
            return request.model_copy(
                update={"mysql_password": generate_secure_password()}
            )
        try:
            warnings = check_password_strength(request.mysql_password)
        except WeakPasswordError as e:
            self._log(str(e), "error", "error")
            return None
        for warning in warnings:
            self._log(warning, "warning", "warning")
        return request

    def install(self, request: InstallationRequest) -> int:
        """
        Install the stack described by ``request``.

        Returns:
            The process exit code: 0 on success, 1 on any fatal failure.
        """
        self.results = []
        generated_password = request.install_mysql and not request.mysql_password
        effective_request = self.resolve_password(request)
        if effective_request is None:
            return EXIT_FAILURE

        report = check_requirements(self.app_settings, self.logger)
        if not report.passed:
            return EXIT_FAILURE

        check_connectivity(self.app_settings.connectivity_hosts, self.app_settings, self.logger)

        try:
            step_names = ComponentRegistry.resolve_dependencies(
                plan_steps(effective_request, self.app_settings)
            )
        except (KeyError, ValueError) as e:
            self._log(f"Cannot plan the installation: {e}", "error", "error")
            return EXIT_FAILURE
        self._log(
            f"Installing {effective_request.stack.value} stack; steps: {', '.join(step_names)}",
            symbol="rocket",
        )

        try:
            snapshot = create_backup(self.app_settings, self.logger)
        except OSError as e:
            self._log(f"Backup failed, nothing was changed: {e}", "error", "error")
            return EXIT_FAILURE
        rollback_handler = RollbackHandler(snapshot, self.app_settings, self.logger)

        failed: Optional[StepResult] = None
        try:
            with interrupt_guard():
                for name in step_names:
                    component = ComponentRegistry.get_component(name)(
                        self.app_settings,
                        request=effective_request,
                        logger=self.logger,
                        apt_manager=self.apt_manager,
                    )
                    self.logger.debug(f"Step '{name}': {component.get_description()}")
                    result = component.run_install()
                    self.results.append(result)
                    if not result.success:
                        failed = result
                        break
        except (InstallationInterrupted, KeyboardInterrupt) as e:
            self._log(f"Installation interrupted: {str(e) or 'keyboard interrupt'}", "error", "error")
            rollback_handler.rollback()
            return EXIT_FAILURE
        except Exception as e:
            log_installer(
                f"{get_symbols(self.app_settings).get('error', '❌')} "
                f"Unexpected error during installation: {e}",
                "error",
                self.logger,
                self.app_settings,
                exc_info=True,
            )
            rollback_handler.rollback()
            return EXIT_FAILURE

        # Restores run with the default signal handlers back in place.
        if failed is not None:
            self._log(
                f"Installation aborted at step '{failed.name}': {failed.error}",
                "error",
                "error",
            )
            rollback_handler.rollback()
            return EXIT_FAILURE

        cleanup_temp_files(static_config.TEMP_FILE_GLOBS, self.app_settings, self.logger)
        self._log(
            f"{effective_request.stack.value} stack installation completed successfully",
            "success",
            "success",
        )
        if self.on_complete is not None:
            self.on_complete(effective_request, self.results, generated_password)

        send_notification(
            f"{effective_request.stack.value} installation completed",
            f"The {effective_request.stack.value} stack with PHP "
            f"{effective_request.php_version} was installed successfully.",
            self.app_settings,
            self.logger,
        )

        if self.app_settings.run_post_install:
            try:
                run_post_install(self.app_settings, self.logger)
            except OSError as e:
                self._log(f"Post-installation setup failed: {e}", "warning", "warning")

        return EXIT_SUCCESS

    def remove(self) -> int:
        """
        Remove the stack. There is no backup and no rollback for removal.

        Returns:
            The process exit code.
        """
        report = check_requirements(self.app_settings, self.logger)
        if not report.passed:
            return EXIT_FAILURE
        workflow = RemovalWorkflow(
            self.app_settings,
            confirm=self.confirm,
            logger=self.logger,
            apt_manager=self._apt_manager,
        )
        return EXIT_SUCCESS if workflow.run() else EXIT_FAILURE

    def run(self, request: InstallationRequest) -> int:
        """Dispatch ``request`` to ``install`` or ``remove``."""
        if request.remove:
            return self.remove()
        return self.install(request)
