# lampstack/installer/components/mysql/mysql_installer.py
# -*- coding: utf-8 -*-
"""
MySQL server installer module.
"""

import subprocess
from typing import List, Optional

from lampstack.common.command_utils import (
    log_installer,
    noninteractive_env,
    run_command,
    run_elevated_command,
)
from lampstack.common.file_utils import remove_paths
from lampstack.common.system_utils import (
    disable_service,
    start_and_enable_service,
    stop_service,
)
from lampstack.installer.base_component import BaseComponent
from lampstack.installer.registry import ComponentRegistry
from lampstack.setup import config as static_config

MYSQL_SERVICE = "mysql"
MYSQL_REMOVE_PATHS = [
    "/etc/mysql",
    "/var/lib/mysql",
    "/var/log/mysql",
    "/var/run/mysqld",
    "/etc/systemd/system/mysql.service",
]


def run_mysql(
    component: BaseComponent,
    sql: str,
    password: str,
    database: Optional[str] = None,
) -> subprocess.CompletedProcess:
    """
    Feed ``sql`` to the mysql client as root.

    The password travels in MYSQL_PWD so it never shows up in a process
    listing or in the log.
    """
    command: List[str] = ["mysql", "-u", "root"]
    if database:
        command.append(database)
    return run_command(
        command,
        component.app_settings,
        cmd_input=sql,
        current_logger=component.logger,
        env=noninteractive_env({"MYSQL_PWD": password}),
        secret_input=True,
    )


def root_password_selections(password: str) -> List[str]:
    return [
        f"mysql-server mysql-server/root_password password {password}",
        f"mysql-server mysql-server/root_password_again password {password}",
    ]


@ComponentRegistry.register(
    name="mysql",
    metadata={
        "dependencies": ["system"],
        "detect_command": "mysql",
        "description": "MySQL server with a preseeded root password",
    },
)
class MysqlInstaller(BaseComponent):
    """Installs mysql-server with the request's root password."""

    def install(self) -> None:
        log_installer(
            f"{self.symbols.get('package', '📦')} Installing MySQL",
            "info",
            self.logger,
            self.app_settings,
        )
        password = self.request.mysql_password if self.request else ""
        if not password:
            self.fail("No MySQL root password available.")

        if not self.apt_manager.set_debconf_selections(
            root_password_selections(password), self.app_settings
        ):
            self.fail("Failed to preseed the MySQL root password.")

        self.install_packages(list(static_config.MYSQL_PACKAGES))

        try:
            start_and_enable_service(MYSQL_SERVICE, self.app_settings, self.logger)
        except subprocess.CalledProcessError:
            self.fail("Failed to start or enable MySQL.")

        log_installer(
            f"{self.symbols.get('success', '✅')} MySQL installed successfully",
            "success",
            self.logger,
            self.app_settings,
        )

    def uninstall(self) -> bool:
        """
        Stop MySQL (killing leftover mysqld processes when the graceful stop
        fails), purge it and delete its data, logs and unit file.
        """
        log_installer(
            f"{self.symbols.get('info', 'ℹ️')} Removing MySQL",
            "info",
            self.logger,
            self.app_settings,
        )
        if not stop_service(MYSQL_SERVICE, self.app_settings, self.logger):
            log_installer(
                f"{self.symbols.get('warning', '!')} Graceful MySQL stop failed; killing mysqld",
                "warning",
                self.logger,
                self.app_settings,
            )
            self._kill_mysqld()

        purged = self.purge_packages(list(static_config.MYSQL_PURGE_PACKAGES))
        remove_paths(MYSQL_REMOVE_PATHS, self.app_settings, self.logger)
        disable_service(MYSQL_SERVICE, self.app_settings, self.logger)
        log_installer(
            f"{self.symbols.get('success', '✅')} MySQL removed successfully.",
            "success",
            self.logger,
            self.app_settings,
        )
        return purged

    def _kill_mysqld(self) -> None:
        try:
            run_elevated_command(
                ["killall", "-9", "mysqld"],
                self.app_settings,
                check=False,
                current_logger=self.logger,
            )
        except FileNotFoundError:
            self.logger.warning("killall not available; mysqld may still be running.")
