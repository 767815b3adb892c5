# lampstack/installer/post_install.py
# -*- coding: utf-8 -*-
"""
Optional tasks run after a successful installation: a PHP test page and a
sample site, development tools, shell aliases, log rotation for the installer
log and the maintenance helper script.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from lampstack.common.command_utils import get_symbols, log_installer
from lampstack.common.debian.apt_manager import AptManager
from lampstack.common.file_utils import write_file
from lampstack.common.system_utils import get_primary_ip_address
from lampstack.setup import config as static_config
from lampstack.setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)

INFO_PHP = """<?php
// LAMP/LEMP Stack Test Page
phpinfo();
?>
"""

INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>LAMP/LEMP Stack - Welcome</title>
    <style>
        body {
            font-family: 'Arial', sans-serif;
            margin: 0;
            background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
            color: white;
            min-height: 100vh;
            display: flex;
            align-items: center;
            justify-content: center;
        }
        .container {
            text-align: center;
            background: rgba(255, 255, 255, 0.1);
            padding: 2rem;
            border-radius: 15px;
        }
        .links a {
            color: #ffd700;
            margin: 0 1rem;
        }
    </style>
</head>
<body>
    <div class="container">
        <h1>LAMP/LEMP Stack</h1>
        <p>Installation successful. Your web server is ready for development.</p>
        <div class="links">
            <a href="/info.php">PHP Info</a>
            <a href="/phpmyadmin">phpMyAdmin</a>
        </div>
    </div>
</body>
</html>
"""

ALIAS_MARKER = "# LAMP/LEMP Stack Aliases"
BASH_ALIASES = f"""
{ALIAS_MARKER}
alias ll='ls -alF'
alias la='ls -A'
alias l='ls -CF'
alias lamp-status='systemctl status apache2 mysql php*-fpm'
alias lemp-status='systemctl status nginx mysql php*-fpm'
alias lamp-restart='systemctl restart apache2 mysql php*-fpm'
alias lemp-restart='systemctl restart nginx mysql php*-fpm'
alias lamp-logs='tail -f /var/log/apache2/error.log'
alias lemp-logs='tail -f /var/log/nginx/error.log'
alias mysql-log='tail -f /var/log/mysql/error.log'
"""

LOGROTATE_TEMPLATE = """{log_file} {{
    daily
    rotate 7
    compress
    delaycompress
    missingok
    notifempty
    create 644 root root
}}
"""

MAINTENANCE_SCRIPT = """#!/bin/bash
# LAMP/LEMP Stack Maintenance Script

echo "Updating system packages..."
apt-get update -y && apt-get upgrade -y

echo "Cleaning up old packages..."
apt-get autoremove -y
apt-get autoclean

echo "Disk usage:"
df -h

echo "Memory usage:"
free -h

echo "Service status:"
systemctl status apache2 nginx mysql php*-fpm --no-pager

echo "Available updates:"
apt list --upgradable

echo "Maintenance completed!"
"""

PathLike = Union[str, Path]


class PostInstallTasks:
    """Runs the post-install tasks; the target paths can be overridden."""

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
        apt_manager: Optional[AptManager] = None,
        web_owner: Optional[str] = static_config.WEB_USER,
        bashrc_path: PathLike = static_config.ROOT_BASHRC_PATH,
        logrotate_path: PathLike = static_config.LOGROTATE_CONF_PATH,
        maintenance_script_path: PathLike = static_config.MAINTENANCE_SCRIPT_PATH,
    ):
        self.app_settings = app_settings
        self.logger = logger or module_logger
        self._apt_manager = apt_manager
        self.web_owner = web_owner
        self.bashrc_path = Path(bashrc_path)
        self.logrotate_path = Path(logrotate_path)
        self.maintenance_script_path = Path(maintenance_script_path)

    @property
    def apt_manager(self) -> AptManager:
        if self._apt_manager is None:
            self._apt_manager = AptManager(logger=self.logger)
        return self._apt_manager

    def run(self) -> None:
        """
        Run every task in order.

        Raises:
            OSError: If a file cannot be written.
        """
        symbols = get_symbols(self.app_settings)
        log_installer(
            f"{symbols.get('rocket', '🚀')} Starting post-installation setup...",
            "info",
            self.logger,
            self.app_settings,
        )
        self.create_test_pages()
        self.install_dev_tools()
        self.append_aliases()
        self.setup_log_rotation()
        self.create_maintenance_script()

        address = get_primary_ip_address(self.app_settings, self.logger) or "localhost"
        log_installer(
            f"{symbols.get('success', '✅')} Post-installation setup complete. "
            f"Visit http://{address}/ and http://{address}/info.php; "
            f"run '{self.maintenance_script_path.name}' for maintenance.",
            "success",
            self.logger,
            self.app_settings,
        )

    def create_test_pages(self) -> None:
        web_root = Path(self.app_settings.web_root)
        for name, content in (("info.php", INFO_PHP), ("index.html", INDEX_HTML)):
            path = write_file(web_root / name, content, mode=0o644, owner=self.web_owner)
            self.logger.info(f"Created {path}")

    def install_dev_tools(self) -> bool:
        self.apt_manager.update(self.app_settings)
        installed = self.apt_manager.install(
            list(static_config.DEV_TOOL_PACKAGES), self.app_settings
        )
        if not installed:
            log_installer(
                "Some development tools could not be installed.",
                "warning",
                self.logger,
                self.app_settings,
            )
        return installed

    def append_aliases(self) -> bool:
        """Append the shell aliases once; False when they are already there."""
        existing = (
            self.bashrc_path.read_text(encoding="utf-8")
            if self.bashrc_path.is_file()
            else ""
        )
        if ALIAS_MARKER in existing:
            self.logger.info(f"Aliases already present in {self.bashrc_path}")
            return False
        with open(self.bashrc_path, "a", encoding="utf-8") as f:
            f.write(BASH_ALIASES)
        self.logger.info(f"Added shell aliases to {self.bashrc_path}")
        return True

    def setup_log_rotation(self) -> None:
        write_file(
            self.logrotate_path,
            LOGROTATE_TEMPLATE.format(log_file=self.app_settings.log_file),
        )
        self.logger.info(f"Log rotation configured in {self.logrotate_path}")

    def create_maintenance_script(self) -> None:
        write_file(self.maintenance_script_path, MAINTENANCE_SCRIPT, mode=0o755)
        self.logger.info(
            f"Maintenance script created at {self.maintenance_script_path}"
        )


def run_post_install(
    app_settings: AppSettings, logger: Optional[logging.Logger] = None
) -> None:
    """Run the post-install tasks with the default target paths."""
    PostInstallTasks(app_settings, logger=logger).run()
