# lampstack/installer/components/phpmyadmin/phpmyadmin_installer.py
# -*- coding: utf-8 -*-
"""
phpMyAdmin installer module.

Installs the upstream tarball into /usr/share/phpmyadmin, sets up the
configuration storage database with its control user, and wires the
application into the selected web server.
"""

import re
import secrets
import shutil
import subprocess
import tempfile
from pathlib import Path

from lampstack.common.command_utils import log_installer, run_elevated_command
from lampstack.common.file_utils import remove_paths, write_file
from lampstack.common.network_utils import download_file
from lampstack.common.system_utils import safe_restart
from lampstack.installer.base_component import BaseComponent
from lampstack.installer.components.mysql.mysql_installer import run_mysql
from lampstack.installer.components.nginx.nginx_installer import (
    NGINX_DEFAULT_SITE,
    check_nginx_config,
    render_default_site,
)
from lampstack.installer.registry import ComponentRegistry
from lampstack.setup import config as static_config
from lampstack.setup.config_models import Stack

PHPMYADMIN_ARCHIVE = Path("/tmp/phpMyAdmin-latest-all-languages.tar.gz")
PHPMYADMIN_DATABASE = "phpmyadmin"
APACHE_CONF_AVAILABLE = Path("/etc/apache2/conf-available/phpmyadmin.conf")
PHPMYADMIN_REMOVE_PATHS = [
    "/etc/phpmyadmin",
    "/var/lib/phpmyadmin",
    str(static_config.PHPMYADMIN_INSTALL_DIR),
    "/etc/apache2/conf-enabled/phpmyadmin.conf",
    str(APACHE_CONF_AVAILABLE),
    "/etc/nginx/sites-enabled/phpmyadmin.conf",
    "/etc/nginx/sites-available/phpmyadmin.conf",
]

APACHE_CONF_TEMPLATE = """Alias /phpmyadmin {install_dir}

<Directory {install_dir}>
    Options SymLinksIfOwnerMatch
    DirectoryIndex index.php
    Require all granted
</Directory>

<Directory {install_dir}/libraries>
    Require all denied
</Directory>

<Directory {install_dir}/setup/lib>
    Require all denied
</Directory>
"""


def set_config_value(content: str, key: str, value: str) -> str:
    """
    Set a ``$cfg[...]`` entry of config.inc.php.

    ``key`` is the part after ``$cfg``, e.g. ``['blowfish_secret']``. A
    commented-out entry is re-enabled; a missing one is appended.
    """
    escaped_value = value.replace("\\", "\\\\").replace("'", "\\'")
    line = f"$cfg{key} = '{escaped_value}';"
    pattern = re.compile(
        r"^\s*(//\s*)?\$cfg" + re.escape(key) + r"\s*=.*;\s*$", re.MULTILINE
    )
    if pattern.search(content):
        return pattern.sub(lambda _: line, content, count=1)
    return content.rstrip("\n") + "\n" + line + "\n"


def render_config(
    sample: str, blowfish_secret: str, control_user: str, control_password: str
) -> str:
    content = set_config_value(sample, "['blowfish_secret']", blowfish_secret)
    content = set_config_value(
        content, "['Servers'][$i]['controluser']", control_user
    )
    content = set_config_value(
        content, "['Servers'][$i]['controlpass']", control_password
    )
    return content


@ComponentRegistry.register(
    name="phpmyadmin",
    metadata={
        "dependencies": ["mysql", "php"],
        "after": ["apache", "nginx"],
        "description": "phpMyAdmin web administration for MySQL",
    },
)
class PhpMyAdminInstaller(BaseComponent):
    """Installs phpMyAdmin for the request's stack."""

    @property
    def install_dir(self) -> Path:
        return static_config.PHPMYADMIN_INSTALL_DIR

    def install(self) -> None:
        if self.request is None or self.request.stack is None:
            self.fail("phpMyAdmin needs a LAMP or LEMP request.")
        log_installer(
            f"{self.symbols.get('package', '📦')} Installing phpMyAdmin",
            "info",
            self.logger,
            self.app_settings,
        )
        download_file(
            self.app_settings.phpmyadmin_download_url,
            PHPMYADMIN_ARCHIVE,
            timeout=self.app_settings.download_timeout,
            current_logger=self.logger,
        )
        self._extract(PHPMYADMIN_ARCHIVE)

        control_password = secrets.token_urlsafe(18)
        self._write_config(control_password)
        self._set_permissions()
        self._setup_storage(control_password)

        if self.request.stack is Stack.LEMP:
            self._configure_nginx()
        else:
            self._configure_apache()

        log_installer(
            f"{self.symbols.get('success', '✅')} phpMyAdmin installed and configured",
            "success",
            self.logger,
            self.app_settings,
        )

    def _extract(self, archive: Path) -> None:
        staging = Path(tempfile.mkdtemp(prefix="phpmyadmin-"))
        try:
            run_elevated_command(
                ["tar", "xzf", str(archive), "-C", str(staging)],
                self.app_settings,
                current_logger=self.logger,
            )
            extracted = sorted(staging.glob("phpMyAdmin-*-all-languages"))
            if not extracted:
                self.fail(f"Unexpected layout in {archive}; no phpMyAdmin directory found.")
            remove_paths([self.install_dir], self.app_settings, self.logger)
            self.install_dir.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(extracted[0]), str(self.install_dir))
        finally:
            shutil.rmtree(staging, ignore_errors=True)

    def _write_config(self, control_password: str) -> None:
        sample_path = self.install_dir / "config.sample.inc.php"
        sample = sample_path.read_text(encoding="utf-8") if sample_path.is_file() else "<?php\n$i = 1;\n"
        write_file(
            self.install_dir / "config.inc.php",
            render_config(
                sample,
                secrets.token_hex(16),
                static_config.PHPMYADMIN_CONTROL_USER,
                control_password,
            ),
            mode=0o640,
        )

    def _set_permissions(self) -> None:
        owner = f"{static_config.WEB_USER}:{static_config.WEB_USER}"
        run_elevated_command(
            ["chown", "-R", owner, str(self.install_dir)],
            self.app_settings,
            current_logger=self.logger,
        )
        run_elevated_command(
            ["chmod", "-R", "755", str(self.install_dir)],
            self.app_settings,
            current_logger=self.logger,
        )

    def _setup_storage(self, control_password: str) -> None:
        log_installer(
            f"{self.symbols.get('info', 'ℹ️')} Setting up phpMyAdmin configuration storage",
            "info",
            self.logger,
            self.app_settings,
        )
        root_password = self.request.mysql_password
        control_user = static_config.PHPMYADMIN_CONTROL_USER
        run_mysql(
            self,
            f"CREATE DATABASE IF NOT EXISTS {PHPMYADMIN_DATABASE} "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;",
            root_password,
        )
        tables_sql = self.install_dir / "sql" / "create_tables.sql"
        if tables_sql.is_file():
            run_mysql(
                self,
                tables_sql.read_text(encoding="utf-8"),
                root_password,
                database=PHPMYADMIN_DATABASE,
            )
        run_mysql(
            self,
            f"CREATE USER IF NOT EXISTS '{control_user}'@'localhost' IDENTIFIED BY '{control_password}';\n"
            f"ALTER USER '{control_user}'@'localhost' IDENTIFIED BY '{control_password}';\n"
            f"GRANT SELECT, INSERT, UPDATE, DELETE ON {PHPMYADMIN_DATABASE}.* TO '{control_user}'@'localhost';\n"
            "FLUSH PRIVILEGES;\n",
            root_password,
        )

    def _enable_mbstring(self) -> None:
        run_elevated_command(
            ["phpenmod", "mbstring"],
            self.app_settings,
            check=False,
            current_logger=self.logger,
        )

    def _configure_nginx(self) -> None:
        log_installer(
            f"{self.symbols.get('info', 'ℹ️')} Configuring phpMyAdmin for Nginx...",
            "info",
            self.logger,
            self.app_settings,
        )
        php_version = self.request.php_version
        write_file(
            NGINX_DEFAULT_SITE,
            render_default_site(
                self.app_settings.web_root, php_version, str(self.install_dir)
            ),
        )
        self._enable_mbstring()
        fpm_service = f"php{php_version}-fpm"
        if not safe_restart(fpm_service, self.app_settings, self.logger):
            self.fail(f"Failed to restart {fpm_service}.")
        check_nginx_config(self)
        if not safe_restart("nginx", self.app_settings, self.logger):
            self.fail("Failed to restart Nginx.")

    def _configure_apache(self) -> None:
        log_installer(
            f"{self.symbols.get('info', 'ℹ️')} Configuring phpMyAdmin for Apache...",
            "info",
            self.logger,
            self.app_settings,
        )
        write_file(
            APACHE_CONF_AVAILABLE,
            APACHE_CONF_TEMPLATE.format(install_dir=self.install_dir),
        )
        run_elevated_command(
            ["a2enconf", "phpmyadmin"],
            self.app_settings,
            current_logger=self.logger,
        )
        self._enable_mbstring()
        try:
            run_elevated_command(
                ["apache2ctl", "configtest"],
                self.app_settings,
                current_logger=self.logger,
            )
        except subprocess.CalledProcessError:
            self.fail("Apache2 configuration test failed. Please check your settings.")
        if not safe_restart("apache2", self.app_settings, self.logger):
            self.fail("Failed to restart Apache.")

    def is_installed(self) -> bool:
        return self.install_dir.is_dir()

    def uninstall(self) -> bool:
        log_installer(
            f"{self.symbols.get('info', 'ℹ️')} Removing phpMyAdmin",
            "info",
            self.logger,
            self.app_settings,
        )
        purged = self.purge_packages(list(static_config.PHPMYADMIN_PURGE_PACKAGES))
        remove_paths(PHPMYADMIN_REMOVE_PATHS, self.app_settings, self.logger)
        run_elevated_command(
            ["dpkg", "--remove", "--force-remove-reinstreq"]
            + list(static_config.PHPMYADMIN_PURGE_PACKAGES),
            self.app_settings,
            check=False,
            current_logger=self.logger,
        )
        log_installer(
            f"{self.symbols.get('success', '✅')} phpMyAdmin removed",
            "success",
            self.logger,
            self.app_settings,
        )
        return purged
