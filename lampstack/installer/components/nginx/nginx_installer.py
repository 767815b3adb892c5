# lampstack/installer/components/nginx/nginx_installer.py
# -*- coding: utf-8 -*-
"""
Nginx installer module.

This module provides the LEMP web-server step and the default-site template
shared with the phpMyAdmin step.
"""

import subprocess
from typing import List, Optional

from lampstack.common.command_utils import (
    log_installer,
    run_elevated_command,
)
from lampstack.common.file_utils import remove_paths, write_file
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

NGINX_SERVICE = "nginx"
NGINX_DEFAULT_SITE = "/etc/nginx/sites-available/default"
NGINX_REMOVE_PATHS = [
    "/etc/nginx",
    "/var/log/nginx",
]

PHP_LOCATION_TEMPLATE = """
    location ~ \\.php$ {{
        include snippets/fastcgi-php.conf;
        fastcgi_pass unix:/run/php/php{php_version}-fpm.sock;
    }}
"""

PHPMYADMIN_LOCATION_TEMPLATE = """
    location /phpmyadmin {{
        alias {phpmyadmin_dir}/;
        index index.php index.html index.htm;
    }}

    location ~ ^/phpmyadmin/(.+\\.php)$ {{
        alias {phpmyadmin_dir}/$1;
        fastcgi_pass unix:/run/php/php{php_version}-fpm.sock;
        fastcgi_index index.php;
        fastcgi_param SCRIPT_FILENAME $request_filename;
        include fastcgi_params;
    }}
"""


def render_default_site(
    web_root: str,
    php_version: Optional[str] = None,
    phpmyadmin_dir: Optional[str] = None,
) -> str:
    """
    Render the default server block.

    The PHP-FPM location is included when ``php_version`` is given and the
    phpMyAdmin locations when ``phpmyadmin_dir`` is given too.
    """
    index = "index.php index.html index.htm index.nginx-debian.html" if php_version else "index.html index.htm index.nginx-debian.html"
    locations = ""
    if php_version:
        locations += PHP_LOCATION_TEMPLATE.format(php_version=php_version)
        if phpmyadmin_dir:
            locations += PHPMYADMIN_LOCATION_TEMPLATE.format(
                php_version=php_version, phpmyadmin_dir=phpmyadmin_dir
            )
    return f"""server {{
    listen 80 default_server;
    listen [::]:80 default_server;
    server_name _;
    root {web_root};
    index {index};

    location / {{
        try_files $uri $uri/ =404;
    }}
{locations}
    location ~* \\.(js|css|png|jpg|jpeg|gif|ico)$ {{
        expires max;
        log_not_found off;
    }}

    location ~ /\\.ht {{
        deny all;
    }}
}}
"""


def check_nginx_config(component: BaseComponent) -> None:
    """``nginx -t``; a failing test aborts the calling step."""
    try:
        run_elevated_command(
            ["nginx", "-t"], component.app_settings, current_logger=component.logger
        )
    except subprocess.CalledProcessError:
        component.fail("Nginx configuration test failed.")


@ComponentRegistry.register(
    name="nginx",
    metadata={
        "dependencies": ["system"],
        "after": ["php"],
        "detect_command": "nginx",
        "description": "Nginx web server with PHP-FPM",
    },
)
class NginxInstaller(BaseComponent):
    """Installer for the Nginx web server."""

    def _php_version(self) -> Optional[str]:
        if self.request is not None and self.request.install_php:
            return self.request.php_version
        return None

    def _get_nginx_packages(self) -> List[str]:
        return list(static_config.NGINX_PACKAGES)

    def install(self) -> None:
        log_installer(
            f"{self.symbols.get('package', '📦')} Installing Nginx",
            "info",
            self.logger,
            self.app_settings,
        )
        self.install_packages(self._get_nginx_packages())
        allow_application_profile("Nginx Full", self.app_settings, self.logger)

        try:
            start_and_enable_service(NGINX_SERVICE, self.app_settings, self.logger)
        except subprocess.CalledProcessError:
            self.fail("Failed to enable or start Nginx.")

        php_version = self._php_version()
        if php_version:
            write_file(
                NGINX_DEFAULT_SITE,
                render_default_site(self.app_settings.web_root, php_version),
            )
            self.logger.info(f"Wrote PHP-FPM site to {NGINX_DEFAULT_SITE}")

        check_nginx_config(self)

        if not safe_restart(NGINX_SERVICE, self.app_settings, self.logger):
            self.fail("Failed to restart Nginx.")

        log_installer(
            f"{self.symbols.get('success', '✅')} Nginx installed and configured",
            "success",
            self.logger,
            self.app_settings,
        )

    def uninstall(self) -> bool:
        """
        Uninstall (purge) Nginx and delete its configuration, logs and web root.
        """
        log_installer(
            f"{self.symbols.get('info', 'ℹ️')} Removing Nginx",
            "info",
            self.logger,
            self.app_settings,
        )
        stop_service(NGINX_SERVICE, self.app_settings, self.logger)
        purged = self.purge_packages(list(static_config.NGINX_PURGE_PACKAGES))
        remove_paths(
            NGINX_REMOVE_PATHS + [self.app_settings.web_root],
            self.app_settings,
            self.logger,
        )
        log_installer(
            f"{self.symbols.get('success', '✅')} Nginx removed successfully.",
            "success",
            self.logger,
            self.app_settings,
        )
        return purged
