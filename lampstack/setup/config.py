# lampstack/setup/config.py
"""
Centralized constants and default values for the stack installer.

This module defines default values, package lists for apt installation,
filesystem locations touched by the installer and logging symbols. Values that
an operator may want to change are surfaced again as fields of
``AppSettings`` in ``config_models``.
"""

from pathlib import Path

# --- Project metadata ---
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent
VERSION_FILE: Path = PROJECT_ROOT / "VERSION"
SCRIPT_VERSION_DEFAULT: str = "0.0.0"

# --- Default Global Variable Values ---
PHP_VERSION_DEFAULT: str = "8.2"
SUPPORTED_PHP_VERSIONS: tuple = ("7.4", "8.0", "8.1", "8.2", "8.3", "8.4")
PASSWORD_MIN_LENGTH: int = 8
GENERATED_PASSWORD_LENGTH: int = 16

LOG_FILE_DEFAULT: str = "/var/log/lamp_lemp_installer.log"
BACKUP_ROOT_DEFAULT: str = "/tmp"
BACKUP_DIR_PREFIX: str = "lamp-lemp-backup"

# Subsystem name -> live configuration directory captured before mutation.
BACKUP_TARGETS_DEFAULT: dict = {
    "apache2": "/etc/apache2",
    "nginx": "/etc/nginx",
    "mysql": "/etc/mysql",
    "php": "/etc/php",
}

SUPPORTED_OS_MIN_VERSIONS: dict = {
    "ubuntu": "20.04",
    "debian": "11",
}
MIN_DISK_MB_DEFAULT: int = 2048
MIN_MEMORY_MB_DEFAULT: int = 1024

CONNECTIVITY_HOSTS_DEFAULT: list = [
    "google.com",
    "github.com",
    "packages.sury.org",
]
CLEANUP_PORTS_DEFAULT: list = [80, 443, 3306]

SERVICE_RESTART_ATTEMPTS_DEFAULT: int = 3
SERVICE_RESTART_DELAY_DEFAULT: float = 2.0

WEB_ROOT_DEFAULT: str = "/var/www/html"
WEB_USER: str = "www-data"

# --- Remote sources ---
PHPMYADMIN_DOWNLOAD_URL_DEFAULT: str = (
    "https://www.phpmyadmin.net/downloads/phpMyAdmin-latest-all-languages.tar.gz"
)
PHPMYADMIN_INSTALL_DIR: Path = Path("/usr/share/phpmyadmin")
PHPMYADMIN_CONTROL_USER: str = "pma"

COMPOSER_INSTALLER_URL_DEFAULT: str = "https://getcomposer.org/installer"
COMPOSER_SIGNATURE_URL_DEFAULT: str = "https://composer.github.io/installer.sig"
COMPOSER_BINARY_PATH: Path = Path("/usr/local/bin/composer")

SURY_PHP_KEY_URL: str = "https://packages.sury.org/php/apt.gpg"
SURY_PHP_KEYRING: str = "/usr/share/keyrings/sury-php.gpg"
ONDREJ_PHP_PPA: str = "ppa:ondrej/php"

# --- Temporary files removed after a successful run ---
TEMP_FILE_GLOBS: list = [
    "/tmp/composer-setup.php",
    "/tmp/phpMyAdmin-*.tar.gz",
]

# --- Post-install ---
MAINTENANCE_SCRIPT_PATH: Path = Path("/usr/local/bin/lamp-lemp-maintenance")
LOGROTATE_CONF_PATH: Path = Path("/etc/logrotate.d/lamp-lemp-installer")
ROOT_BASHRC_PATH: Path = Path("/root/.bashrc")

# --- Package Lists (for apt installation) ---
PHP_EXTENSIONS: list[str] = [
    "fpm",
    "cli",
    "zip",
    "gd",
    "common",
    "xml",
    "bcmath",
    "mbstring",
    "curl",
    "mysql",
    "ldap",
]

APACHE_PACKAGES: list[str] = ["apache2"]
APACHE_PURGE_PACKAGES: list[str] = [
    "apache2",
    "apache2-utils",
    "apache2-bin",
    "apache2.2-common",
]

NGINX_PACKAGES: list[str] = ["nginx"]
NGINX_PURGE_PACKAGES: list[str] = ["nginx", "nginx-common", "nginx-full"]

MYSQL_PACKAGES: list[str] = ["mysql-server"]
MYSQL_PURGE_PACKAGES: list[str] = [
    "mysql-server",
    "mysql-client",
    "mysql-common",
    "mysql-server-core-*",
    "mysql-client-core-*",
]

PHPMYADMIN_PURGE_PACKAGES: list[str] = [
    "phpmyadmin",
    "javascript-common",
    "libjs-popper.js",
    "libjs-bootstrap5",
]

SUPERVISOR_PACKAGES: list[str] = ["supervisor"]

DEV_TOOL_PACKAGES: list[str] = [
    "curl",
    "wget",
    "unzip",
    "git",
    "htop",
    "tree",
]

# --- Symbols for Logging ---
SYMBOLS: dict = {
    "success": "✅",
    "error": "❌",
    "warning": "⚠️",
    "info": "ℹ️",
    "step": "➡️",
    "gear": "⚙️",
    "package": "📦",
    "rocket": "🚀",
    "sparkles": "✨",
    "critical": "🔥",
    "debug": "🐛",
}


def read_version_marker(version_file: Path = VERSION_FILE) -> str:
    """Return the one-line version marker, or the default when it is absent."""
    try:
        return version_file.read_text(encoding="utf-8").strip() or SCRIPT_VERSION_DEFAULT
    except OSError:
        return SCRIPT_VERSION_DEFAULT
