# tests/conftest.py
import logging
from unittest.mock import MagicMock

import pytest

from lampstack.common.debian.apt_manager import AptManager
from lampstack.setup.config_models import AppSettings, InstallationRequest, Stack

UBUNTU_2204 = """PRETTY_NAME="Ubuntu 22.04.4 LTS"
NAME="Ubuntu"
VERSION_ID="22.04"
VERSION_CODENAME=jammy
ID=ubuntu
ID_LIKE=debian
"""


@pytest.fixture
def os_release_file(tmp_path):
    path = tmp_path / "os-release"
    path.write_text(UBUNTU_2204, encoding="utf-8")
    return path


@pytest.fixture
def config_dirs(tmp_path):
    """Live configuration directories standing in for /etc/apache2 etc."""
    etc = tmp_path / "etc"
    dirs = {}
    for name in ("apache2", "nginx", "mysql", "php"):
        dirs[name] = etc / name
    return dirs


@pytest.fixture
def app_settings(tmp_path, os_release_file, config_dirs):
    return AppSettings(
        log_file=str(tmp_path / "installer.log"),
        backup_root=str(tmp_path / "backups"),
        backup_targets={name: str(path) for name, path in config_dirs.items()},
        os_release_path=str(os_release_file),
        web_root=str(tmp_path / "www"),
        service_restart_attempts=3,
        service_restart_delay=0,
        connectivity_hosts=["example.org"],
        cleanup_ports=[80, 443, 3306],
    )


@pytest.fixture
def mock_logger():
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def mock_apt():
    apt = MagicMock(spec=AptManager)
    for method in (
        "update",
        "upgrade",
        "install",
        "purge",
        "autoremove",
        "autoclean",
        "fix_broken",
        "set_debconf_selections",
        "add_ppa",
        "add_repository",
        "add_gpg_key_from_url",
    ):
        getattr(apt, method).return_value = True
    apt.is_installed.return_value = False
    return apt


@pytest.fixture
def lamp_request():
    return InstallationRequest(
        stack=Stack.LAMP,
        php_version="8.2",
        mysql_password="Str0ng!Passw0rd",
    )


@pytest.fixture
def lemp_request():
    return InstallationRequest(
        stack=Stack.LEMP,
        php_version="8.3",
        mysql_password="Str0ng!Passw0rd",
    )
