import subprocess

import pytest

from lampstack.common.exceptions import StepFailedError
from lampstack.installer.components.mysql.mysql_installer import (
    MysqlInstaller,
    root_password_selections,
    run_mysql,
)
from lampstack.installer.components.php.php_installer import (
    PhpInstaller,
    php_packages,
    tuned_ini,
)
from lampstack.installer.components.supervisor.supervisor_installer import (
    SupervisorInstaller,
)
from lampstack.installer.components.system.system_installer import SystemUpdater
from lampstack.setup.config_models import PhpTuningSettings

PHP = "lampstack.installer.components.php.php_installer"
MYSQL = "lampstack.installer.components.mysql.mysql_installer"
SUPERVISOR = "lampstack.installer.components.supervisor.supervisor_installer"


def test_system_update_and_upgrade(app_settings, mock_apt):
    result = SystemUpdater(app_settings, apt_manager=mock_apt).run_install()
    assert result.success is True
    mock_apt.update.assert_called_once_with(app_settings)
    mock_apt.upgrade.assert_called_once_with(app_settings)


def test_system_update_failure(app_settings, mock_apt):
    mock_apt.update.return_value = False
    result = SystemUpdater(app_settings, apt_manager=mock_apt).run_install()
    assert result.success is False
    mock_apt.upgrade.assert_not_called()


def test_php_packages():
    packages = php_packages("8.2")
    assert "php8.2-fpm" in packages
    assert "php8.2-mysql" in packages
    assert "php8.2-mbstring" in packages


def test_php_install_on_ubuntu_uses_ppa(mocker, app_settings, mock_apt, lamp_request):
    mock_run = mocker.patch(f"{PHP}.run_elevated_command")

    PhpInstaller(app_settings, lamp_request, apt_manager=mock_apt).install()

    mock_apt.add_ppa.assert_called_once_with("ppa:ondrej/php", app_settings)
    mock_apt.install.assert_called_once_with(php_packages("8.2"), app_settings)
    mock_run.assert_called_once_with(
        ["update-alternatives", "--set", "php", "/usr/bin/php8.2"],
        app_settings,
        current_logger=mocker.ANY,
    )


def test_php_install_on_debian_uses_sury(
    mocker, app_settings, mock_apt, lamp_request, os_release_file
):
    os_release_file.write_text(
        'ID=debian\nVERSION_ID="12"\nVERSION_CODENAME=bookworm\n', encoding="utf-8"
    )
    mocker.patch(f"{PHP}.run_elevated_command")

    PhpInstaller(app_settings, lamp_request, apt_manager=mock_apt).install()

    mock_apt.add_ppa.assert_not_called()
    mock_apt.add_gpg_key_from_url.assert_called_once()
    name, details, _ = mock_apt.add_repository.call_args[0]
    assert name == "php"
    assert details["Suites"] == "bookworm"
    assert details["URIs"] == "https://packages.sury.org/php/"


def test_php_repository_failure_aborts(mocker, app_settings, mock_apt, lamp_request):
    mock_apt.add_ppa.return_value = False
    mocker.patch(f"{PHP}.run_elevated_command")

    with pytest.raises(StepFailedError, match="PHP repository"):
        PhpInstaller(app_settings, lamp_request, apt_manager=mock_apt).install()
    mock_apt.install.assert_not_called()


def test_tuned_ini_replaces_and_appends():
    content = "memory_limit = 128M\n;max_execution_time = 30\n"
    tuning = PhpTuningSettings(memory_limit="512M", max_execution_time=120)

    tuned = tuned_ini(content, tuning)

    assert "memory_limit = 512M" in tuned
    assert "memory_limit = 128M" not in tuned
    assert "max_execution_time = 120" in tuned
    assert ";max_execution_time" not in tuned
    assert "opcache.enable = 1" in tuned
    assert "post_max_size = 64M" in tuned


def test_php_is_installed_checks_php_and_fpm(mocker, app_settings):
    mocker.patch(f"{PHP}.command_exists", side_effect=lambda name: name == "php-fpm")
    assert PhpInstaller(app_settings).is_installed() is True


def test_php_uninstall(mocker, app_settings, mock_apt):
    mocker.patch(f"{PHP}.glob.glob", return_value=["/lib/systemd/system/php8.2-fpm.service"])
    mock_run = mocker.patch(f"{PHP}.run_elevated_command")
    mock_remove = mocker.patch(f"{PHP}.remove_paths")

    assert PhpInstaller(app_settings, apt_manager=mock_apt).uninstall() is True

    assert mock_run.call_args[0][0] == ["systemctl", "stop", "php8.2-fpm.service"]
    mock_apt.purge.assert_called_once_with(["php*"], app_settings)
    assert "/etc/php" in mock_remove.call_args[0][0]


def test_root_password_selections():
    selections = root_password_selections("pw")
    assert selections == [
        "mysql-server mysql-server/root_password password pw",
        "mysql-server mysql-server/root_password_again password pw",
    ]


def test_mysql_install_preseeds_password(mocker, app_settings, mock_apt, lamp_request):
    mock_start = mocker.patch(f"{MYSQL}.start_and_enable_service")

    MysqlInstaller(app_settings, lamp_request, apt_manager=mock_apt).install()

    mock_apt.set_debconf_selections.assert_called_once_with(
        root_password_selections("Str0ng!Passw0rd"), app_settings
    )
    mock_apt.install.assert_called_once_with(["mysql-server"], app_settings)
    mock_start.assert_called_once_with("mysql", app_settings, mocker.ANY)


def test_mysql_install_needs_password(app_settings, mock_apt, lamp_request):
    request = lamp_request.model_copy(update={"mysql_password": ""})
    result = MysqlInstaller(app_settings, request, apt_manager=mock_apt).run_install()
    assert result.success is False
    mock_apt.install.assert_not_called()


def test_mysql_start_failure(mocker, app_settings, mock_apt, lamp_request):
    mocker.patch(
        f"{MYSQL}.start_and_enable_service",
        side_effect=subprocess.CalledProcessError(1, ["systemctl"]),
    )
    result = MysqlInstaller(app_settings, lamp_request, apt_manager=mock_apt).run_install()
    assert result.success is False
    assert "start or enable MySQL" in result.error


def test_run_mysql_passes_password_in_environment(mocker, app_settings, lamp_request):
    mock_run = mocker.patch(f"{MYSQL}.run_command")
    component = MysqlInstaller(app_settings, lamp_request)

    run_mysql(component, "SELECT 1;", "pw", database="phpmyadmin")

    command = mock_run.call_args[0][0]
    kwargs = mock_run.call_args[1]
    assert command == ["mysql", "-u", "root", "phpmyadmin"]
    assert "pw" not in command
    assert kwargs["env"]["MYSQL_PWD"] == "pw"
    assert kwargs["cmd_input"] == "SELECT 1;"
    assert kwargs["secret_input"] is True


def test_mysql_uninstall_kills_mysqld_when_stop_fails(mocker, app_settings, mock_apt):
    mocker.patch(f"{MYSQL}.stop_service", return_value=False)
    mocker.patch(f"{MYSQL}.disable_service", return_value=True)
    mocker.patch(f"{MYSQL}.remove_paths")
    mock_run = mocker.patch(f"{MYSQL}.run_elevated_command")

    assert MysqlInstaller(app_settings, apt_manager=mock_apt).uninstall() is True

    mock_run.assert_called_once_with(
        ["killall", "-9", "mysqld"], app_settings, check=False, current_logger=mocker.ANY
    )


def test_mysql_uninstall_graceful_stop(mocker, app_settings, mock_apt):
    mocker.patch(f"{MYSQL}.stop_service", return_value=True)
    mocker.patch(f"{MYSQL}.disable_service", return_value=True)
    mock_remove = mocker.patch(f"{MYSQL}.remove_paths")
    mock_run = mocker.patch(f"{MYSQL}.run_elevated_command")

    MysqlInstaller(app_settings, apt_manager=mock_apt).uninstall()

    mock_run.assert_not_called()
    assert "/var/lib/mysql" in mock_remove.call_args[0][0]


def test_supervisor_install_and_uninstall(mocker, app_settings, mock_apt, lamp_request):
    mock_start = mocker.patch(f"{SUPERVISOR}.start_and_enable_service")
    mock_stop = mocker.patch(f"{SUPERVISOR}.stop_service", return_value=True)
    mock_disable = mocker.patch(f"{SUPERVISOR}.disable_service", return_value=True)
    component = SupervisorInstaller(app_settings, lamp_request, apt_manager=mock_apt)

    component.install()
    assert component.uninstall() is True

    mock_start.assert_called_once_with("supervisor", app_settings, mocker.ANY)
    mock_stop.assert_called_once()
    mock_disable.assert_called_once()
    mock_apt.purge.assert_called_once_with(["supervisor"], app_settings)
