import subprocess
from unittest.mock import ANY

import pytest

from lampstack.common.exceptions import StepFailedError
from lampstack.installer.components.apache.apache_installer import ApacheInstaller
from lampstack.installer.components.firewall.ufw_configurator import (
    UFW_RULES,
    UfwConfigurator,
    allow_application_profile,
)
from lampstack.installer.components.nginx.nginx_installer import (
    NginxInstaller,
    render_default_site,
)
from lampstack.setup.config_models import InstallationRequest, Stack

APACHE = "lampstack.installer.components.apache.apache_installer"
NGINX = "lampstack.installer.components.nginx.nginx_installer"
UFW = "lampstack.installer.components.firewall.ufw_configurator"


@pytest.fixture
def apache_env(mocker):
    return {
        "profile": mocker.patch(f"{APACHE}.allow_application_profile", return_value=True),
        "start": mocker.patch(f"{APACHE}.start_and_enable_service"),
        "run": mocker.patch(f"{APACHE}.run_elevated_command"),
        "restart": mocker.patch(f"{APACHE}.safe_restart", return_value=True),
    }


def test_apache_install_with_php(app_settings, mock_apt, lamp_request, apache_env):
    ApacheInstaller(app_settings, lamp_request, apt_manager=mock_apt).install()

    mock_apt.install.assert_called_once_with(
        ["apache2", "libapache2-mod-php8.2"], app_settings
    )
    apache_env["profile"].assert_called_once_with("Apache Full", app_settings, ANY)
    commands = [c.args[0] for c in apache_env["run"].call_args_list]
    assert commands == [["apache2ctl", "configtest"], ["a2enmod", "php8.2"]]
    apache_env["restart"].assert_called_once_with("apache2", app_settings, ANY)


def test_apache_install_without_php(app_settings, mock_apt, apache_env):
    request = InstallationRequest(stack=Stack.LAMP, install_php=False, install_mysql=False)

    ApacheInstaller(app_settings, request, apt_manager=mock_apt).install()

    mock_apt.install.assert_called_once_with(["apache2"], app_settings)
    commands = [c.args[0] for c in apache_env["run"].call_args_list]
    assert commands == [["apache2ctl", "configtest"]]


def test_apache_configtest_failure_is_fatal(app_settings, mock_apt, lamp_request, apache_env):
    apache_env["run"].side_effect = subprocess.CalledProcessError(1, ["apache2ctl"])

    result = ApacheInstaller(app_settings, lamp_request, apt_manager=mock_apt).run_install()

    assert result.success is False
    assert "configuration test failed" in result.error
    apache_env["restart"].assert_not_called()


def test_apache_restart_failure_is_fatal(app_settings, mock_apt, lamp_request, apache_env):
    apache_env["restart"].return_value = False
    with pytest.raises(StepFailedError, match="restart Apache"):
        ApacheInstaller(app_settings, lamp_request, apt_manager=mock_apt).install()


def test_apache_uninstall(mocker, app_settings, mock_apt):
    mock_stop = mocker.patch(f"{APACHE}.stop_service", return_value=True)
    mock_remove = mocker.patch(f"{APACHE}.remove_paths")

    assert ApacheInstaller(app_settings, apt_manager=mock_apt).uninstall() is True

    mock_stop.assert_called_once_with("apache2", app_settings, mocker.ANY)
    assert "apache2" in mock_apt.purge.call_args[0][0]
    assert "/etc/apache2" in mock_remove.call_args[0][0]


def test_render_default_site_with_php():
    site = render_default_site("/var/www/html", "8.3")
    assert "root /var/www/html;" in site
    assert "index index.php" in site
    assert "fastcgi_pass unix:/run/php/php8.3-fpm.sock;" in site
    assert "phpmyadmin" not in site


def test_render_default_site_static():
    site = render_default_site("/srv/www")
    assert "fastcgi_pass" not in site
    assert "index index.html" in site


def test_render_default_site_with_phpmyadmin():
    site = render_default_site("/var/www/html", "8.2", "/usr/share/phpmyadmin")
    assert "location /phpmyadmin" in site
    assert "/usr/share/phpmyadmin" in site


def test_nginx_install_writes_php_site(mocker, app_settings, mock_apt, lemp_request):
    mocker.patch(f"{NGINX}.allow_application_profile", return_value=True)
    mocker.patch(f"{NGINX}.start_and_enable_service")
    mock_run = mocker.patch(f"{NGINX}.run_elevated_command")
    mock_write = mocker.patch(f"{NGINX}.write_file")
    mock_restart = mocker.patch(f"{NGINX}.safe_restart", return_value=True)

    NginxInstaller(app_settings, lemp_request, apt_manager=mock_apt).install()

    path, content = mock_write.call_args[0]
    assert path == "/etc/nginx/sites-available/default"
    assert "php8.3-fpm.sock" in content
    mock_run.assert_called_once_with(
        ["nginx", "-t"], app_settings, current_logger=mocker.ANY
    )
    mock_restart.assert_called_once_with("nginx", app_settings, mocker.ANY)


def test_nginx_config_test_failure(mocker, app_settings, mock_apt, lemp_request):
    mocker.patch(f"{NGINX}.allow_application_profile", return_value=True)
    mocker.patch(f"{NGINX}.start_and_enable_service")
    mocker.patch(f"{NGINX}.write_file")
    mocker.patch(
        f"{NGINX}.run_elevated_command",
        side_effect=subprocess.CalledProcessError(1, ["nginx", "-t"]),
    )
    mock_restart = mocker.patch(f"{NGINX}.safe_restart")

    result = NginxInstaller(app_settings, lemp_request, apt_manager=mock_apt).run_install()

    assert result.success is False
    assert "Nginx configuration test failed" in result.error
    mock_restart.assert_not_called()


def test_nginx_uninstall_removes_web_root(mocker, app_settings, mock_apt):
    mocker.patch(f"{NGINX}.stop_service", return_value=True)
    mock_remove = mocker.patch(f"{NGINX}.remove_paths")

    NginxInstaller(app_settings, apt_manager=mock_apt).uninstall()

    assert app_settings.web_root in mock_remove.call_args[0][0]


def test_allow_application_profile_without_ufw(mocker, app_settings):
    mocker.patch(f"{UFW}.command_exists", return_value=False)
    mock_run = mocker.patch(f"{UFW}.run_elevated_command")

    assert allow_application_profile("Nginx Full", app_settings) is False
    mock_run.assert_not_called()


def test_allow_application_profile(mocker, app_settings):
    mocker.patch(f"{UFW}.command_exists", return_value=True)
    mock_run = mocker.patch(
        f"{UFW}.run_elevated_command",
        return_value=subprocess.CompletedProcess([], 0),
    )

    assert allow_application_profile("Apache Full", app_settings) is True
    assert mock_run.call_args[0][0] == ["ufw", "allow", "Apache Full"]


def test_firewall_install_applies_rules_then_enables(mocker, app_settings, mock_apt, lamp_request):
    mock_run = mocker.patch(f"{UFW}.run_elevated_command")

    UfwConfigurator(app_settings, lamp_request, apt_manager=mock_apt).install()

    commands = [c.args[0] for c in mock_run.call_args_list]
    assert commands == [["ufw"] + rule for rule in UFW_RULES] + [["ufw", "--force", "enable"]]


def test_firewall_uninstall_failure(mocker, app_settings, mock_apt):
    mocker.patch(
        f"{UFW}.run_elevated_command",
        side_effect=subprocess.CalledProcessError(1, ["ufw"]),
    )
    assert UfwConfigurator(app_settings, apt_manager=mock_apt).uninstall() is False
