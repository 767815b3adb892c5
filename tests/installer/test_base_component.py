import subprocess

import pytest
import requests

from lampstack.common.exceptions import StepFailedError
from lampstack.installer.base_component import BaseComponent


class DemoComponent(BaseComponent):
    component_name = "demo"
    metadata = {
        "dependencies": ["system"],
        "detect_command": "demo-bin",
        "description": "A demo step",
    }

    def __init__(self, *args, error=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.error = error

    def install(self):
        if self.error is not None:
            raise self.error

    def uninstall(self):
        return True


def test_run_install_success(app_settings, mock_apt):
    result = DemoComponent(app_settings, apt_manager=mock_apt).run_install()
    assert result.name == "demo"
    assert result.success is True
    assert result.error is None


@pytest.mark.parametrize(
    "error",
    [
        StepFailedError("demo", "package missing"),
        subprocess.CalledProcessError(1, ["apt-get"]),
        requests.ConnectionError("offline"),
        OSError("read-only file system"),
    ],
)
def test_run_install_reports_failures(app_settings, mock_apt, error):
    result = DemoComponent(app_settings, apt_manager=mock_apt, error=error).run_install()
    assert result.success is False
    assert result.error


def test_run_install_does_not_swallow_programming_errors(app_settings, mock_apt):
    component = DemoComponent(app_settings, apt_manager=mock_apt, error=TypeError("bug"))
    with pytest.raises(TypeError):
        component.run_install()


def test_fail_raises_step_failed(app_settings):
    with pytest.raises(StepFailedError, match=r"\[demo\] nope"):
        DemoComponent(app_settings).fail("nope")


def test_install_packages_aborts_on_apt_failure(app_settings, mock_apt):
    mock_apt.install.return_value = False
    with pytest.raises(StepFailedError, match="nginx"):
        DemoComponent(app_settings, apt_manager=mock_apt).install_packages(["nginx"])


def test_purge_packages_cleans_up(app_settings, mock_apt):
    assert DemoComponent(app_settings, apt_manager=mock_apt).purge_packages(["nginx"]) is True
    mock_apt.purge.assert_called_once_with(["nginx"], app_settings)
    mock_apt.autoremove.assert_called_once()
    mock_apt.autoclean.assert_called_once()


def test_is_installed_uses_detect_command(mocker, app_settings):
    mock_exists = mocker.patch(
        "lampstack.installer.base_component.command_exists", return_value=True
    )
    assert DemoComponent(app_settings).is_installed() is True
    mock_exists.assert_called_once_with("demo-bin")


def test_description_from_metadata(app_settings):
    assert DemoComponent(app_settings).get_description() == "A demo step"
