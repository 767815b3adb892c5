import logging
import subprocess

import pytest

from lampstack.common.command_utils import (
    command_exists,
    get_symbols,
    log_installer,
    noninteractive_env,
    run_command,
    run_elevated_command,
)
from lampstack.setup.config_models import SYMBOLS_DEFAULT


def test_get_symbols_falls_back_to_defaults():
    assert get_symbols(None) == SYMBOLS_DEFAULT


def test_get_symbols_uses_settings(app_settings):
    app_settings.symbols = {"info": "i"}
    assert get_symbols(app_settings) == {"info": "i"}


@pytest.mark.parametrize(
    "level, method",
    [
        ("info", "info"),
        ("success", "info"),
        ("warning", "warning"),
        ("error", "error"),
        ("critical", "critical"),
        ("debug", "debug"),
    ],
)
def test_log_installer_levels(mock_logger, level, method):
    log_installer("hello", level, mock_logger)
    getattr(mock_logger, method).assert_called_once_with("hello", exc_info=False)


def test_run_command_returns_completed_process(mocker):
    completed = subprocess.CompletedProcess(["echo", "hi"], 0, stdout="hi\n", stderr="")
    mock_run = mocker.patch(
        "lampstack.common.command_utils.subprocess.run", return_value=completed
    )

    result = run_command(["echo", "hi"], None, capture_output=True)

    assert result is completed
    mock_run.assert_called_once_with(
        ["echo", "hi"],
        check=True,
        shell=False,
        capture_output=True,
        text=True,
        input=None,
        cwd=None,
        env=None,
    )


def test_run_command_secret_input_is_not_logged(mocker, caplog):
    completed = subprocess.CompletedProcess(["mysql"], 0, stdout="s3cret-out", stderr="")
    mocker.patch(
        "lampstack.common.command_utils.subprocess.run", return_value=completed
    )
    caplog.set_level(logging.DEBUG)

    run_command(
        ["mysql", "-u", "root"],
        None,
        capture_output=True,
        cmd_input="ALTER USER 'root' IDENTIFIED BY 's3cret';",
        secret_input=True,
    )

    assert "s3cret" not in caplog.text


def test_run_command_reraises_called_process_error(mocker):
    mocker.patch(
        "lampstack.common.command_utils.subprocess.run",
        side_effect=subprocess.CalledProcessError(2, ["false"], "", "boom"),
    )
    with pytest.raises(subprocess.CalledProcessError):
        run_command(["false"], None)


def test_run_command_splits_string_without_shell(mocker):
    mock_run = mocker.patch(
        "lampstack.common.command_utils.subprocess.run",
        return_value=subprocess.CompletedProcess(["ls", "-l"], 0),
    )
    run_command("ls -l", None)
    assert mock_run.call_args[0][0] == ["ls", "-l"]


def test_run_elevated_command_adds_sudo_for_non_root(mocker):
    mocker.patch("lampstack.common.command_utils.os.geteuid", return_value=1000)
    mock_run = mocker.patch("lampstack.common.command_utils.run_command")

    run_elevated_command(["systemctl", "restart", "nginx"], None)

    assert mock_run.call_args[0][0] == ["sudo", "systemctl", "restart", "nginx"]


def test_run_elevated_command_as_root_runs_directly(mocker):
    mocker.patch("lampstack.common.command_utils.os.geteuid", return_value=0)
    mock_run = mocker.patch("lampstack.common.command_utils.run_command")

    run_elevated_command(["systemctl", "restart", "nginx"], None)

    assert mock_run.call_args[0][0] == ["systemctl", "restart", "nginx"]


def test_noninteractive_env_sets_frontend():
    env = noninteractive_env({"MYSQL_PWD": "x"})
    assert env["DEBIAN_FRONTEND"] == "noninteractive"
    assert env["MYSQL_PWD"] == "x"


def test_command_exists(mocker):
    mocker.patch(
        "lampstack.common.command_utils.shutil.which",
        side_effect=lambda name: "/usr/bin/nginx" if name == "nginx" else None,
    )
    assert command_exists("nginx") is True
    assert command_exists("apache2") is False
