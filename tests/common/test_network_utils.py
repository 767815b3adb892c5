import subprocess

import pytest
import requests

from lampstack.common.network_utils import (
    check_connectivity,
    download_file,
    fetch_text,
    free_ports,
    port_in_use,
    send_notification,
)

MODULE = "lampstack.common.network_utils"


def _completed(returncode, stdout=""):
    return subprocess.CompletedProcess([], returncode, stdout=stdout, stderr="")


def test_check_connectivity_first_host_answers(mocker, app_settings):
    mock_run = mocker.patch(f"{MODULE}.run_command", return_value=_completed(0))

    assert check_connectivity(["a.example", "b.example"], app_settings) is True
    mock_run.assert_called_once()
    assert mock_run.call_args[0][0] == ["ping", "-c", "1", "-W", "5", "a.example"]


def test_check_connectivity_all_hosts_fail(mocker, app_settings, mock_logger):
    mock_run = mocker.patch(f"{MODULE}.run_command", return_value=_completed(1))

    assert check_connectivity(["a.example", "b.example"], app_settings, mock_logger) is False
    assert mock_run.call_count == 2
    mock_logger.warning.assert_called_once()


def test_port_in_use(mocker, app_settings):
    mocker.patch(
        f"{MODULE}.run_elevated_command",
        return_value=_completed(0, "nginx 123 root 6u IPv4 TCP *:http (LISTEN)"),
    )
    assert port_in_use(80, app_settings) is True


def test_port_not_in_use(mocker, app_settings):
    mocker.patch(f"{MODULE}.run_elevated_command", return_value=_completed(1))
    assert port_in_use(80, app_settings) is False


def test_free_ports_kills_only_busy_ports(mocker, app_settings):
    mocker.patch(f"{MODULE}.port_in_use", side_effect=lambda port, *a: port == 3306)
    mock_run = mocker.patch(f"{MODULE}.run_elevated_command", return_value=_completed(0))

    assert free_ports([80, 443, 3306], app_settings) == [3306]
    mock_run.assert_called_once_with(
        ["fuser", "-k", "3306/tcp"],
        app_settings,
        check=False,
        current_logger=mocker.ANY,
    )


def test_send_notification_disabled(mocker, app_settings):
    mock_run = mocker.patch(f"{MODULE}.run_command")
    assert send_notification("subject", "body", app_settings) is False
    mock_run.assert_not_called()


def test_send_notification_sends_mail(mocker, app_settings):
    app_settings.send_completion_email = True
    app_settings.admin_email = "admin@example.com"
    mocker.patch(f"{MODULE}.command_exists", return_value=True)
    mock_run = mocker.patch(f"{MODULE}.run_command", return_value=_completed(0))

    assert send_notification("Done", "All good", app_settings) is True
    assert mock_run.call_args[0][0] == ["mail", "-s", "Done", "admin@example.com"]
    assert mock_run.call_args[1]["cmd_input"] == "All good"


def test_send_notification_without_mail_command(mocker, app_settings):
    app_settings.send_completion_email = True
    app_settings.admin_email = "admin@example.com"
    mocker.patch(f"{MODULE}.command_exists", return_value=False)
    mock_run = mocker.patch(f"{MODULE}.run_command")

    assert send_notification("Done", "All good", app_settings) is False
    mock_run.assert_not_called()


def test_download_file_streams_to_disk(mocker, tmp_path):
    mock_get = mocker.patch(f"{MODULE}.requests.get")
    response = mock_get.return_value.__enter__.return_value
    response.iter_content.return_value = [b"abc", b"", b"def"]

    target = download_file("https://example.org/f.tgz", tmp_path / "sub" / "f.tgz", timeout=5)

    assert target.read_bytes() == b"abcdef"
    mock_get.assert_called_once_with("https://example.org/f.tgz", stream=True, timeout=5)


def test_download_file_http_error(mocker, tmp_path):
    mock_get = mocker.patch(f"{MODULE}.requests.get")
    response = mock_get.return_value.__enter__.return_value
    response.raise_for_status.side_effect = requests.HTTPError("404")

    with pytest.raises(requests.HTTPError):
        download_file("https://example.org/missing", tmp_path / "f")


def test_fetch_text(mocker):
    mock_get = mocker.patch(f"{MODULE}.requests.get")
    mock_get.return_value.text = "abc123\n"
    assert fetch_text("https://example.org/sig") == "abc123\n"
