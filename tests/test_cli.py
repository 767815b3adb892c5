import pytest
from pydantic import ValidationError

from lampstack import cli
from lampstack.setup.config_models import Stack


@pytest.fixture
def main_env(mocker, app_settings, mock_logger):
    """Patch out logging setup, the banner and the orchestrator."""
    mocker.patch.object(cli, "load_app_settings", return_value=app_settings)
    mocker.patch.object(cli, "setup_logging", return_value=mock_logger)
    mocker.patch.object(cli, "display_banner")
    orchestrator_cls = mocker.patch.object(cli, "StackOrchestrator")
    orchestrator_cls.return_value.run.return_value = 0
    return orchestrator_cls


def test_parse_defaults():
    args = cli.parse_args([])
    assert not (args.lamp or args.lemp or args.remove)
    assert args.php_version == "8.2"
    assert args.mysql_password == ""
    assert args.supervisor is False
    assert args.composer is False


def test_parse_short_flags():
    args = cli.parse_args(["--lemp", "-v", "8.3", "-p", "secret", "-s", "-c"])
    assert args.lemp is True
    assert args.php_version == "8.3"
    assert args.mysql_password == "secret"
    assert args.supervisor is True
    assert args.composer is True


def test_unknown_flag_exits_with_usage(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.parse_args(["--bogus"])
    assert excinfo.value.code == 1
    assert "usage:" in capsys.readouterr().err


def test_lamp_and_lemp_are_exclusive():
    with pytest.raises(SystemExit) as excinfo:
        cli.parse_args(["--lamp", "--lemp"])
    assert excinfo.value.code == 1


def test_request_from_args_lamp():
    request = cli.request_from_args(cli.parse_args(["--lamp", "--composer"]))
    assert request.stack is Stack.LAMP
    assert request.install_composer is True
    assert request.install_supervisor is False


def test_request_from_args_remove():
    assert cli.request_from_args(cli.parse_args(["--remove"])).remove is True


def test_request_from_args_without_action():
    assert cli.request_from_args(cli.parse_args([])) is None


def test_request_from_args_rejects_php_version():
    with pytest.raises(ValidationError):
        cli.request_from_args(cli.parse_args(["--lamp", "--php-version", "5.6"]))


def test_main_runs_orchestrator(main_env, app_settings):
    assert cli.main(["--lemp", "--php-version", "8.3"]) == 0

    request = main_env.return_value.run.call_args[0][0]
    assert request.stack is Stack.LEMP
    assert request.php_version == "8.3"
    assert main_env.call_args[0][0] is app_settings


def test_main_propagates_exit_code(main_env):
    main_env.return_value.run.return_value = 1
    assert cli.main(["--remove"]) == 1


def test_main_invalid_request(main_env, mock_logger):
    assert cli.main(["--lamp", "--php-version", "5.6"]) == 1
    main_env.assert_not_called()
    mock_logger.error.assert_called()


def test_main_interactive_exit(mocker, main_env):
    mocker.patch.object(cli, "build_request_interactively", return_value=None)
    assert cli.main([]) == 0
    main_env.assert_not_called()


def test_main_interactive_request(mocker, main_env, lamp_request):
    mocker.patch.object(cli, "build_request_interactively", return_value=lamp_request)
    assert cli.main([]) == 0
    main_env.return_value.run.assert_called_once_with(lamp_request)


def test_request_from_args_honours_configured_php_versions(app_settings):
    settings = app_settings.model_copy(update={"supported_php_versions": ["8.2", "8.5"]})
    args = cli.parse_args(["--lamp", "--php-version", "8.5"])

    assert cli.request_from_args(args, settings).php_version == "8.5"
    with pytest.raises(ValidationError):
        cli.request_from_args(args, app_settings)


def test_main_uses_configured_php_versions(main_env, app_settings):
    app_settings.supported_php_versions = ["8.2", "8.5"]

    assert cli.main(["--lamp", "--php-version", "8.5"]) == 0
    assert main_env.return_value.run.call_args[0][0].php_version == "8.5"
