import pytest

from lampstack.setup.cli_handler import (
    build_request_interactively,
    completion_lines,
    display_banner,
    display_completion_message,
    prompt_main_menu,
    prompt_php_version,
    prompt_text,
    prompt_yes_no,
)
from lampstack.setup.config_models import InstallationRequest, Stack, StepResult


def answers(*values):
    """An input function that replays ``values`` and then hits end of input."""
    remaining = list(values)
    asked = []

    def input_func(prompt):
        asked.append(prompt)
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    input_func.asked = asked
    return input_func


@pytest.mark.parametrize(
    "reply, default, expected",
    [
        ("y", False, True),
        ("YES", False, True),
        ("n", True, False),
        ("", False, False),
        ("", True, True),
        ("maybe", False, False),
    ],
)
def test_prompt_yes_no(reply, default, expected):
    assert prompt_yes_no("Continue?", default, answers(reply)) is expected


def test_prompt_yes_no_end_of_input():
    assert prompt_yes_no("Continue?", True, answers()) is True


def test_prompt_text_default():
    assert prompt_text("Name", "fallback", answers("  ")) == "fallback"
    assert prompt_text("Name", "fallback", answers()) == "fallback"


def test_main_menu_repeats_on_invalid_choice():
    shown = []
    assert prompt_main_menu(answers("9", "abc", "2"), shown.append) == "lemp"
    assert shown.count("Invalid option selected.") == 2


def test_main_menu_end_of_input_exits():
    assert prompt_main_menu(answers(), lambda line: None) == "exit"


def test_php_version_retries_until_supported(app_settings):
    shown = []
    assert prompt_php_version(app_settings, answers("9.9", "8.1"), shown.append) == "8.1"
    assert any("Unsupported PHP version" in line for line in shown)


def test_build_request_lamp_questions_in_order(app_settings):
    input_func = answers("1", "y", "", "y", "n", "y")
    password_func = answers("")

    request = build_request_interactively(
        app_settings, input_func, password_func, lambda line: None
    )

    assert request.stack is Stack.LAMP
    assert request.php_version == "8.2"
    assert request.install_mysql is True
    assert request.mysql_password == ""
    assert request.install_supervisor is False
    assert request.install_composer is True
    questions = [prompt for prompt in input_func.asked if "?" in prompt]
    assert [q.split("?")[0] for q in questions] == [
        "Do you want to install PHP",
        "Do you want to install MySQL",
        "Do you want to install Supervisor",
        "Do you want to install Composer",
    ]


def test_build_request_lemp_without_php_or_mysql(app_settings):
    password_func = answers()
    request = build_request_interactively(
        app_settings, answers("2", "n", "n", "y", "n"), password_func, lambda line: None
    )

    assert request.stack is Stack.LEMP
    assert request.install_php is False
    assert request.install_mysql is False
    assert request.install_supervisor is True
    assert password_func.asked == []


def test_build_request_accepts_configured_php_version(app_settings):
    app_settings.supported_php_versions = ["8.2", "8.5"]
    request = build_request_interactively(
        app_settings, answers("1", "y", "8.5", "n", "n", "n"), answers(), lambda line: None
    )

    assert request.stack is Stack.LAMP
    assert request.php_version == "8.5"


def test_build_request_remove(app_settings):
    request = build_request_interactively(app_settings, answers("3"), answers(), lambda line: None)
    assert request.remove is True


def test_build_request_exit(app_settings):
    assert build_request_interactively(app_settings, answers("4"), answers(), lambda line: None) is None


def test_display_banner(app_settings):
    shown = []
    display_banner(app_settings, "2.1.0", shown.append)
    assert any("LAMP/LEMP Stack Installer v2.1.0" in line for line in shown)


def test_completion_lines_generated_password():
    request = InstallationRequest(stack=Stack.LAMP, mysql_password="Gen3rated!Pass99")
    lines = completion_lines(request, True, "10.0.0.5")

    assert "| Web Site: http://10.0.0.5/" in lines
    assert "| PhpMyAdmin: http://10.0.0.5/phpmyadmin" in lines
    assert "| MySQL User: root || Pass: Gen3rated!Pass99" in lines


def test_completion_lines_supplied_password_not_echoed():
    request = InstallationRequest(stack=Stack.LEMP, mysql_password="Str0ng!Passw0rd")
    lines = completion_lines(request, False, "10.0.0.5")

    assert not any("Str0ng!Passw0rd" in line for line in lines)
    assert "| MySQL User: root || Pass: (as supplied)" in lines


def test_completion_lines_without_mysql():
    request = InstallationRequest(stack=Stack.LEMP, install_mysql=False)
    lines = completion_lines(request, False, "localhost")
    assert not any("MySQL" in line or "PhpMyAdmin" in line for line in lines)


def test_completion_message_never_logs_password(mocker, app_settings, mock_logger):
    mocker.patch(
        "lampstack.setup.cli_handler.get_primary_ip_address", return_value=None
    )
    request = InstallationRequest(stack=Stack.LAMP, mysql_password="Gen3rated!Pass99")
    shown = []

    display_completion_message(
        request,
        [StepResult(name="system", success=True)],
        True,
        app_settings,
        shown.append,
        mock_logger,
    )

    assert "| Web Site: http://localhost/" in shown
    assert any("Gen3rated!Pass99" in line for line in shown)
    for call in mock_logger.method_calls:
        assert "Gen3rated!Pass99" not in str(call)
