# lampstack/setup/cli_handler.py
# -*- coding: utf-8 -*-
"""
Handles interactive Command Line Interface (CLI) interactions for the
installer: the main menu, the yes/no and free-text questions, the banner and
the completion summary.
"""

import getpass
import logging
from typing import Callable, List, Optional

from lampstack.common.command_utils import get_symbols, log_installer
from lampstack.common.exceptions import InvalidPhpVersionError
from lampstack.common.system_utils import get_primary_ip_address
from lampstack.installer.validators import validate_php_version
from lampstack.setup import config as static_config
from lampstack.setup.config_models import (
    AppSettings,
    InstallationRequest,
    Stack,
    StepResult,
)

module_logger = logging.getLogger(__name__)

InputFunc = Callable[[str], str]

MENU_OPTIONS = [
    ("1", "Install LAMP Stack", "lamp"),
    ("2", "Install LEMP Stack", "lemp"),
    ("3", "Remove Existing Stack", "remove"),
    ("4", "Exit", "exit"),
]


def prompt_yes_no(
    question: str,
    default: bool = False,
    input_func: InputFunc = input,
) -> bool:
    """
    Ask a y/N question. An empty answer or end of input gives ``default``.
    """
    suffix = "[Y/n]" if default else "[y/N]"
    try:
        answer = input_func(f"{question} {suffix}: ").strip().lower()
    except EOFError:
        return default
    if not answer:
        return default
    return answer in ("y", "yes")


def prompt_text(
    question: str,
    default: str = "",
    input_func: InputFunc = input,
) -> str:
    """Ask for free text; an empty answer or end of input gives ``default``."""
    try:
        answer = input_func(f"{question}: ").strip()
    except EOFError:
        return default
    return answer or default


def prompt_main_menu(
    input_func: InputFunc = input,
    output: Callable[[str], None] = print,
) -> str:
    """
    Show the numbered main menu until a valid choice is made.

    Returns:
        One of "lamp", "lemp", "remove" or "exit". End of input means "exit".
    """
    choices = {number: action for number, _, action in MENU_OPTIONS}
    output("Please select an option:")
    for number, label, _ in MENU_OPTIONS:
        output(f"  {number}) {label}")
    while True:
        try:
            answer = input_func("Enter choice [1-4]: ").strip()
        except EOFError:
            return "exit"
        if answer in choices:
            return choices[answer]
        output("Invalid option selected.")


def prompt_php_version(
    app_settings: AppSettings,
    input_func: InputFunc = input,
    output: Callable[[str], None] = print,
) -> str:
    """Ask for a PHP version until a supported one is given."""
    while True:
        answer = prompt_text(
            f"Enter PHP version [default: {static_config.PHP_VERSION_DEFAULT}]",
            static_config.PHP_VERSION_DEFAULT,
            input_func,
        )
        try:
            return validate_php_version(answer, app_settings.supported_php_versions)
        except InvalidPhpVersionError as e:
            output(str(e))


def build_request_interactively(
    app_settings: AppSettings,
    input_func: InputFunc = input,
    password_func: InputFunc = getpass.getpass,
    output: Callable[[str], None] = print,
) -> Optional[InstallationRequest]:
    """
    Build the InstallationRequest from the menu and follow-up questions.

    Returns:
        The request, or None when the operator chose to exit.
    """
    action = prompt_main_menu(input_func, output)
    if action == "exit":
        return None
    if action == "remove":
        return InstallationRequest(remove=True)

    stack = Stack.LAMP if action == "lamp" else Stack.LEMP
    install_php = prompt_yes_no("Do you want to install PHP?", False, input_func)
    php_version = static_config.PHP_VERSION_DEFAULT
    if install_php:
        php_version = prompt_php_version(app_settings, input_func, output)

    install_mysql = prompt_yes_no("Do you want to install MySQL?", False, input_func)
    mysql_password = ""
    if install_mysql:
        mysql_password = prompt_text(
            "Enter MySQL root password [leave blank to generate one]",
            "",
            password_func,
        )

    install_supervisor = prompt_yes_no("Do you want to install Supervisor?", False, input_func)
    install_composer = prompt_yes_no("Do you want to install Composer?", False, input_func)

    return InstallationRequest.for_settings(
        app_settings,
        stack=stack,
        php_version=php_version,
        mysql_password=mysql_password,
        install_php=install_php,
        install_mysql=install_mysql,
        install_supervisor=install_supervisor,
        install_composer=install_composer,
    )


def display_banner(
    app_settings: AppSettings,
    version: str,
    output: Callable[[str], None] = print,
) -> None:
    symbols = get_symbols(app_settings)
    output("=" * 50)
    output(f"  {symbols.get('rocket', '🚀')} LAMP/LEMP Stack Installer v{version}")
    output("=" * 50)


def completion_lines(
    request: InstallationRequest,
    password_generated: bool,
    ip_address: str,
) -> List[str]:
    """The completion summary, one line per entry."""
    stack = request.stack.value if request.stack else "Stack"
    lines = [
        "+-------------------------------------------+",
        f"|    {stack} Stack Installed Successfully",
        "+-------------------------------------------+",
        f"| Web Site: http://{ip_address}/",
    ]
    if request.install_admin_ui:
        lines.append(f"| PhpMyAdmin: http://{ip_address}/phpmyadmin")
    if request.install_mysql:
        if password_generated:
            lines.append(f"| MySQL User: root || Pass: {request.mysql_password}")
            lines.append("| (generated password, shown only once)")
        else:
            lines.append("| MySQL User: root || Pass: (as supplied)")
    lines.append("+-------------------------------------------+")
    return lines


def display_completion_message(
    request: InstallationRequest,
    results: List[StepResult],
    password_generated: bool,
    app_settings: Optional[AppSettings] = None,
    output: Callable[[str], None] = print,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Print the completion summary to the terminal.

    The summary is printed, never logged, because it may carry the generated
    MySQL root password.
    """
    logger_to_use = current_logger if current_logger else module_logger
    ip_address = get_primary_ip_address(app_settings, logger_to_use) or "localhost"
    for line in completion_lines(request, password_generated, ip_address):
        output(line)
    log_installer(
        f"Completed steps: {', '.join(result.name for result in results)}",
        "debug",
        logger_to_use,
        app_settings,
    )
