# lampstack/cli.py
# -*- coding: utf-8 -*-
"""
Command-line entry point for the LAMP/LEMP stack installer.

With an action flag (``--lamp``, ``--lemp`` or ``--remove``) the run is fully
non-interactive; without one, the interactive menu builds the same
InstallationRequest.
"""

import argparse
import functools
import sys
from typing import List, NoReturn, Optional

from pydantic import ValidationError

from lampstack.common.logging_config import setup_logging
from lampstack.installer.orchestrator import (
    EXIT_FAILURE,
    EXIT_SUCCESS,
    StackOrchestrator,
)
from lampstack.setup import config as static_config
from lampstack.setup.cli_handler import (
    build_request_interactively,
    display_banner,
    display_completion_message,
    prompt_yes_no,
)
from lampstack.setup.config_loader import load_app_settings
from lampstack.setup.config_models import AppSettings, InstallationRequest, Stack

EXAMPLES = """Examples:
  lamp-lemp-installer --lamp --php-version=8.2
  lamp-lemp-installer --lemp --php-version=8.2 --mysql-password=mysecurepassword
  lamp-lemp-installer --remove
"""


class InstallerArgumentParser(argparse.ArgumentParser):
    """Prints the full help text and exits with status 1 on a usage error."""

    def error(self, message: str) -> NoReturn:
        self.print_help(sys.stderr)
        self.exit(EXIT_FAILURE, f"\n{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = InstallerArgumentParser(
        prog="lamp-lemp-installer",
        description="Install or remove a LAMP (Apache) or LEMP (Nginx) stack with MySQL and PHP.",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    action = parser.add_mutually_exclusive_group()
    action.add_argument(
        "--lamp", action="store_true", help="Install LAMP stack (Apache, MySQL, PHP)"
    )
    action.add_argument(
        "--lemp", action="store_true", help="Install LEMP stack (Nginx, MySQL, PHP)"
    )
    action.add_argument(
        "-r", "--remove", action="store_true", help="Remove existing LAMP or LEMP stack"
    )
    parser.add_argument(
        "-p",
        "--mysql-password",
        default="",
        help="Set MySQL root password (default: generate a secure one)",
    )
    parser.add_argument(
        "-v",
        "--php-version",
        default=static_config.PHP_VERSION_DEFAULT,
        help=f"PHP version to install (default: {static_config.PHP_VERSION_DEFAULT}; "
        "allowed versions come from the supported_php_versions setting)",
    )
    parser.add_argument(
        "-s", "--supervisor", action="store_true", help="Install Supervisor (default: false)"
    )
    parser.add_argument(
        "-c", "--composer", action="store_true", help="Install Composer (default: false)"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="YAML configuration file (default: ./config.yaml)",
    )
    parser.add_argument(
        "--post-install",
        action="store_true",
        help="Run the post-install tasks after a successful installation",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Enable verbose console output"
    )
    return parser


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(args)


def request_from_args(
    args: argparse.Namespace, app_settings: Optional[AppSettings] = None
) -> Optional[InstallationRequest]:
    """
    The InstallationRequest described by the flags, or None when no action
    flag was given. With ``app_settings`` the PHP version is checked against
    its supported_php_versions instead of the built-in list.

    Raises:
        pydantic.ValidationError: If the flags describe an invalid request.
    """
    if args.remove:
        return InstallationRequest(remove=True)
    if not (args.lamp or args.lemp):
        return None
    values = dict(
        stack=Stack.LAMP if args.lamp else Stack.LEMP,
        php_version=args.php_version,
        mysql_password=args.mysql_password,
        install_composer=args.composer,
        install_supervisor=args.supervisor,
    )
    if app_settings is None:
        return InstallationRequest(**values)
    return InstallationRequest.for_settings(app_settings, **values)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the installer.

    Returns:
        The process exit code.
    """
    args = parse_args(argv)
    app_settings = load_app_settings(args)
    logger = setup_logging(
        log_level=app_settings.log_level,
        log_file=app_settings.log_file,
        symbols=app_settings.symbols,
    )
    display_banner(app_settings, static_config.read_version_marker())

    try:
        request = request_from_args(args, app_settings)
        if request is None:
            request = build_request_interactively(app_settings)
    except ValidationError as e:
        for error in e.errors():
            logger.error(f"Invalid request: {error['msg']}")
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.warning("Aborted by user.")
        return EXIT_FAILURE

    if request is None:
        logger.info("Exiting.")
        return EXIT_SUCCESS

    orchestrator = StackOrchestrator(
        app_settings,
        logger=logger,
        confirm=prompt_yes_no,
        on_complete=functools.partial(
            display_completion_message, app_settings=app_settings, current_logger=logger
        ),
    )
    return orchestrator.run(request)


if __name__ == "__main__":
    sys.exit(main())
