# lampstack/setup/config_models.py
# -*- coding: utf-8 -*-
"""
Pydantic models for application configuration and run state.

This module defines the structured settings for the installer, including
defaults, type annotations, and descriptions, together with the typed
installation request built once from flags or prompts and the transient
records (backup snapshot, step result, requirement report) that flow through
a single run. It utilizes Pydantic for data validation and settings management.
"""

from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import (
    BaseModel,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from lampstack.installer.validators import validate_php_version
from lampstack.setup import config as static_config

SYMBOLS_DEFAULT: Dict[str, str] = dict(static_config.SYMBOLS)


class Stack(str, Enum):
    """The web stacks the installer can provision."""

    LAMP = "LAMP"
    LEMP = "LEMP"

    @property
    def web_server(self) -> str:
        return "apache" if self is Stack.LAMP else "nginx"


class PhpTuningSettings(BaseModel):
    """php.ini values applied after PHP is installed."""

    enabled: bool = Field(default=False, description="Apply php.ini tuning after installing PHP.")
    memory_limit: str = Field(default="256M", description="php.ini memory_limit.")
    max_execution_time: int = Field(default=300, description="php.ini max_execution_time.")
    upload_max_filesize: str = Field(default="64M", description="php.ini upload_max_filesize and post_max_size.")
    opcache_memory_consumption: int = Field(default=128, description="opcache.memory_consumption.")
    opcache_max_accelerated_files: int = Field(default=10000, description="opcache.max_accelerated_files.")


class AppSettings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(env_prefix="LAMP_", extra="ignore")

    log_file: str = Field(default=static_config.LOG_FILE_DEFAULT, description="Append-only installer log file.")
    log_level: str = Field(default="INFO", description="Console log level.")

    backup_root: str = Field(default=static_config.BACKUP_ROOT_DEFAULT,
                             description="Directory under which timestamped backups are created.")
    backup_targets: Dict[str, str] = Field(default_factory=lambda: dict(static_config.BACKUP_TARGETS_DEFAULT),
                                           description="Subsystem name -> configuration directory to snapshot.")

    min_disk_mb: int = Field(default=static_config.MIN_DISK_MB_DEFAULT, description="Free disk space warning threshold.")
    min_memory_mb: int = Field(default=static_config.MIN_MEMORY_MB_DEFAULT, description="Total memory warning threshold.")
    supported_os: Dict[str, str] = Field(default_factory=lambda: dict(static_config.SUPPORTED_OS_MIN_VERSIONS),
                                         description="OS id -> minimum VERSION_ID.")
    os_release_path: str = Field(default="/etc/os-release", description="Location of the os-release file.")

    supported_php_versions: List[str] = Field(default_factory=lambda: list(static_config.SUPPORTED_PHP_VERSIONS),
                                              description="PHP versions accepted by the version validator.")
    php_tuning: PhpTuningSettings = Field(default_factory=PhpTuningSettings)

    enable_firewall: bool = Field(default=False, description="Configure ufw (deny incoming, allow ssh/http/https).")
    send_completion_email: bool = Field(default=False, description="Mail a completion notice to admin_email.")
    admin_email: Optional[str] = Field(default=None, description="Recipient of completion notices.")
    run_post_install: bool = Field(default=False, description="Run the post-install tasks after a successful install.")

    phpmyadmin_download_url: str = Field(default=static_config.PHPMYADMIN_DOWNLOAD_URL_DEFAULT,
                                         description="Source tarball for phpMyAdmin.")
    composer_installer_url: str = Field(default=static_config.COMPOSER_INSTALLER_URL_DEFAULT)
    composer_signature_url: str = Field(default=static_config.COMPOSER_SIGNATURE_URL_DEFAULT)
    download_timeout: int = Field(default=120, description="Timeout in seconds for remote downloads.")

    connectivity_hosts: List[str] = Field(default_factory=lambda: list(static_config.CONNECTIVITY_HOSTS_DEFAULT))
    cleanup_ports: List[int] = Field(default_factory=lambda: list(static_config.CLEANUP_PORTS_DEFAULT))

    service_restart_attempts: int = Field(default=static_config.SERVICE_RESTART_ATTEMPTS_DEFAULT, ge=1)
    service_restart_delay: float = Field(default=static_config.SERVICE_RESTART_DELAY_DEFAULT, ge=0)

    web_root: str = Field(default=static_config.WEB_ROOT_DEFAULT, description="Document root of the default site.")

    # Static symbols, could also be loaded from a separate static config if preferred
    symbols: Dict[str, str] = Field(default_factory=lambda: dict(SYMBOLS_DEFAULT))


class InstallationRequest(BaseModel):
    """
    What the operator asked for, built once by the CLI or the prompts.

    Exactly one of ``stack`` and ``remove`` is set. ``mysql_password`` may be
    empty, in which case the orchestrator generates one.
    """

    stack: Optional[Stack] = None
    php_version: str = static_config.PHP_VERSION_DEFAULT
    mysql_password: str = Field(default="", repr=False)
    install_php: bool = True
    install_mysql: bool = True
    install_composer: bool = False
    install_supervisor: bool = False
    remove: bool = False

    @classmethod
    def for_settings(cls, app_settings: AppSettings, **values) -> "InstallationRequest":
        """Build a request whose PHP version is checked against ``app_settings``."""
        return cls.model_validate(
            values,
            context={"supported_php_versions": app_settings.supported_php_versions},
        )

    @field_validator("php_version")
    @classmethod
    def _check_php_version(cls, value: str, info: ValidationInfo) -> str:
        supported = (info.context or {}).get("supported_php_versions")
        return validate_php_version(value, supported)

    @model_validator(mode="after")
    def _check_action(self) -> "InstallationRequest":
        if self.remove and self.stack is not None:
            raise ValueError("A stack install and removal are mutually exclusive.")
        if not self.remove and self.stack is None:
            raise ValueError("Either a stack (LAMP or LEMP) or removal must be requested.")
        return self

    @property
    def install_admin_ui(self) -> bool:
        return self.install_php and self.install_mysql


class BackupSnapshot(BaseModel):
    """Pre-install copy of the subsystem configuration directories."""

    path: Path
    captured: Dict[str, Path] = Field(default_factory=dict)
    sources: Dict[str, Path] = Field(default_factory=dict)


class StepResult(BaseModel):
    """Outcome of one installer step."""

    name: str
    success: bool
    error: Optional[str] = None


class RequirementReport(BaseModel):
    """Outcome of the pre-flight host checks."""

    passed: bool
    reason: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
    os_id: Optional[str] = None
    os_version: Optional[str] = None
