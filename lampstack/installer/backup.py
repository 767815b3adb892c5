# lampstack/installer/backup.py
# -*- coding: utf-8 -*-
"""
Pre-install configuration snapshot.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Optional

from lampstack.common.command_utils import get_symbols, log_installer
from lampstack.common.file_utils import copy_directory
from lampstack.setup import config as static_config
from lampstack.setup.config_models import AppSettings, BackupSnapshot

module_logger = logging.getLogger(__name__)


def _unique_backup_dir(root: Path, stamp: str) -> Path:
    candidate = root / f"{static_config.BACKUP_DIR_PREFIX}-{stamp}"
    suffix = 1
    while candidate.exists():
        candidate = root / f"{static_config.BACKUP_DIR_PREFIX}-{stamp}-{suffix}"
        suffix += 1
    return candidate


def create_backup(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    now: Callable[[], datetime] = datetime.now,
) -> BackupSnapshot:
    """
    Copy every configured configuration directory that exists into a new
    timestamped directory under ``app_settings.backup_root``.

    Missing source directories are skipped without error.

    Raises:
        OSError: If the backup directory cannot be created or a copy fails.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    backup_dir = _unique_backup_dir(
        Path(app_settings.backup_root), now().strftime("%Y%m%d-%H%M%S")
    )
    backup_dir.mkdir(parents=True)
    log_installer(
        f"{symbols.get('info', 'ℹ️')} Creating backup in {backup_dir}",
        "info",
        logger_to_use,
        app_settings,
    )

    captured: Dict[str, Path] = {}
    sources: Dict[str, Path] = {}
    for subsystem, source in app_settings.backup_targets.items():
        source_path = Path(source)
        sources[subsystem] = source_path
        if not source_path.is_dir():
            log_installer(
                f"{source_path} not present, nothing to back up for {subsystem}",
                "debug",
                logger_to_use,
                app_settings,
            )
            continue
        captured[subsystem] = copy_directory(source_path, backup_dir / subsystem)
        log_installer(
            f"Backed up {source_path}", "debug", logger_to_use, app_settings
        )

    log_installer(
        f"{symbols.get('success', '✅')} Backup created ({', '.join(captured) or 'no existing configuration'})",
        "success",
        logger_to_use,
        app_settings,
    )
    return BackupSnapshot(path=backup_dir, captured=captured, sources=sources)
