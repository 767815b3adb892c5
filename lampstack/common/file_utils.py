# lampstack/common/file_utils.py
# -*- coding: utf-8 -*-
"""
File system utility functions: directory copies for backup and restore,
recursive removal, config file writes and temp-file cleanup.
"""

import glob
import logging
import os
import shutil
from pathlib import Path
from typing import Iterable, List, Optional, Union

from lampstack.common.command_utils import get_symbols, log_installer
from lampstack.setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def copy_directory(source: PathLike, destination: PathLike) -> Path:
    """
    Recursively copy ``source`` to ``destination``, preserving symlinks and
    metadata. ``destination`` must not exist yet.
    """
    return Path(shutil.copytree(source, destination, symlinks=True))


def replace_directory(source: PathLike, target: PathLike) -> None:
    """
    Make ``target`` an exact copy of ``source``: the current ``target`` tree is
    removed first, then ``source`` is copied into its place.
    """
    target_path = Path(target)
    if target_path.is_symlink() or target_path.is_file():
        target_path.unlink()
    elif target_path.exists():
        shutil.rmtree(target_path)
    target_path.parent.mkdir(parents=True, exist_ok=True)
    copy_directory(source, target_path)


def remove_paths(
    paths: Iterable[PathLike],
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> List[Path]:
    """
    ``rm -rf`` each path that exists; missing paths are ignored.

    Returns:
        The paths that were actually removed.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    removed: List[Path] = []
    for raw_path in paths:
        path = Path(raw_path)
        try:
            if path.is_symlink() or path.is_file():
                path.unlink()
            elif path.is_dir():
                shutil.rmtree(path)
            else:
                continue
            removed.append(path)
            log_installer(f"Removed {path}", "debug", logger_to_use, app_settings)
        except OSError as e:
            log_installer(
                f"{symbols.get('warning', '!')} Could not remove {path}: {e}",
                "warning",
                logger_to_use,
                app_settings,
            )
    return removed


def write_file(
    path: PathLike,
    content: str,
    mode: int = 0o644,
    owner: Optional[str] = None,
) -> Path:
    """
    Write ``content`` atomically (temp file + rename) and apply mode/owner.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    temp_path = target.with_name(f".{target.name}.tmp")
    temp_path.write_text(content, encoding="utf-8")
    os.chmod(temp_path, mode)
    if owner:
        shutil.chown(temp_path, user=owner, group=owner)
    os.replace(temp_path, target)
    return target


def cleanup_temp_files(
    patterns: Iterable[str],
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> List[Path]:
    """Remove temporary downloads matching any of the glob ``patterns``."""
    logger_to_use = current_logger if current_logger else module_logger
    log_installer(
        f"{get_symbols(app_settings).get('info', 'ℹ️')} Cleaning up temporary files...",
        "info",
        logger_to_use,
        app_settings,
    )
    matches = [match for pattern in patterns for match in glob.glob(pattern)]
    return remove_paths(matches, app_settings, logger_to_use)
