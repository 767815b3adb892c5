# lampstack/installer/rollback.py
# -*- coding: utf-8 -*-
"""
Restore of the pre-install configuration snapshot, and the signal guard that
turns termination signals during the mutating phase into an exception.
"""

import logging
import signal
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional, Sequence

from lampstack.common.command_utils import get_symbols, log_installer
from lampstack.common.exceptions import InstallationInterrupted
from lampstack.common.file_utils import replace_directory
from lampstack.setup.config_models import AppSettings, BackupSnapshot

module_logger = logging.getLogger(__name__)

GUARDED_SIGNALS = (signal.SIGTERM, signal.SIGHUP)


class RollbackHandler:
    """
    Copies the snapshot of each captured subsystem back over its live
    configuration directory.

    The handler fires at most once; later calls return the first outcome.
    """

    def __init__(
        self,
        snapshot: BackupSnapshot,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        self.snapshot = snapshot
        self.app_settings = app_settings
        self.logger = logger or module_logger
        self._outcome: Optional[Dict[str, bool]] = None

    @property
    def fired(self) -> bool:
        return self._outcome is not None

    def rollback(self) -> Dict[str, bool]:
        """
        Restore every subsystem whose snapshot directory is still present.

        Returns:
            Subsystem name -> restored. Subsystems without a snapshot are not
            listed. A failed restore is logged and does not stop the others.
        """
        if self._outcome is not None:
            self.logger.debug("Rollback already performed; skipping.")
            return self._outcome

        symbols = get_symbols(self.app_settings)
        log_installer(
            f"{symbols.get('warning', '!')} Rolling back to the backup in {self.snapshot.path}",
            "warning",
            self.logger,
            self.app_settings,
        )

        # Fired from here on; a nested call returns the partial outcome.
        outcome: Dict[str, bool] = {}
        self._outcome = outcome
        for subsystem, snapshot_path in self.snapshot.captured.items():
            snapshot_path = Path(snapshot_path)
            if not snapshot_path.is_dir():
                log_installer(
                    f"{symbols.get('warning', '!')} No snapshot for {subsystem} at {snapshot_path}; skipping.",
                    "warning",
                    self.logger,
                    self.app_settings,
                )
                continue
            target = self.snapshot.sources.get(
                subsystem,
                Path(self.app_settings.backup_targets.get(subsystem, "")),
            )
            if not str(target) or str(target) == ".":
                log_installer(
                    f"{symbols.get('warning', '!')} Unknown restore location for {subsystem}; skipping.",
                    "warning",
                    self.logger,
                    self.app_settings,
                )
                continue
            try:
                replace_directory(snapshot_path, target)
                outcome[subsystem] = True
                log_installer(
                    f"Restored {target} from {snapshot_path}",
                    "info",
                    self.logger,
                    self.app_settings,
                )
            except OSError as e:
                outcome[subsystem] = False
                log_installer(
                    f"{symbols.get('error', '❌')} Failed to restore {subsystem}: {e}",
                    "error",
                    self.logger,
                    self.app_settings,
                )

        if all(outcome.values()):
            log_installer(
                f"{symbols.get('success', '✅')} Rollback completed",
                "success",
                self.logger,
                self.app_settings,
            )
        else:
            failed = [name for name, ok in outcome.items() if not ok]
            log_installer(
                f"{symbols.get('warning', '!')} Rollback finished; could not restore: {', '.join(failed)}",
                "warning",
                self.logger,
                self.app_settings,
            )
        return outcome


def _raise_interrupted(signum, frame):
    raise InstallationInterrupted(signum)


@contextmanager
def interrupt_guard(
    signals: Sequence[int] = GUARDED_SIGNALS,
) -> Iterator[None]:
    """
    Within the block, the given signals raise InstallationInterrupted.
    The previous handlers are restored on exit.
    """
    previous = {}
    for signum in signals:
        previous[signum] = signal.signal(signum, _raise_interrupted)
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)
