# lampstack/common/exceptions.py
"""
Exception hierarchy for the stack installer.

Installer steps raise these; the orchestrator is the only place that turns
them into an abort, a rollback and a process exit code.
"""


class InstallerError(Exception):
    """Base class for all installer errors."""


class RequirementError(InstallerError):
    """The host does not satisfy a fatal requirement (privilege, OS, version)."""


class InvalidPhpVersionError(InstallerError, ValueError):
    """The requested PHP version is not in the supported set."""


class WeakPasswordError(InstallerError, ValueError):
    """The MySQL root password does not meet the minimum length."""


class StepFailedError(InstallerError):
    """An installer step hit a failed sub-operation."""

    def __init__(self, step: str, message: str):
        super().__init__(message)
        self.step = step
        self.message = message

    def __str__(self) -> str:
        return f"[{self.step}] {self.message}"


class InstallationInterrupted(InstallerError):
    """A termination signal arrived while the host was being mutated."""

    def __init__(self, signum: int):
        super().__init__(f"Installation interrupted by signal {signum}")
        self.signum = signum
