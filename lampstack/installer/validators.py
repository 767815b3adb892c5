# lampstack/installer/validators.py
"""
Input validators for installation requests.

Both validators are pure: they inspect a value and either return a verdict or
raise, without touching the host.
"""

import secrets
import string
from typing import Iterable, List, Optional

from lampstack.common.exceptions import (
    InvalidPhpVersionError,
    WeakPasswordError,
)
from lampstack.setup import config as static_config

PASSWORD_SYMBOLS = "!@#%^*-_=+?"

CHARACTER_CLASSES = {
    "uppercase letter": string.ascii_uppercase,
    "lowercase letter": string.ascii_lowercase,
    "digit": string.digits,
}


def validate_php_version(
    version: str, supported: Optional[Iterable[str]] = None
) -> str:
    """
    Check a PHP version string against the supported set.

    Args:
        version: The requested version, e.g. "8.2".
        supported: The allowed versions. Defaults to SUPPORTED_PHP_VERSIONS.

    Returns:
        The version, stripped of surrounding whitespace.

    Raises:
        InvalidPhpVersionError: If the version is not supported.
    """
    allowed = tuple(supported or static_config.SUPPORTED_PHP_VERSIONS)
    candidate = version.strip() if isinstance(version, str) else version
    if candidate not in allowed:
        raise InvalidPhpVersionError(
            f"Unsupported PHP version '{version}'. "
            f"Supported versions: {', '.join(allowed)}"
        )
    return candidate


def missing_character_classes(password: str) -> List[str]:
    """Return the names of the character classes absent from a password."""
    missing = [
        name
        for name, alphabet in CHARACTER_CLASSES.items()
        if not any(ch in alphabet for ch in password)
    ]
    if not any(not ch.isalnum() for ch in password):
        missing.append("symbol")
    return missing


def check_password_strength(
    password: str,
    min_length: int = static_config.PASSWORD_MIN_LENGTH,
) -> List[str]:
    """
    Apply the MySQL root password policy.

    A password shorter than ``min_length`` is rejected. A long enough password
    that lacks one of the four character classes is accepted, and a single
    warning naming the missing classes is returned.

    Returns:
        The list of warnings (empty for a fully compliant password).

    Raises:
        WeakPasswordError: If the password is too short.
    """
    if len(password) < min_length:
        raise WeakPasswordError(
            f"Password must be at least {min_length} characters long "
            f"(got {len(password)})."
        )
    missing = missing_character_classes(password)
    if missing:
        return [
            "Password is accepted but weak; it has no "
            + ", no ".join(missing)
            + "."
        ]
    return []


def generate_secure_password(
    length: int = static_config.GENERATED_PASSWORD_LENGTH,
) -> str:
    """Generate a random password that always satisfies the password policy."""
    if length < 4:
        raise ValueError("Generated passwords need room for four character classes")
    pools = list(CHARACTER_CLASSES.values()) + [PASSWORD_SYMBOLS]
    alphabet = "".join(pools)
    chars = [secrets.choice(pool) for pool in pools]
    chars += [secrets.choice(alphabet) for _ in range(length - len(chars))]
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)
