"""
Validation utilities for Dumpstack.

Values checked here end up as arguments of external commands or as parts
of artifact filenames, so the accepted alphabets are deliberately narrow.
"""

import ipaddress
import re
from typing import Optional

_PROVIDER_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")
_IDENTIFIER = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.$-]*$")
_ENV_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_HOST_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")


def validate_provider_name(name: str) -> tuple[bool, Optional[str]]:
    """
    Validate a provider name.

    Provider names become the prefix of artifact filenames.

    Args:
        name: Provider name to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not name or not name.strip():
        return False, "Provider name cannot be empty"

    if len(name) > 64:
        return False, "Provider name cannot exceed 64 characters"

    if not _PROVIDER_NAME.match(name):
        return False, (
            "Provider name must start with a letter or digit and contain only "
            "letters, digits, dots, underscores and hyphens"
        )

    if name.lower() == "all":
        return False, "'all' is reserved for sweeps"

    return True, None


def validate_identifier(value: str) -> tuple[bool, Optional[str]]:
    """
    Validate a container, user, database or auth database name.

    Empty values are allowed (optional parameters). A leading hyphen is
    rejected so a value can never be read as a command-line option.

    Args:
        value: Identifier to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value == "":
        return True, None

    if len(value) > 128:
        return False, "Identifier cannot exceed 128 characters"

    if not _IDENTIFIER.match(value):
        return False, (
            f"'{value}' must start with a letter, digit or underscore and "
            "contain only letters, digits, dots, underscores, hyphens and '$'"
        )

    return True, None


def validate_env_name(name: str) -> tuple[bool, Optional[str]]:
    """Validate an environment variable name."""
    if not name:
        return True, None

    if not _ENV_NAME.match(name):
        return False, f"'{name}' is not a valid environment variable name"

    return True, None


def validate_port(port: int) -> tuple[bool, Optional[str]]:
    """Validate a TCP port number (1-65535)."""
    if isinstance(port, bool) or not isinstance(port, int):
        return False, "Port must be an integer"

    if not 1 <= port <= 65535:
        return False, "Port must be between 1 and 65535"

    return True, None


def validate_hostname(hostname: str) -> tuple[bool, Optional[str]]:
    """
    Validate a hostname or IP address for network-mode targets.

    Args:
        hostname: DNS name, IPv4 or IPv6 address

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not hostname or hostname != hostname.strip():
        return False, "Hostname cannot be empty or padded with whitespace"

    try:
        ipaddress.ip_address(hostname)
        return True, None
    except ValueError:
        pass

    if len(hostname) > 253:
        return False, "Hostname cannot exceed 253 characters"

    labels = hostname.rstrip(".").split(".")
    if labels[-1].isdigit():
        return False, f"'{hostname}' is not a valid IP address"
    if not all(_HOST_LABEL.match(label) for label in labels):
        return False, f"'{hostname}' is not a valid hostname"

    return True, None
