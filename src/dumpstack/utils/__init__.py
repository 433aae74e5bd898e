"""Utility functions for Dumpstack."""

from .validators import (
    validate_env_name,
    validate_hostname,
    validate_identifier,
    validate_port,
    validate_provider_name,
)
from .templates import ALLOWED_FIELDS, render_command, template_fields
from .tool_paths import get_tool_path

__all__ = [
    "validate_env_name",
    "validate_hostname",
    "validate_identifier",
    "validate_port",
    "validate_provider_name",
    "ALLOWED_FIELDS",
    "render_command",
    "template_fields",
    "get_tool_path",
]
