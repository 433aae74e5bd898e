"""
Parameterized command templates.

A template is a list of argv tokens. Tokens may contain ``{field}``
placeholders naming one of ALLOWED_FIELDS; ``{{`` and ``}}`` produce
literal braces. Rendering never involves a shell, and every substituted
value is re-validated so user-supplied names cannot smuggle options or
shell syntax into a command.
"""

import re
from typing import Mapping, Sequence

from ..exceptions import ConfigurationError
from .validators import validate_hostname, validate_identifier, validate_port

ALLOWED_FIELDS = frozenset(
    {"container", "host", "port", "user", "database", "auth_db"}
)

_TOKEN = re.compile(r"\{\{|\}\}|\{([^{}]*)\}")


def _check_value(field: str, value: str) -> None:
    if field == "host":
        ok, error = validate_hostname(value) if value else (True, None)
    elif field == "port":
        ok, error = (
            validate_port(int(value)) if value.isdigit() else (False, "Port must be an integer")
        )
    else:
        ok, error = validate_identifier(value)

    if not ok:
        raise ConfigurationError(f"Invalid value for '{field}': {error}")


def template_fields(template: Sequence[str]) -> set[str]:
    """Get the placeholder names used by a template."""
    fields = set()
    for token in template:
        for match in _TOKEN.finditer(token):
            if match.group(1) is not None:
                fields.add(match.group(1))
    return fields


def check_template(template: Sequence[str]) -> None:
    """
    Check that a template only references allowed fields.

    Raises:
        ConfigurationError: If the template is empty or names an unknown field
    """
    if not template:
        raise ConfigurationError("Command template cannot be empty")

    unknown = template_fields(template) - ALLOWED_FIELDS
    if unknown:
        raise ConfigurationError(
            f"Command template uses unsupported fields: {', '.join(sorted(unknown))}"
        )


def render_command(template: Sequence[str], parameters: Mapping[str, str]) -> list[str]:
    """
    Render a command template into an argv list.

    Args:
        template: argv tokens with ``{field}`` placeholders
        parameters: Values for the placeholders

    Returns:
        The rendered argv list

    Raises:
        ConfigurationError: If a placeholder is not allowed, has no value,
            or its value fails validation
    """
    check_template(template)

    def substitute(match: re.Match) -> str:
        text = match.group(0)
        if text == "{{":
            return "{"
        if text == "}}":
            return "}"

        field = match.group(1)
        if field not in parameters:
            raise ConfigurationError(f"No value for template field '{field}'")

        value = str(parameters[field])
        _check_value(field, value)
        return value

    return [_TOKEN.sub(substitute, token) for token in template]
