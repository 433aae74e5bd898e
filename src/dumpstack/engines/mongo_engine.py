"""
MongoDB engine using mongodump archives.
"""

from typing import Optional

from dumpstack.models import ExecMode, ProviderType, TargetConfig

from .base_engine import BaseProviderEngine

# Runs inside the container. Parameters arrive as positional arguments so
# they are never parsed as shell syntax; the password is read from the
# forwarded MONGO_PASSWORD variable.
_MONGO_SCRIPT = (
    'tool="$0"; user="$1"; auth_db="$2"; db="$3"; shift 4; '
    'if [ -n "$user" ]; then '
    'set -- "$@" --username "$user" --password "$MONGO_PASSWORD" '
    '--authenticationDatabase "$auth_db"; fi; '
    'if [ -n "$db" ]; then set -- "$@" {db_flag}; fi; '
    'exec "$tool" --archive "$@"'
)


class MongoEngine(BaseProviderEngine):
    """
    Engine for MongoDB using mongodump/mongorestore.

    Produces .archive files. An empty database name dumps every database.
    Only docker mode is supported.
    """

    supported_modes = (ExecMode.DOCKER,)
    default_port = 27017

    @property
    def engine_type(self) -> ProviderType:
        return ProviderType.MONGO

    @property
    def file_extension(self) -> str:
        return "archive"

    @property
    def credential_env(self) -> Optional[str]:
        return "MONGO_PASSWORD"

    def _script_command(self, tool: str, db_flag: str, extra: list[str]) -> list[str]:
        # Braces are doubled because the script is itself a template token
        script = _MONGO_SCRIPT.replace("{db_flag}", db_flag)
        script = script.replace("{", "{{").replace("}", "}}")
        return ["sh", "-c", script, tool, "{user}", "{auth_db}", "{database}", "--", *extra]

    def dump_command(self, target: TargetConfig) -> list[str]:
        return self._script_command("mongodump", '--db "$db"', [])

    def restore_command(self, target: TargetConfig) -> list[str]:
        return self._script_command(
            "mongorestore", '--nsInclude "$db.*"', ["--drop"]
        )
