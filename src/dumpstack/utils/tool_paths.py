"""
External tool path resolver.

Resolves the executables that provider commands invoke (docker, pg_dump,
mysqldump, redis-cli, vault, ...).

A tools directory (BACKUP_TOOLS_DIR) is searched first so deployments can
pin client versions; otherwise tools are looked up on the system PATH.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def get_tool_path(tool_name: str, tools_dir: Optional[Path] = None) -> Optional[str]:
    """
    Get the full path to an external tool.

    Args:
        tool_name: Name of the tool (e.g., "docker", "pg_dump") or a path
        tools_dir: Optional directory searched before PATH

    Returns:
        Full path to the tool, or None if it cannot be found.
    """
    if os.sep in tool_name:
        # Explicit path, use as-is if executable
        if os.path.isfile(tool_name) and os.access(tool_name, os.X_OK):
            return tool_name
        return None

    if tools_dir:
        tool_path = os.path.join(str(tools_dir), tool_name)
        if os.path.isfile(tool_path) and os.access(tool_path, os.X_OK):
            logger.debug(f"Using bundled tool: {tool_path}")
            return tool_path
        logger.debug(f"Bundled tool not found/executable: {tool_path}, falling back to PATH")

    # Fall back to system PATH
    return shutil.which(tool_name)
