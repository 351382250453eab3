"""Utility modules for Fire Config MCP."""

from fireconfig_mcp.utils.logging_config import get_logger, setup_logging
from fireconfig_mcp.utils.remote_config_client import (
    REMOTE_CONFIG_URL,
    RemoteConfigClient,
    RemoteConfigError,
)

__all__ = [
    "REMOTE_CONFIG_URL",
    "RemoteConfigClient",
    "RemoteConfigError",
    "get_logger",
    "setup_logging",
]
