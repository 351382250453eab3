"""
Logging configuration for the Fire Config MCP server.

IMPORTANT: Logs always go to stderr. In STDIO mode stdout carries the
JSON-RPC stream and any stray output corrupts the MCP protocol.
"""

import logging
import sys

PACKAGE_LOGGER = "fireconfig_mcp"


def setup_logging(level: int | str = logging.INFO) -> logging.Logger:
    """
    Configure the package logger to write to stderr.
    
    Calling it again only changes the level, so the server module can set
    up logging at import time and main() can apply --log-level later.
    
    Args:
        level: Logging level as an int or a name like "DEBUG" (default: INFO)
    
    Returns:
        Configured package logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger
    
    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(level)
    logger.addHandler(handler)
    
    # Keep records out of the root logger (uvicorn configures it too)
    logger.propagate = False
    
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger for a specific module.
    
    Args:
        name: Module name (e.g., "tools.remote_config")
    
    Returns:
        Logger instance
    
    Example:
        logger = get_logger("registry")
        logger.info("Loading Firebase config for env: dev")
    """
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")
