"""Configuration management for the WebDriver client."""

from .environment import (
    get_env_config,
    parse_fix_session_capabilities,
    server_url,
)

__all__ = [
    "get_env_config",
    "parse_fix_session_capabilities",
    "server_url",
]
