"""
Server-side services: configuration loading and MCP tool registration.
"""

from .config_loader import ConfigLoader, get_config_loader, load_config
from .tool_registrar import ThinkingToolsRegistrar

__all__ = [
    "ConfigLoader",
    "get_config_loader",
    "load_config",
    "ThinkingToolsRegistrar",
]
