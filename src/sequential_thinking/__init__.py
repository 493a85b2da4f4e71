"""
Sequential Thinking - MCP server for revisable, branchable thinking sessions

Records numbered reasoning steps that can be revised, forked into branches,
merged across sessions, analyzed and exported.
"""

__version__ = "0.1.0"

from .config import ThinkingConfig
from .exceptions import ThinkingError
from .models import ThoughtInput
from .thinking.registry import SessionRegistry
from .thinking.service import ThinkingService

__all__ = [
    "ThinkingConfig",
    "ThinkingError",
    "ThoughtInput",
    "SessionRegistry",
    "ThinkingService",
]
