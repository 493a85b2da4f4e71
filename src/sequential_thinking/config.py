"""
Sequential Thinking Configuration.

Configuration dataclass and environment variable support for the
thinking session engine. Values from sequential_thinking.json are
exported into these environment variables by services.config_loader
before the dataclass is built, so the environment always wins.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List
import os


# =============================================================================
# Default Values
# =============================================================================

DEFAULT_MAX_THOUGHTS = 100
DEFAULT_MAX_BRANCHES = 10
DEFAULT_SESSION_TIMEOUT_SECONDS = 3600
DEFAULT_MAX_SESSIONS = 100
DEFAULT_CLEANUP_INTERVAL_SECONDS = 300
DEFAULT_MAX_THOUGHT_LENGTH = 10000
DEFAULT_EXPORT_FORMAT = "structured"

# Beyond these the process risks unbounded memory growth
SANE_MAX_THOUGHTS = 100_000
SANE_MAX_BRANCHES = 10_000
SANE_MAX_SESSIONS = 100_000


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value.lower() in ("true", "1", "yes")


@dataclass
class ThinkingConfig:
    """Configuration for the thinking session engine.

    Supports environment variables:
    - SEQTHINK_MAX_THOUGHTS: Thoughts per session across all sequences (default: 100)
    - SEQTHINK_MAX_BRANCHES: Branches per session (default: 10)
    - SEQTHINK_SESSION_TIMEOUT: Idle seconds before a session is evicted (default: 3600)
    - SEQTHINK_MAX_SESSIONS: Sessions held by the registry (default: 100)
    - SEQTHINK_CLEANUP_INTERVAL: Seconds between eviction sweeps (default: 300)
    - SEQTHINK_AUTO_CLEANUP: Run the eviction sweep in the background (default: true)
    - SEQTHINK_MAX_THOUGHT_LENGTH: Characters per thought (default: 10000)
    - SEQTHINK_THOUGHT_LOGGING: Render accepted thoughts to stderr (default: true)
    - SEQTHINK_EXPORT_FORMAT: Export format when none is given (default: structured)
    """

    # Limits enforced by the store and branch manager
    max_thoughts_per_session: int = field(
        default_factory=lambda: _env_int("SEQTHINK_MAX_THOUGHTS", DEFAULT_MAX_THOUGHTS))
    max_branches_per_session: int = field(
        default_factory=lambda: _env_int("SEQTHINK_MAX_BRANCHES", DEFAULT_MAX_BRANCHES))
    max_thought_length: int = field(
        default_factory=lambda: _env_int("SEQTHINK_MAX_THOUGHT_LENGTH", DEFAULT_MAX_THOUGHT_LENGTH))

    # Registry lifecycle
    session_timeout_seconds: int = field(
        default_factory=lambda: _env_int("SEQTHINK_SESSION_TIMEOUT", DEFAULT_SESSION_TIMEOUT_SECONDS))
    max_sessions: int = field(
        default_factory=lambda: _env_int("SEQTHINK_MAX_SESSIONS", DEFAULT_MAX_SESSIONS))
    cleanup_interval_seconds: int = field(
        default_factory=lambda: _env_int("SEQTHINK_CLEANUP_INTERVAL", DEFAULT_CLEANUP_INTERVAL_SECONDS))
    auto_cleanup: bool = field(
        default_factory=lambda: _env_bool("SEQTHINK_AUTO_CLEANUP", True))

    # Presentation
    enable_thought_logging: bool = field(
        default_factory=lambda: _env_bool("SEQTHINK_THOUGHT_LOGGING", True))
    default_export_format: str = field(
        default_factory=lambda: os.environ.get("SEQTHINK_EXPORT_FORMAT", DEFAULT_EXPORT_FORMAT))

    def validate(self) -> List[str]:
        """Validate configuration and return list of warnings."""
        warnings = []

        for name in ("max_thoughts_per_session", "max_branches_per_session",
                     "max_thought_length", "max_sessions", "session_timeout_seconds"):
            if getattr(self, name) < 1:
                warnings.append(f"{name}={getattr(self, name)} is not positive - nothing will be accepted")

        if self.max_thoughts_per_session > SANE_MAX_THOUGHTS:
            warnings.append(
                f"max_thoughts_per_session={self.max_thoughts_per_session} exceeds {SANE_MAX_THOUGHTS}, "
                "sessions may grow without practical bound"
            )
        if self.max_branches_per_session > SANE_MAX_BRANCHES:
            warnings.append(
                f"max_branches_per_session={self.max_branches_per_session} exceeds {SANE_MAX_BRANCHES}"
            )
        if self.max_sessions > SANE_MAX_SESSIONS:
            warnings.append(f"max_sessions={self.max_sessions} exceeds {SANE_MAX_SESSIONS}")

        if self.auto_cleanup and self.cleanup_interval_seconds < 1:
            warnings.append("cleanup_interval_seconds must be at least 1 when auto_cleanup is enabled")

        if self.default_export_format not in ("structured", "narrative"):
            warnings.append(f"Unknown default_export_format '{self.default_export_format}'")

        return warnings

    @classmethod
    def from_env(cls) -> "ThinkingConfig":
        """Create configuration from environment variables."""
        return cls()

    @classmethod
    def for_testing(cls, **overrides: Any) -> "ThinkingConfig":
        """Create configuration for tests: no background cleanup, no stderr thought rendering."""
        values = dict(
            max_thoughts_per_session=DEFAULT_MAX_THOUGHTS,
            max_branches_per_session=DEFAULT_MAX_BRANCHES,
            max_thought_length=DEFAULT_MAX_THOUGHT_LENGTH,
            session_timeout_seconds=DEFAULT_SESSION_TIMEOUT_SECONDS,
            max_sessions=DEFAULT_MAX_SESSIONS,
            cleanup_interval_seconds=DEFAULT_CLEANUP_INTERVAL_SECONDS,
            auto_cleanup=False,
            enable_thought_logging=False,
            default_export_format=DEFAULT_EXPORT_FORMAT,
        )
        values.update(overrides)
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "max_thoughts_per_session": self.max_thoughts_per_session,
            "max_branches_per_session": self.max_branches_per_session,
            "max_thought_length": self.max_thought_length,
            "session_timeout_seconds": self.session_timeout_seconds,
            "max_sessions": self.max_sessions,
            "cleanup_interval_seconds": self.cleanup_interval_seconds,
            "auto_cleanup": self.auto_cleanup,
            "enable_thought_logging": self.enable_thought_logging,
            "default_export_format": self.default_export_format,
        }
