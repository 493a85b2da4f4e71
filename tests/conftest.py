"""
Shared pytest fixtures for sequential thinking server tests.

This module provides common fixtures used across multiple test modules,
eliminating duplicate fixture definitions and ensuring consistency.
"""

import os

# Keep test runs from writing .sequential_thinking/debug_trace.log
os.environ.setdefault("SEQTHINK_DEBUG_LOG", "")

import pytest

from sequential_thinking.config import ThinkingConfig
from sequential_thinking.models import ThoughtInput
from sequential_thinking.services.tool_registrar import ThinkingToolsRegistrar
from sequential_thinking.thinking.record import ThoughtRecord
from sequential_thinking.thinking.registry import SessionRegistry
from sequential_thinking.thinking.service import ThinkingService
from sequential_thinking.thinking.session import ThinkingSession


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_record(number, total=5, text=None, continues=True, **kwargs):
    """Build a ThoughtRecord with sensible defaults."""
    return ThoughtRecord(
        text=text if text is not None else f"Thought {number}",
        number=number,
        declared_total=total,
        continues=continues,
        **kwargs
    )


def make_input(number, total=5, text=None, next_needed=True, **kwargs):
    """Build a ThoughtInput with sensible defaults."""
    return ThoughtInput(
        thought=text if text is not None else f"Thought {number}",
        thought_number=number,
        total_thoughts=total,
        next_thought_needed=next_needed,
        **kwargs
    )


@pytest.fixture
def clock():
    """A FakeClock shared by the registry and its sessions."""
    return FakeClock()


@pytest.fixture
def config():
    """
    Test configuration: default limits, no background cleanup,
    no stderr thought rendering.
    """
    return ThinkingConfig.for_testing()


@pytest.fixture
def registry(config, clock):
    """
    Create a SessionRegistry driven by the fake clock.

    Yields:
        SessionRegistry: Registry with auto cleanup stopped on teardown.
    """
    registry = SessionRegistry(config, clock=clock)
    yield registry
    registry.stop_auto_cleanup()


@pytest.fixture
def service(registry, config):
    """ThinkingService over the test registry."""
    return ThinkingService(registry, config)


@pytest.fixture
def session(config, clock):
    """A standalone ThinkingSession (not registered)."""
    return ThinkingSession(config, title="Test session", clock=clock)


@pytest.fixture
def registrar(service):
    """ThinkingToolsRegistrar over the test service."""
    return ThinkingToolsRegistrar(service)
