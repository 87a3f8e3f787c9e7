"""Shared fixtures for the Ponder test-suite."""

from typing import (
    Callable,
    Iterable,
    Union,
)

import pytest

from ponder.agent.gateway import ScriptedGateway
from ponder.agent.orchestrator import Orchestrator
from ponder.memory.memory_store import InMemoryStore
from ponder.tools import ToolRegistry
from ponder.tools.builtin import default_registry


@pytest.fixture
def memory() -> InMemoryStore:
    """Fresh, empty conversation memory."""
    return InMemoryStore()


@pytest.fixture
def tools() -> ToolRegistry:
    """Registry with the built-in calculator and echo tools."""
    return default_registry(timeout=5.0)


@pytest.fixture
def make_agent(
    tools: ToolRegistry, memory: InMemoryStore
) -> Callable[..., tuple[Orchestrator, ScriptedGateway]]:
    """Build an orchestrator around a scripted gateway."""

    def factory(
        script: Iterable[Union[str, Exception]], max_iterations: int = 5, **kwargs
    ) -> tuple[Orchestrator, ScriptedGateway]:
        gateway = ScriptedGateway(script)
        agent = Orchestrator(
            gateway,
            kwargs.pop("registry", tools),
            memory,
            max_iterations=max_iterations,
            **kwargs,
        )
        return agent, gateway

    return factory
