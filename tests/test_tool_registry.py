"""
Sanity tests for the tool registry and the built-in tools.

Run with:
$ pytest -q
"""

import asyncio

import pytest

from ponder.core.errors import ToolExecutionError
from ponder.core.schema import (
    ExecutionFailed,
    ToolNotFound,
    ToolOk,
)
from ponder.tools import (
    FunctionTool,
    Tool,
    ToolRegistry,
    tool,
)
from ponder.tools.builtin import (
    calculator,
    default_registry,
    echo,
)


@tool("broken")
def _broken(text: str) -> str:
    """Always fails (used only for tests)."""
    raise ToolExecutionError(f"cannot handle {text!r}")


@tool("crashing")
def _crashing(text: str) -> str:
    """Raises an unexpected error (used only for tests)."""
    raise ValueError("boom")


@tool("slow")
async def _slow(text: str) -> str:
    """Takes far too long (used only for tests)."""
    await asyncio.sleep(5)
    return text


@tool("answer")
def _answer(text: str) -> int:
    """Returns a non-string value (used only for tests)."""
    return 42


@pytest.mark.asyncio
async def test_execute_tool_success(tools: ToolRegistry) -> None:
    """Registry should return ToolOk with the tool's output."""
    outcome = await tools.execute("calculator", "15*7")
    assert outcome == ToolOk(tool_name="calculator", output="105")
    assert outcome.observation == "105"


@pytest.mark.asyncio
async def test_execute_tool_missing(tools: ToolRegistry) -> None:
    """An unknown name is reported as ToolNotFound, not raised."""
    outcome = await tools.execute("not_a_tool", "x")
    assert isinstance(outcome, ToolNotFound)
    assert "not_a_tool" in outcome.observation
    assert "calculator" in outcome.observation


@pytest.mark.asyncio
async def test_execute_tool_domain_failure() -> None:
    """ToolExecutionError becomes ExecutionFailed with its message."""
    registry = ToolRegistry()
    registry.register(_broken)
    outcome = await registry.execute("broken", "abc")
    assert isinstance(outcome, ExecutionFailed)
    assert outcome.detail == "cannot handle 'abc'"


@pytest.mark.asyncio
async def test_execute_tool_unexpected_exception() -> None:
    """Any other exception is also captured as ExecutionFailed."""
    registry = ToolRegistry()
    registry.register(_crashing)
    outcome = await registry.execute("crashing", "")
    assert isinstance(outcome, ExecutionFailed)
    assert "ValueError" in outcome.detail


@pytest.mark.asyncio
async def test_execute_tool_timeout() -> None:
    """A tool exceeding the registry timeout fails instead of hanging."""
    registry = ToolRegistry(timeout=0.05)
    registry.register(_slow)
    outcome = await registry.execute("slow", "x")
    assert isinstance(outcome, ExecutionFailed)
    assert "timed out" in outcome.detail


@pytest.mark.asyncio
async def test_non_string_results_are_coerced() -> None:
    """Tool results always reach the model as text."""
    registry = ToolRegistry()
    registry.register(_answer)
    assert await registry.execute("answer", "") == ToolOk(tool_name="answer", output="42")


@pytest.mark.asyncio
async def test_sync_function_returning_awaitable_is_awaited() -> None:
    """A plain callable that hands back a coroutine yields the coroutine's result."""

    async def _shout(text: str) -> str:
        return text.upper()

    registry = ToolRegistry()
    registry.register(FunctionTool("shout", "Upper-case the input.", lambda text: _shout(text)))
    assert await registry.execute("shout", "hi") == ToolOk(tool_name="shout", output="HI")


@pytest.mark.asyncio
async def test_empty_input_reaches_tool_unmodified(tools: ToolRegistry) -> None:
    """Input validation is the tool's business."""
    assert await tools.execute("echo", "") == ToolOk(tool_name="echo", output="")
    assert await tools.execute("echo", "  ") == ToolOk(tool_name="echo", output="  ")


def test_duplicate_registration_rejected(tools: ToolRegistry) -> None:
    """Names are unique within one registry."""
    with pytest.raises(ValueError, match="already registered"):
        tools.register(FunctionTool("echo", "Another echo.", lambda text: text))


def test_manifest_is_registration_ordered() -> None:
    """One 'name: description' line per tool, in registration order."""
    registry = ToolRegistry()
    registry.register(echo)
    registry.register(calculator)
    lines = registry.manifest().splitlines()
    assert lines[0] == "echo: Echo the input text back to the caller."
    assert lines[1].startswith("calculator: Evaluate an arithmetic expression")
    assert registry.names() == ("echo", "calculator")
    assert "echo" in registry and len(registry) == 2


def test_multiline_docstring_gives_single_manifest_line() -> None:
    """A docstring spanning several lines is folded into one manifest entry."""

    @tool("lookup")
    def _lookup(term: str) -> str:
        """Look up a term.

        Pass the bare term, e.g. lookup[python].
        """
        return term

    registry = ToolRegistry()
    registry.register(_lookup)
    assert registry.manifest().splitlines() == [
        "lookup: Look up a term. Pass the bare term, e.g. lookup[python]."
    ]


def test_descriptor_requires_description() -> None:
    """A tool without usage text can't be created."""
    with pytest.raises(ValueError):
        FunctionTool("mute", "   ", lambda text: text)

    with pytest.raises(ValueError):

        @tool("undocumented")
        def _undocumented(text: str) -> str:
            return text


def test_descriptor_rejects_bracketed_names() -> None:
    """Names the action grammar could not express are rejected."""
    with pytest.raises(ValueError):
        FunctionTool("bad[name]", "Has brackets.", lambda text: text)


def test_function_tool_satisfies_protocol() -> None:
    """FunctionTool is usable wherever a Tool is expected."""
    assert isinstance(echo, Tool)


@pytest.mark.parametrize(
    ("expression", "expected"),
    [("15*7", "105"), ("(2+3)**2", "25"), ("7/2", "3.5"), ("10/2", "5"), ("-3 + 1", "-2")],
)
@pytest.mark.asyncio
async def test_calculator_evaluates(tools: ToolRegistry, expression: str, expected: str) -> None:
    """The calculator handles ordinary arithmetic."""
    assert await tools.execute("calculator", expression) == ToolOk(
        tool_name="calculator", output=expected
    )


@pytest.mark.parametrize(
    ("expression", "detail"),
    [
        ("1/0", "division by zero"),
        ("__import__('os')", "unsupported"),
        ("2**100000", "too large"),
        ("(10**1000)*(10**1000)", "too large"),
        ("15 *", "invalid expression"),
        ("", "empty expression"),
    ],
)
@pytest.mark.asyncio
async def test_calculator_rejects(tools: ToolRegistry, expression: str, detail: str) -> None:
    """Bad expressions come back as ExecutionFailed, never as raised errors."""
    outcome = await tools.execute("calculator", expression)
    assert isinstance(outcome, ExecutionFailed)
    assert detail in outcome.detail


@pytest.mark.asyncio
async def test_calculator_refuses_nested_powers_before_computing() -> None:
    """Stacked exponents are rejected up front instead of running into the tool timeout."""
    registry = default_registry(timeout=0.5)
    outcome = await registry.execute("calculator", "((9**999)**999)**60")
    assert isinstance(outcome, ExecutionFailed)
    assert "too large" in outcome.detail
