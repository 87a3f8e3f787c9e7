"""
Tool registry for Ponder.

A tool is anything with a :class:`~ponder.core.schema.ToolDescriptor` and an async ``run`` method
taking one string.  :class:`FunctionTool` adapts plain (sync or async) functions, and the
:func:`tool` decorator builds one from a function and its docstring.

:meth:`ToolRegistry.execute` never raises for a failing tool.  A missing name, an exception inside
the tool or a timeout all come back as outcome values, which the orchestrator feeds to the model
as observations.
"""

import asyncio
import inspect
import logging
from typing import (
    Awaitable,
    Callable,
    Dict,
    Protocol,
    Tuple,
    Union,
    runtime_checkable,
)

from ponder.config import settings
from ponder.core.errors import ToolExecutionError
from ponder.core.schema import (
    ExecutionFailed,
    ToolDescriptor,
    ToolNotFound,
    ToolOk,
    ToolOutcome,
)

logger = logging.getLogger(__name__)

ToolFn = Callable[[str], Union[str, Awaitable[str]]]


@runtime_checkable
class Tool(Protocol):
    """Named, described, invokable capability."""

    descriptor: ToolDescriptor

    async def run(self, tool_input: str) -> str:
        """Run the tool on model-generated text; raise ToolExecutionError on failure."""


class FunctionTool:
    """Wrap a one-argument function as a :class:`Tool`.

    Synchronous functions run in a worker thread so they don't block the event loop.
    """

    def __init__(self, name: str, description: str, fn: ToolFn):
        self.descriptor = ToolDescriptor(name=name, description=description)
        self._fn = fn

    async def run(self, tool_input: str) -> str:
        if inspect.iscoroutinefunction(self._fn):
            result = await self._fn(tool_input)
        else:
            result = await asyncio.to_thread(self._fn, tool_input)
        if inspect.isawaitable(result):
            result = await result
        return result if isinstance(result, str) else str(result)

    def __repr__(self) -> str:
        return f"FunctionTool({self.descriptor.name!r})"


def tool(name: str, description: str | None = None) -> Callable[[ToolFn], FunctionTool]:
    """
    Turn a function into a :class:`FunctionTool`.

    Used as a decorator:
        @tool("shout")
        def shout(text: str) -> str:
            \"\"\"Upper-case the input.\"\"\"
            return text.upper()

    Parameters
    ----------
    name: str
        Identifier the model uses in ``Action: <name>[...]``.
    description: str | None
        Usage text shown to the model.  Defaults to the function's docstring.
    Raises
    ------
    ValueError
        If neither *description* nor a docstring is available.
    """

    def wrapper(fn: ToolFn) -> FunctionTool:
        text = description or inspect.getdoc(fn) or ""
        return FunctionTool(name, text, fn)

    return wrapper


class ToolRegistry:
    """Name -> tool lookup with a stable, registration-ordered manifest."""

    def __init__(self, timeout: float | None = None):
        self._tools: Dict[str, Tool] = {}
        self.timeout = settings.TOOL_TIMEOUT if timeout is None else timeout

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #
    def register(self, new_tool: Tool) -> Tool:
        """
        Add *new_tool* to the registry and return it.

        Raises
        ------
        ValueError
            If a tool with the same name is already registered.
        """
        name = new_tool.descriptor.name
        if name in self._tools:
            raise ValueError(f"Tool '{name}' is already registered.")
        logger.debug("Registering tool '%s'", name)
        self._tools[name] = new_tool
        return new_tool

    # ------------------------------------------------------------------ #
    # Lookup
    # ------------------------------------------------------------------ #
    def names(self) -> Tuple[str, ...]:
        return tuple(self._tools)

    def descriptors(self) -> Tuple[ToolDescriptor, ...]:
        return tuple(t.descriptor for t in self._tools.values())

    def manifest(self) -> str:
        """One ``name: description`` line per tool, in registration order."""
        return "\n".join(f"{d.name}: {d.description}" for d in self.descriptors())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #
    async def execute(self, name: str, tool_input: str) -> ToolOutcome:
        """
        Look up *name* and run it on *tool_input*.

        Returns
        -------
        ToolOk | ToolNotFound | ExecutionFailed
            Failures are values; this method only raises on cancellation.
        """
        target = self._tools.get(name)
        if target is None:
            logger.warning("Model requested unknown tool '%s'", name)
            return ToolNotFound(tool_name=name, available=self.names())

        logger.debug("Executing tool '%s' with input=%r", name, tool_input)
        try:
            output = await asyncio.wait_for(target.run(tool_input), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Tool '%s' timed out after %.1fs", name, self.timeout)
            return ExecutionFailed(tool_name=name, detail=f"timed out after {self.timeout:g}s")
        except ToolExecutionError as exc:
            logger.info("Tool '%s' reported failure: %s", name, exc)
            return ExecutionFailed(tool_name=name, detail=str(exc))
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Unhandled error in tool '%s'", name)
            return ExecutionFailed(tool_name=name, detail=f"{type(exc).__name__}: {exc}")

        if not isinstance(output, str):
            output = str(output)
        return ToolOk(tool_name=name, output=output)
