"""
Schema definitions for gateway <-> orchestrator <-> tool messages.

These data models serve as the contract between the model gateway, the orchestration loop, and
individual tools.  We keep them separate from runtime logic so they can be imported anywhere without
side-effects.  Every model is frozen: once a value is created it is never mutated, so handing one to
a caller can't leak write access to shared state.
"""

from enum import Enum
from typing import (
    Annotated,
    Literal,
    Tuple,
    Union,
)

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------
class Role(str, Enum):
    """Author of a conversational message."""

    SYSTEM = "system"
    HUMAN = "human"
    ASSISTANT = "assistant"


class Message(_Frozen):
    """One conversational turn."""

    role: Role
    content: str


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------
class ToolDescriptor(_Frozen):
    """Name and usage text the model sees for a tool."""

    name: str = Field(..., description="Unique short identifier")
    description: str = Field(..., description="Natural-language usage text")

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("tool name must not be empty")
        if any(ch in value for ch in "[]\n\r"):
            raise ValueError(f"tool name {value!r} must be a single line without brackets")
        return value

    @field_validator("description")
    @classmethod
    def _check_description(cls, value: str) -> str:
        # Collapsed to one line: the manifest holds exactly one line per tool
        value = " ".join(value.split())
        if not value:
            raise ValueError("tool description must not be empty")
        return value


class ToolOk(_Frozen):
    """The tool ran and produced output."""

    kind: Literal["ok"] = "ok"
    tool_name: str
    output: str

    @property
    def observation(self) -> str:
        return self.output


class ToolNotFound(_Frozen):
    """No tool is registered under the requested name."""

    kind: Literal["not_found"] = "not_found"
    tool_name: str
    available: Tuple[str, ...] = ()

    @property
    def observation(self) -> str:
        listing = ", ".join(self.available) or "none"
        return f"Error: tool '{self.tool_name}' does not exist. Available tools: {listing}."


class ExecutionFailed(_Frozen):
    """The tool ran but failed."""

    kind: Literal["failed"] = "failed"
    tool_name: str
    detail: str

    @property
    def observation(self) -> str:
        return f"Error: tool '{self.tool_name}' failed: {self.detail}"


ToolOutcome = Annotated[Union[ToolOk, ToolNotFound, ExecutionFailed], Field(discriminator="kind")]


# ---------------------------------------------------------------------------
# Agent decisions
# ---------------------------------------------------------------------------
class UseTool(_Frozen):
    """The model asked for one tool call."""

    kind: Literal["use_tool"] = "use_tool"
    tool_name: str
    tool_input: str


class Finish(_Frozen):
    """The model produced its final answer."""

    kind: Literal["finish"] = "finish"
    answer: str


AgentAction = Annotated[Union[UseTool, Finish], Field(discriminator="kind")]


class TraceEntry(_Frozen):
    """One scratchpad line: raw model output or the observation that followed it."""

    kind: Literal["model", "observation"]
    text: str


# ---------------------------------------------------------------------------
# Run results
# ---------------------------------------------------------------------------
class ErrorKind(str, Enum):
    """Ways a run can end without an answer."""

    MAX_ITERATIONS_EXCEEDED = "max_iterations_exceeded"
    GATEWAY_FAILURE = "gateway_failure"
    UNRECOVERABLE_PARSE_FAILURE = "unrecoverable_parse_failure"


class RunOk(_Frozen):
    """Run finished with an answer."""

    ok: Literal[True] = True
    answer: str
    iterations: int
    trace: Tuple[TraceEntry, ...] = ()


class RunErr(_Frozen):
    """Run terminated without an answer."""

    ok: Literal[False] = False
    kind: ErrorKind
    detail: str = ""
    iterations: int
    trace: Tuple[TraceEntry, ...] = ()


RunResult = Union[RunOk, RunErr]
