"""
Prompt assembly for the ReAct loop.

:func:`assemble` is a pure function: the same arguments always produce byte-identical text.  The
self-correction mechanism depends on this, since the only thing that changes between two prompts
of one run is the scratchpad.
"""

from typing import Sequence

from ponder.core.schema import (
    Message,
    Role,
    TraceEntry,
)

DEFAULT_INSTRUCTIONS = """\
You are Ponder, an assistant that answers questions by reasoning step by step and, when needed,
calling tools. Your goal is to give a correct, grounded final answer to the user's question."""

FORMAT_INSTRUCTIONS = """\
Respond using this format, with exactly ONE Thought and ONE Action per response:

Thought: <your reasoning about what to do next>
Action: <tool_name>[<tool input>]

After each Action you will receive an Observation with the tool's result. Never write an
Observation yourself, and never put more than one Action in a response."""

FINISH_INSTRUCTIONS = """\
When you know the final answer, respond with:

Thought: <your final reasoning>
Action: Finish[<final answer to the user>]"""

_ROLE_LABELS = {
    Role.SYSTEM: "System",
    Role.HUMAN: "Human",
    Role.ASSISTANT: "Assistant",
}


def render_history(history: Sequence[Message]) -> str:
    """Render conversation history one ``Label: content`` line per message."""
    if not history:
        return "(none)"
    return "\n".join(f"{_ROLE_LABELS[msg.role]}: {msg.content}" for msg in history)


def render_scratchpad(scratchpad: Sequence[TraceEntry]) -> str:
    """Render the trace: model output verbatim, each observation on its own line."""
    lines = []
    for entry in scratchpad:
        if entry.kind == "observation":
            lines.append(f"Observation: {entry.text}")
        else:
            lines.append(entry.text.strip())
    return "\n".join(lines)


def assemble(
    base_instructions: str,
    tool_manifest: str,
    history: Sequence[Message],
    user_input: str,
    scratchpad: Sequence[TraceEntry],
) -> str:
    """
    Compose the full model input.

    Sections, in order: role/goal statement, tool manifest, output format, finish syntax,
    conversation history, current question, accumulated scratchpad.
    """
    sections = [
        base_instructions.strip(),
        "You have access to the following tools:\n" + (tool_manifest.strip() or "(no tools)"),
        FORMAT_INSTRUCTIONS,
        FINISH_INSTRUCTIONS,
        "Conversation so far:\n" + render_history(history),
        f"Question: {user_input}",
    ]
    trace = render_scratchpad(scratchpad)
    if trace:
        sections.append(trace)
    return "\n\n".join(sections) + "\n"
