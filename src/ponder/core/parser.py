"""
Action parser: turns raw model text into a typed decision.

The model is asked to end each response with exactly one of

    Action: Finish[<answer>]
    Action: <tool_name>[<input>]

Both patterns are anchored at the start of a line.  The bracketed payload runs up to the first
``]`` that closes its line, so payloads may contain brackets of their own and may span lines.
The finish pattern is always tried first, so a tool named ``Finish`` can never shadow termination.
"""

import logging
import re

from ponder.core.schema import (
    AgentAction,
    Finish,
    UseTool,
)

logger = logging.getLogger(__name__)

_FLAGS = re.MULTILINE | re.DOTALL

# The closing bracket may be followed by sentence punctuation before the end of the line.
_FINISH_RE = re.compile(
    r"^[ \t]*Action[ \t]*:[ \t]*Finish[ \t]*\[(?P<answer>.*?)\][ \t.!?,;:]*$",
    _FLAGS,
)
_TOOL_RE = re.compile(
    r"^[ \t]*Action[ \t]*:[ \t]*(?P<tool>[^\[\]\s][^\[\]\n]*?)[ \t]*"
    r"\[(?P<input>.*?)\][ \t.!?,;:]*$",
    _FLAGS,
)


def parse_action(raw_text: str) -> AgentAction | None:
    """
    Extract the first action from *raw_text*.

    Returns
    -------
    Finish | UseTool | None
        ``None`` when the text follows neither pattern.  The tool input is returned exactly as
        written between the brackets (empty or whitespace-only input included).
    """
    match = _FINISH_RE.search(raw_text)
    if match:
        return Finish(answer=match.group("answer").strip())

    match = _TOOL_RE.search(raw_text)
    if match:
        return UseTool(tool_name=match.group("tool").strip(), tool_input=match.group("input"))

    logger.debug("No action found in model output: %r", raw_text)
    return None
