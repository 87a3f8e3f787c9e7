"""Tests for prompt assembly."""

from ponder.core.prompt import (
    DEFAULT_INSTRUCTIONS,
    FINISH_INSTRUCTIONS,
    FORMAT_INSTRUCTIONS,
    assemble,
    render_history,
)
from ponder.core.schema import (
    Message,
    Role,
    TraceEntry,
)
from ponder.core.scratchpad import Scratchpad

MANIFEST = "calculator: Evaluate arithmetic.\necho: Echo the input."
HISTORY = (
    Message(role=Role.HUMAN, content="Hi there"),
    Message(role=Role.ASSISTANT, content="Hello!"),
)
TRACE = (
    TraceEntry(kind="model", text="Thought: multiply\nAction: calculator[15*7]"),
    TraceEntry(kind="observation", text="105"),
)


def test_assemble_is_deterministic() -> None:
    """Identical arguments give byte-identical prompts."""
    first = assemble(DEFAULT_INSTRUCTIONS, MANIFEST, HISTORY, "What is 15 * 7?", TRACE)
    second = assemble(DEFAULT_INSTRUCTIONS, MANIFEST, HISTORY, "What is 15 * 7?", TRACE)
    assert first == second


def test_sections_appear_in_order() -> None:
    """Role, tools, format, finish syntax, history, question, scratchpad."""
    prompt = assemble(DEFAULT_INSTRUCTIONS, MANIFEST, HISTORY, "What is 15 * 7?", TRACE)
    markers = [
        DEFAULT_INSTRUCTIONS,
        MANIFEST,
        FORMAT_INSTRUCTIONS,
        FINISH_INSTRUCTIONS,
        "Human: Hi there\nAssistant: Hello!",
        "Question: What is 15 * 7?",
        "Action: calculator[15*7]\nObservation: 105",
    ]
    positions = [prompt.index(marker) for marker in markers]
    assert positions == sorted(positions)


def test_empty_history_and_tools_are_explicit() -> None:
    """Missing history or tools render as placeholders rather than vanishing."""
    prompt = assemble(DEFAULT_INSTRUCTIONS, "", (), "ping", ())
    assert "(no tools)" in prompt
    assert "Conversation so far:\n(none)" in prompt
    assert prompt.endswith("Question: ping\n")


def test_scratchpad_extends_prompt() -> None:
    """A longer scratchpad only appends to the prompt."""
    short = assemble(DEFAULT_INSTRUCTIONS, MANIFEST, HISTORY, "q", TRACE[:1])
    longer = assemble(DEFAULT_INSTRUCTIONS, MANIFEST, HISTORY, "q", TRACE)
    assert longer.startswith(short)
    assert len(longer) > len(short)


def test_render_history_labels_roles() -> None:
    """Every role gets its own label."""
    history = [Message(role=Role.SYSTEM, content="be brief"), *HISTORY]
    assert render_history(history) == "System: be brief\nHuman: Hi there\nAssistant: Hello!"


def test_scratchpad_is_append_only() -> None:
    """Snapshots taken earlier are unaffected by later appends."""
    pad = Scratchpad()
    pad.add_model_output("Action: echo[hi]")
    snapshot = pad.entries()
    pad.add_observation("hi")

    assert snapshot == (TraceEntry(kind="model", text="Action: echo[hi]"),)
    assert len(pad) == 2
    assert [entry.kind for entry in pad] == ["model", "observation"]
