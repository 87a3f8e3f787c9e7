"""Per-run trace of model outputs and observations."""

from typing import (
    Iterator,
    List,
    Tuple,
)

from ponder.core.schema import TraceEntry


class Scratchpad:
    """
    Append-only sequence of :class:`TraceEntry`.

    One scratchpad lives for exactly one ``Orchestrator.run`` call.  Entries can be added but never
    removed or rewritten; :meth:`entries` hands out an immutable snapshot.
    """

    def __init__(self) -> None:
        self._entries: List[TraceEntry] = []

    def add_model_output(self, text: str) -> None:
        self._entries.append(TraceEntry(kind="model", text=text))

    def add_observation(self, text: str) -> None:
        self._entries.append(TraceEntry(kind="observation", text=text))

    def entries(self) -> Tuple[TraceEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TraceEntry]:
        return iter(tuple(self._entries))
