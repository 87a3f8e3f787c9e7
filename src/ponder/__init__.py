"""ponder: a model-agnostic ReAct agent engine."""

__version__ = "0.1.0"
