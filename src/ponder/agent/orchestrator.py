"""
Main orchestration loop for Ponder.

One call to :meth:`Orchestrator.run` is one ReAct loop:

    Thinking -> Acting     (UseTool: execute, append the observation, think again)
             -> Correcting (unparseable output: append a corrective observation, think again)
             -> Finished   (Finish: commit input + answer to memory, return RunOk)

bounded by ``max_iterations`` model calls.  Every outcome reaches the caller as a value: either a
:class:`RunOk` carrying the answer, or a :class:`RunErr` naming one :class:`ErrorKind`.
"""

from __future__ import annotations

import logging

from ponder.agent.gateway import ModelGateway
from ponder.config import settings
from ponder.core.errors import GatewayError
from ponder.core.parser import parse_action
from ponder.core.prompt import (
    DEFAULT_INSTRUCTIONS,
    assemble,
)
from ponder.core.schema import (
    ErrorKind,
    Finish,
    Message,
    Role,
    RunErr,
    RunOk,
    RunResult,
    UseTool,
)
from ponder.core.scratchpad import Scratchpad
from ponder.memory.memory_store import MemoryStore
from ponder.tools import ToolRegistry

logger = logging.getLogger(__name__)

CORRECTIVE_OBSERVATION = (
    "Invalid format: no valid Action found. Reply with one 'Thought: ...' line followed by exactly "
    "one 'Action: <tool_name>[<input>]' or 'Action: Finish[<answer>]'."
)


class Orchestrator:
    """
    Drive the Thought -> Action -> Observation loop for one conversation.

    Parameters
    ----------
    gateway:
        Model backend; any object with ``async invoke(messages) -> str``.
    tools:
        Registry of callable tools; shared, read-only during runs.
    memory:
        Conversation history; gains exactly two messages per successful run.
    max_iterations:
        Upper bound on model calls per run.
    instructions:
        Role/goal statement placed at the top of every prompt.
    max_consecutive_parse_failures:
        If set, this many unparseable responses in a row end the run with
        ``UNRECOVERABLE_PARSE_FAILURE``; otherwise only ``max_iterations`` bounds them.
    """

    def __init__(
        self,
        gateway: ModelGateway,
        tools: ToolRegistry,
        memory: MemoryStore,
        max_iterations: int | None = None,
        instructions: str = DEFAULT_INSTRUCTIONS,
        max_consecutive_parse_failures: int | None = None,
    ):
        if max_iterations is None:
            max_iterations = settings.MAX_ITERATIONS
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")
        if max_consecutive_parse_failures is not None and max_consecutive_parse_failures < 1:
            raise ValueError("max_consecutive_parse_failures must be at least 1")

        self._gateway = gateway
        self._tools = tools
        self._memory = memory
        self._instructions = instructions
        self._max_iterations = max_iterations
        self._max_parse_failures = max_consecutive_parse_failures

    async def run(self, user_input: str) -> RunResult:
        """Answer *user_input*, returning :class:`RunOk` or :class:`RunErr`."""
        scratchpad = Scratchpad()
        history = await self._memory.history()
        manifest = self._tools.manifest()
        parse_failures = 0

        logger.info("Run started (max_iterations=%d): %r", self._max_iterations, user_input)

        for iteration in range(1, self._max_iterations + 1):
            # Thinking
            prompt = assemble(
                self._instructions, manifest, history, user_input, scratchpad.entries()
            )
            try:
                response = await self._gateway.invoke([Message(role=Role.HUMAN, content=prompt)])
            except GatewayError as exc:
                logger.error("Gateway failure on iteration %d: %s", iteration, exc)
                return RunErr(
                    kind=ErrorKind.GATEWAY_FAILURE,
                    detail=f"{type(exc).__name__}: {exc}",
                    iterations=iteration,
                    trace=scratchpad.entries(),
                )
            except Exception as exc:  # pylint: disable=broad-except
                logger.exception("Unhandled gateway error on iteration %d", iteration)
                return RunErr(
                    kind=ErrorKind.GATEWAY_FAILURE,
                    detail=f"{type(exc).__name__}: {exc}",
                    iterations=iteration,
                    trace=scratchpad.entries(),
                )

            scratchpad.add_model_output(response)
            action = parse_action(response)

            if isinstance(action, Finish):
                await self._memory.append(
                    Message(role=Role.HUMAN, content=user_input),
                    Message(role=Role.ASSISTANT, content=action.answer),
                )
                logger.info("Run finished after %d iteration(s)", iteration)
                return RunOk(answer=action.answer, iterations=iteration, trace=scratchpad.entries())

            if isinstance(action, UseTool):
                # Acting
                parse_failures = 0
                logger.info("Iteration %d: calling tool '%s'", iteration, action.tool_name)
                outcome = await self._tools.execute(action.tool_name, action.tool_input)
                scratchpad.add_observation(outcome.observation)
                continue

            # Correcting
            parse_failures += 1
            logger.warning(
                "Iteration %d: unparseable model output (%d in a row)", iteration, parse_failures
            )
            scratchpad.add_observation(CORRECTIVE_OBSERVATION)
            if self._max_parse_failures is not None and parse_failures >= self._max_parse_failures:
                return RunErr(
                    kind=ErrorKind.UNRECOVERABLE_PARSE_FAILURE,
                    detail=f"{parse_failures} consecutive responses without a valid action",
                    iterations=iteration,
                    trace=scratchpad.entries(),
                )

        logger.warning("Run gave up after %d iterations", self._max_iterations)
        return RunErr(
            kind=ErrorKind.MAX_ITERATIONS_EXCEEDED,
            detail=f"no final answer within {self._max_iterations} iterations",
            iterations=self._max_iterations,
            trace=scratchpad.entries(),
        )
