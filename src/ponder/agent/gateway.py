"""
Model gateways for Ponder.

This module is the only place that *directly* calls an LLM.  Everything else (orchestrator, tools,
memory) stays model-agnostic and sees a gateway only through the :class:`ModelGateway` protocol:
send an ordered sequence of messages, get text back.

We support three back-ends out of the box:

1. **Hugging Face Text-Generation-Inference (TGI)** over plain HTTP+JSON, for self-hosted models.
2. **OpenAI** and **Anthropic** via their async SDKs (requires env keys).

Additional providers can be added by implementing ``invoke`` and registering the class via
:func:`register_gateway`.  Gateways never retry: transport and API errors are raised as
:class:`~ponder.core.errors.TransportError` / :class:`~ponder.core.errors.ApiError` for an outer
caller to retry, and a structurally broken response raises
:class:`~ponder.core.errors.MalformedResponse`.
"""

import logging
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Protocol,
    Sequence,
    Tuple,
    Type,
    Union,
    runtime_checkable,
)

import httpx

from ponder.config import settings
from ponder.core.errors import (
    ApiError,
    MalformedResponse,
    TransportError,
)
from ponder.core.schema import (
    Message,
    Role,
)

logger = logging.getLogger(__name__)

# Stop before the model writes its own observation; observations come from tools.
STOP_SEQUENCES = ["\nObservation:"]


@runtime_checkable
class ModelGateway(Protocol):
    """Send a conversation, get a completion."""

    async def invoke(self, messages: Sequence[Message]) -> str:
        """Return the model's completion for *messages*."""


# ---------------------------------------------------------------------------
# Registry helpers
# ---------------------------------------------------------------------------
_GATEWAY_REGISTRY: Dict[str, Type[Any]] = {}


def register_gateway(name: str) -> Callable:
    """Decorator to register a gateway class under *name*."""

    def wrapper(cls: Type[Any]) -> Type[Any]:
        _GATEWAY_REGISTRY[name] = cls
        return cls

    return wrapper


def available_gateways() -> List[str]:
    """Names accepted by :func:`load_gateway`, sorted."""
    return sorted(_GATEWAY_REGISTRY)


def load_gateway(name: str | None = None) -> ModelGateway:
    """
    Factory that returns an instantiated gateway.

    Fallback order:
    1. *name* arg
    2. ``settings.GATEWAY`` env/.env option
    """

    target = name or settings.GATEWAY
    cls = _GATEWAY_REGISTRY.get(target.lower())
    if cls is None:
        raise ValueError(f"Gateway '{target}' is not registered.")
    return cls()


# ---------------------------------------------------------------------------
# Scripted gateway (tests / demos)
# ---------------------------------------------------------------------------
class ScriptedGateway:
    """
    Replays canned responses in order.

    Each script item is either the text to return or an exception instance to raise.  Every message
    sequence received is recorded in :attr:`calls`.  Once the script is used up, further calls raise
    :class:`MalformedResponse`.
    """

    def __init__(self, script: Iterable[Union[str, Exception]] = ()):
        self._script = list(script)
        self.calls: List[Tuple[Message, ...]] = []

    @property
    def remaining(self) -> int:
        """Number of scripted items not yet consumed."""
        return len(self._script) - len(self.calls)

    async def invoke(self, messages: Sequence[Message]) -> str:
        index = len(self.calls)
        self.calls.append(tuple(messages))
        if index >= len(self._script):
            raise MalformedResponse(f"script exhausted after {len(self._script)} responses")
        item = self._script[index]
        if isinstance(item, Exception):
            raise item
        return item


# ---------------------------------------------------------------------------
# Concrete gateways
# ---------------------------------------------------------------------------
def _flatten(messages: Sequence[Message]) -> str:
    """Single text prompt for completion-style endpoints."""
    if len(messages) == 1:
        return messages[0].content
    labels = {Role.SYSTEM: "System", Role.HUMAN: "User", Role.ASSISTANT: "Assistant"}
    return "\n\n".join(f"{labels[m.role]}: {m.content}" for m in messages)


@register_gateway("tgi")
class TGIGateway:
    """TGI ``/generate`` endpoint over httpx."""

    def __init__(
        self,
        endpoint: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.endpoint = endpoint or settings.TGI_ENDPOINT
        self.timeout = settings.GATEWAY_TIMEOUT if timeout is None else timeout
        self._transport = transport

    async def invoke(self, messages: Sequence[Message]) -> str:
        payload = {
            "inputs": _flatten(messages),
            "parameters": {
                "max_new_tokens": settings.MAX_NEW_TOKENS,
                "temperature": settings.TEMPERATURE,
                "stop": STOP_SEQUENCES + ["</s>"],
            },
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(self.endpoint, json=payload)
                resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.error("TGI returned HTTP %d", status)
            detail = f"TGI returned HTTP {status}: {exc.response.text[:200]}"
            raise ApiError(detail, status) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.error("TGI request error: %s", str(exc))
            raise TransportError(f"Error calling TGI endpoint: {exc!r}") from exc

        try:
            body = resp.json()
        except ValueError as exc:
            raise MalformedResponse("TGI response is not JSON") from exc

        # /generate returns an object; some deployments wrap it in a list
        if isinstance(body, list) and body:
            body = body[0]
        content = body.get("generated_text") if isinstance(body, dict) else None
        if not isinstance(content, str):
            raise MalformedResponse("TGI response lacks 'generated_text'")

        logger.debug("TGI gateway response: %s", content)
        return content


@register_gateway("openai")
class OpenAIGateway:
    """OpenAI chat completions via the async SDK."""

    _ROLES = {Role.SYSTEM: "system", Role.HUMAN: "user", Role.ASSISTANT: "assistant"}

    def __init__(self, model: str | None = None, timeout: float | None = None):
        self.model = model or settings.OPENAI_MODEL
        self.timeout = settings.GATEWAY_TIMEOUT if timeout is None else timeout

    async def invoke(self, messages: Sequence[Message]) -> str:
        try:
            import openai  # pylint: disable=import-outside-toplevel
        except ImportError as exc:
            logger.error("OpenAI SDK not installed")
            raise ApiError("OpenAI SDK not installed. Run 'pip install ponder[openai]'") from exc
        if not settings.OPENAI_API_KEY:
            raise ApiError("OPENAI_API_KEY is not set")

        client = openai.AsyncOpenAI(
            api_key=settings.OPENAI_API_KEY, timeout=self.timeout, max_retries=0
        )
        try:
            resp = await client.chat.completions.create(
                model=self.model,
                messages=[{"role": self._ROLES[m.role], "content": m.content} for m in messages],
                temperature=settings.TEMPERATURE,
                max_tokens=settings.MAX_NEW_TOKENS,
                stop=STOP_SEQUENCES,
            )
        except openai.APIConnectionError as exc:  # includes APITimeoutError
            logger.error("OpenAI connection error: %s", str(exc))
            raise TransportError(f"Error calling OpenAI: {exc}") from exc
        except openai.APIStatusError as exc:
            logger.error("OpenAI API error %d: %s", exc.status_code, str(exc))
            raise ApiError(str(exc), exc.status_code) from exc
        except openai.APIError as exc:
            logger.error("OpenAI API error: %s", str(exc))
            raise ApiError(str(exc)) from exc
        finally:
            await client.close()

        if not resp.choices or not resp.choices[0].message.content:
            logger.error("OpenAI gateway returned empty response")
            raise MalformedResponse("Empty response from OpenAI")

        content = resp.choices[0].message.content
        logger.debug("OpenAI gateway response: %s", content)
        return content


@register_gateway("anthropic")
class AnthropicGateway:
    """Anthropic Claude messages API via the async SDK."""

    def __init__(self, model: str | None = None, timeout: float | None = None):
        self.model = model or settings.ANTHROPIC_MODEL
        self.timeout = settings.GATEWAY_TIMEOUT if timeout is None else timeout

    async def invoke(self, messages: Sequence[Message]) -> str:
        try:
            import anthropic  # pylint: disable=import-outside-toplevel
        except ImportError as exc:
            logger.error("Anthropic SDK not installed")
            raise ApiError(
                "Anthropic SDK not installed. Run 'pip install ponder[anthropic]'"
            ) from exc
        if not settings.ANTHROPIC_API_KEY:
            raise ApiError("ANTHROPIC_API_KEY is not set")

        system = "\n\n".join(m.content for m in messages if m.role is Role.SYSTEM)
        turns = [
            {"role": "assistant" if m.role is Role.ASSISTANT else "user", "content": m.content}
            for m in messages
            if m.role is not Role.SYSTEM
        ]
        kwargs: Dict[str, Any] = {}
        if system:
            kwargs["system"] = system

        client = anthropic.AsyncAnthropic(
            api_key=settings.ANTHROPIC_API_KEY, timeout=self.timeout, max_retries=0
        )
        try:
            response = await client.messages.create(
                model=self.model,
                max_tokens=settings.MAX_NEW_TOKENS,
                messages=turns,
                temperature=settings.TEMPERATURE,
                stop_sequences=STOP_SEQUENCES,
                **kwargs,
            )
        except anthropic.APIConnectionError as exc:  # includes APITimeoutError
            logger.error("Anthropic connection error: %s", str(exc))
            raise TransportError(f"Error calling Anthropic: {exc}") from exc
        except anthropic.APIStatusError as exc:
            logger.error("Anthropic API error %d: %s", exc.status_code, str(exc))
            raise ApiError(str(exc), exc.status_code) from exc
        except anthropic.APIError as exc:
            logger.error("Anthropic API error: %s", str(exc))
            raise ApiError(str(exc)) from exc
        finally:
            await client.close()

        # Only text blocks carry the ReAct trace
        content = "".join(block.text for block in response.content if block.type == "text")
        if not content:
            raise MalformedResponse("Anthropic response has no text content")

        logger.debug("Anthropic gateway response: %s", content)
        return content
