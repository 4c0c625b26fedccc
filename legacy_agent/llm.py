"""LLM client — HTTP connection to a tool-calling chat backend.

The orchestrator injects an LLM callable matching the protocol:

    async def __call__(self, request: ModelRequest) -> ModelResponse: ...

A request carries the ordered message list, the system instructions, the
tool catalog (possibly empty) and generation parameters. A response carries
the stop reason, an ordered list of content blocks (text and/or tool_use) and
token usage.

Two implementations are provided:

    HttpLLM   — real HTTP client, supports the Anthropic Messages API and
                 OpenAI-compatible chat completions. Selected by provider_format.
    EchoLLM   — answers with the last user text. Useful for smoke-testing the
                 chat wiring without a running model.

Production code constructs an HttpLLM from config and hands it to the chat
service. Tests use StubLLM (defined in the test helpers) instead.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Literal, Protocol

import httpx
from pydantic import BaseModel, Field, ValidationError

from legacy_agent.models import (
    ContentBlock,
    Role,
    TextBlock,
    ToolDefinition,
    ToolResultBlock,
    ToolUseBlock,
    text_of,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Wire-neutral request / response
# ---------------------------------------------------------------------------

class ModelMessage(BaseModel):
    role: Role
    content: list[ContentBlock]


class ModelRequest(BaseModel):
    messages: list[ModelMessage]
    system: str = ""
    tools: list[ToolDefinition] = Field(default_factory=list)
    max_tokens: int = 1024
    temperature: float = 0.3


class Usage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0


class ModelResponse(BaseModel):
    stop_reason: str | None = None
    content: list[ContentBlock] = Field(default_factory=list)
    usage: Usage = Field(default_factory=Usage)
    model: str = ""


# ---------------------------------------------------------------------------
# Protocol — every LLM implementation must match this signature
# ---------------------------------------------------------------------------

class LLM(Protocol):
    async def __call__(self, request: ModelRequest) -> ModelResponse: ...


# ---------------------------------------------------------------------------
# HttpLLM — connects to a real backend
# ---------------------------------------------------------------------------

ProviderFormat = Literal["anthropic", "openai"]

ANTHROPIC_VERSION = "2023-06-01"


class HttpLLM:
    """Async HTTP client for tool-calling chat backends.

    Supported formats:
      "anthropic"  — POST /v1/messages          {"model", "system", "messages", "tools"}
                     Response: {"content": [...blocks], "stop_reason", "usage"}
      "openai"     — POST /v1/chat/completions  {"model", "messages", "tools"}
                     Response: {"choices": [{"message": {...}, "finish_reason"}], "usage"}

    Args:
        provider_url:    Base URL of the backend, e.g. "https://api.anthropic.com".
        api_key:         API key, or empty string if not required.
        provider_format: Wire format to use. Defaults to "anthropic".
        model:           Model identifier sent with every request.
        timeout:         HTTP timeout in seconds. Defaults to 60.
    """

    def __init__(
        self,
        provider_url: str,
        api_key: str = "",
        provider_format: ProviderFormat = "anthropic",
        model: str = "",
        timeout: float = 60.0,
    ) -> None:
        self._base_url = provider_url.rstrip("/")
        self._api_key = api_key
        self._format = provider_format
        self._model = model
        self._timeout = timeout

    @property
    def model(self) -> str:
        return self._model

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._format == "anthropic":
            headers["anthropic-version"] = ANTHROPIC_VERSION
            if self._api_key:
                headers["x-api-key"] = self._api_key
        elif self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _build_request(self, request: ModelRequest) -> tuple[str, dict]:
        """Return (url, body) for the configured format."""
        if self._format == "openai":
            return f"{self._base_url}/v1/chat/completions", _openai_body(request, self._model)

        body: dict[str, Any] = {
            "model": self._model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "messages": [m.model_dump() for m in request.messages],
        }
        if request.system:
            body["system"] = request.system
        if request.tools:
            body["tools"] = [t.model_dump() for t in request.tools]
        return f"{self._base_url}/v1/messages", body

    def _parse_response(self, data: dict) -> ModelResponse:
        """Turn the response body into a ModelResponse."""
        if self._format == "openai":
            return _parse_openai(data, self._model)

        if not isinstance(data.get("content"), list):
            raise LLMError("Unexpected response format from Anthropic backend")
        known = [b for b in data["content"] if b.get("type") in ("text", "tool_use")]
        try:
            return ModelResponse(
                stop_reason=data.get("stop_reason"),
                content=known,
                usage=data.get("usage") or {},
                model=data.get("model") or self._model,
            )
        except ValidationError as e:
            raise LLMError("Unexpected response format from Anthropic backend") from e

    async def __call__(self, request: ModelRequest) -> ModelResponse:
        url, body = self._build_request(request)
        logger.debug(
            "llm call url=%s messages=%d tools=%d",
            url, len(request.messages), len(request.tools),
        )

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to LLM backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(
                f"LLM backend returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise LLMError(f"LLM backend timed out after {self._timeout}s") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMError("LLM backend returned a non-JSON body") from e
        response = self._parse_response(data)
        logger.debug(
            "llm response stop=%s blocks=%d usage=%d/%d",
            response.stop_reason, len(response.content),
            response.usage.input_tokens, response.usage.output_tokens,
        )
        return response


# ---------------------------------------------------------------------------
# OpenAI-compatible translation
# ---------------------------------------------------------------------------

def _openai_body(request: ModelRequest, model: str) -> dict:
    messages: list[dict[str, Any]] = []
    if request.system:
        messages.append({"role": "system", "content": request.system})

    for msg in request.messages:
        results = [b for b in msg.content if isinstance(b, ToolResultBlock)]
        for block in results:
            messages.append({
                "role": "tool",
                "tool_call_id": block.tool_use_id,
                "content": block.content,
            })
        text = "\n".join(text_of(msg.content))
        calls = [b for b in msg.content if isinstance(b, ToolUseBlock)]
        if msg.role == "assistant":
            entry: dict[str, Any] = {"role": "assistant", "content": text or None}
            if calls:
                entry["tool_calls"] = [
                    {
                        "id": c.id,
                        "type": "function",
                        "function": {"name": c.name, "arguments": json.dumps(c.input)},
                    }
                    for c in calls
                ]
            messages.append(entry)
        elif text or not results:
            messages.append({"role": "user", "content": text})

    body: dict[str, Any] = {
        "messages": messages,
        "max_tokens": request.max_tokens,
        "temperature": request.temperature,
    }
    if model:
        body["model"] = model
    if request.tools:
        body["tools"] = [
            {
                "type": "function",
                "function": {
                    "name": t.name,
                    "description": t.description,
                    "parameters": t.input_schema,
                },
            }
            for t in request.tools
        ]
    return body


def _parse_openai(data: dict, model: str) -> ModelResponse:
    choices = data.get("choices")
    if not choices or "message" not in choices[0]:
        raise LLMError("Unexpected response format from OpenAI-compatible backend")
    message = choices[0]["message"]

    content: list[ContentBlock] = []
    if message.get("content"):
        content.append(TextBlock(text=message["content"]))
    for call in message.get("tool_calls") or []:
        fn = call.get("function", {})
        try:
            args = json.loads(fn.get("arguments") or "{}")
        except json.JSONDecodeError:
            logger.warning("Tool call %r carried invalid JSON arguments", fn.get("name"))
            args = {}
        content.append(ToolUseBlock(id=call.get("id", ""), name=fn.get("name", ""), input=args))

    usage = data.get("usage") or {}
    return ModelResponse(
        stop_reason=choices[0].get("finish_reason"),
        content=content,
        usage=Usage(
            input_tokens=usage.get("prompt_tokens", 0),
            output_tokens=usage.get("completion_tokens", 0),
        ),
        model=data.get("model") or model,
    )


# ---------------------------------------------------------------------------
# EchoLLM — no network; useful for wiring smoke tests
# ---------------------------------------------------------------------------

class EchoLLM:
    """Answers with the last user text. Never requests tools.

    Lets you verify that the chat wiring (validation, grounding, storage
    writes) works end-to-end without a running model.
    """

    model = "echo"

    async def __call__(self, request: ModelRequest) -> ModelResponse:
        last = ""
        for msg in reversed(request.messages):
            if msg.role == "user" and text_of(msg.content):
                last = "\n".join(text_of(msg.content))
                break
        logger.debug("EchoLLM messages=%d", len(request.messages))
        return ModelResponse(
            stop_reason="end_turn",
            content=[TextBlock(text=f"You said: {last}")],
            model=self.model,
        )


# ---------------------------------------------------------------------------
# LLMError — raised for all connection, protocol and timeout failures
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Raised when the LLM backend cannot be reached or returns an error."""
