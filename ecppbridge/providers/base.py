"""
ECPP Bridge Provider Base - LLM chat endpoints with tool calling.

This module defines the interface every chat provider implements, the two
wire formats the bridge speaks (Ollama ``/api/chat`` and OpenAI-compatible
``/chat/completions``), and a factory that picks one from configuration.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type

import httpx

from ecppbridge.core.messages import Message
from ecppbridge.errors import ParseError, TransportError
from ecppbridge.validation.config import Config, ConfigError, ProviderConfig


@dataclass
class ProviderResponse:
    """Response from an LLM provider."""

    message: Message
    model: str
    provider: str
    token_usage: int = 0
    finish_reason: str = "stop"


class Provider(ABC):
    """
    Abstract base class for LLM chat providers.

    A provider turns the transcript plus the tool list into one chat request
    and parses the assistant message (including tool calls) out of the reply.

    Example:
        >>> provider = ProviderFactory.create(Config.load())
        >>> response = provider.chat([Message.user("hi")], tools=[])
        >>> response.message.content
        'Hello!'
    """

    def __init__(self, model: str, config: Config):
        """
        Initialize the provider.

        Args:
            model: The model identifier.
            config: Bridge configuration.
        """
        self.model = model
        self.config = config

    @property
    def settings(self) -> ProviderConfig:
        return self.config.merged.provider

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    def chat(self, messages: List[Message], tools: List[Dict[str, Any]]) -> ProviderResponse:
        """
        Request one completion for the transcript.

        Args:
            messages: Full transcript, in order.
            tools: Function-tool specs offered to the model.

        Returns:
            ProviderResponse carrying the assistant message.

        Raises:
            TransportError: The endpoint was unreachable or answered non-2xx.
            ParseError: The reply was not the expected JSON shape.
        """
        pass

    def _post(self, url: str, payload: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """POST a chat request and decode the JSON reply."""
        try:
            response = httpx.post(url, json=payload, headers=headers, timeout=self.settings.timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                f"Failed to fetch from LLM: {exc.response.status_code} {exc.response.reason_phrase}"
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Failed to fetch from LLM: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise ParseError(f"LLM returned malformed JSON: {exc}", raw=response.text) from exc
        if not isinstance(data, dict):
            raise ParseError("LLM returned a non-object JSON body", raw=response.text)
        return data


class OllamaProvider(Provider):
    """Ollama local provider implementation."""

    DEFAULT_BASE_URL = "http://localhost:11434"

    @property
    def provider_name(self) -> str:
        return "ollama"

    @property
    def base_url(self) -> str:
        return (self.settings.api_base or self.DEFAULT_BASE_URL).rstrip("/")

    @staticmethod
    def to_wire(message: Message) -> Dict[str, Any]:
        wire: Dict[str, Any] = {"role": message.role, "content": message.content}
        if message.tool_calls:
            wire["tool_calls"] = [
                {"function": {"name": call.name, "arguments": call.arguments}}
                for call in message.tool_calls
            ]
        if message.role == "tool" and message.name:
            wire["name"] = message.name
        return wire

    def chat(self, messages: List[Message], tools: List[Dict[str, Any]]) -> ProviderResponse:
        """Generate a chat completion using Ollama."""
        data = self._post(
            f"{self.base_url}/api/chat",
            {
                "model": self.model,
                "stream": False,
                "messages": [self.to_wire(m) for m in messages],
                "tools": tools,
                "tool_choice": "auto",
            },
        )

        raw_message = data.get("message")
        if not isinstance(raw_message, dict):
            raise ParseError("LLM response has no message", raw=json.dumps(data)[:200])

        return ProviderResponse(
            message=Message.assistant_from_wire(raw_message),
            model=data.get("model", self.model),
            provider=self.provider_name,
            token_usage=data.get("eval_count", 0),
            finish_reason=data.get("done_reason", "stop"),
        )


class OpenAICompatibleProvider(Provider):
    """
    Provider for endpoints that expose an OpenAI-compatible chat completions API.

    Tool call arguments travel as JSON strings and tool results are matched
    to their call by ``tool_call_id``.
    """

    DEFAULT_BASE_URL = "https://api.openai.com/v1"

    @property
    def provider_name(self) -> str:
        return "openai"

    @property
    def base_url(self) -> str:
        return (self.settings.api_base or self.DEFAULT_BASE_URL).rstrip("/")

    @staticmethod
    def to_wire(message: Message) -> Dict[str, Any]:
        wire: Dict[str, Any] = {"role": message.role, "content": message.content}
        if message.tool_calls:
            wire["tool_calls"] = [
                {
                    "id": call.call_id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": json.dumps(call.arguments)},
                }
                for call in message.tool_calls
            ]
        if message.role == "tool":
            if message.tool_call_id:
                wire["tool_call_id"] = message.tool_call_id
            if message.name:
                wire["name"] = message.name
        return wire

    def chat(self, messages: List[Message], tools: List[Dict[str, Any]]) -> ProviderResponse:
        headers = {"Content-Type": "application/json"}
        if self.settings.api_key:
            headers["Authorization"] = f"Bearer {self.settings.api_key}"

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [self.to_wire(m) for m in messages],
        }
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = "auto"

        data = self._post(f"{self.base_url}/chat/completions", payload, headers=headers)

        choices = data.get("choices") or []
        if not choices or not isinstance(choices[0].get("message"), dict):
            raise ParseError("LLM response has no choices", raw=json.dumps(data)[:200])
        choice = choices[0]
        usage = data.get("usage") or {}

        return ProviderResponse(
            message=Message.assistant_from_wire(choice["message"]),
            model=data.get("model", self.model),
            provider=self.provider_name,
            token_usage=usage.get("total_tokens", 0),
            finish_reason=choice.get("finish_reason") or "stop",
        )


class ProviderFactory:
    """Factory for creating provider instances."""

    _providers: Dict[str, Type[Provider]] = {
        "ollama": OllamaProvider,
        "openai": OpenAICompatibleProvider,
    }

    @classmethod
    def create(cls, config: Config) -> Provider:
        """
        Create the provider named in the configuration.

        Raises:
            ConfigError: If the provider is not recognized.
        """
        settings = config.merged.provider
        if settings.name not in cls._providers:
            raise ConfigError(
                f"Unknown provider: {settings.name} (available: {', '.join(cls.available_providers())})"
            )
        return cls._providers[settings.name](model=settings.model, config=config)

    @classmethod
    def available_providers(cls) -> List[str]:
        """Get list of available provider names."""
        return list(cls._providers.keys())
