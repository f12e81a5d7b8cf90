import json
from dataclasses import dataclass, field
from typing import Any, Protocol

from loguru import logger
from openai import AsyncOpenAI, OpenAIError

from chatledger.errors import CompletionError, MalformedModelOutputError
from chatledger.models.schemas import OperationRequest


@dataclass(slots=True)
class Completion:
    """One model turn: its text, the operations it asked for, and the raw assistant message."""

    text: str | None
    requests: list[OperationRequest] = field(default_factory=list)
    message: dict[str, Any] = field(default_factory=dict)


class ChatCompleter(Protocol):
    async def complete(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        json_mode: bool = False,
    ) -> Completion: ...


class CompletionClient:
    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://openrouter.ai/api/v1",
        temperature: float = 0.3,
    ):
        self.client = AsyncOpenAI(base_url=base_url, api_key=api_key)
        self.model = model
        self.temperature = temperature

    async def complete(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        json_mode: bool = False,
    ) -> Completion:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
        }
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self.client.chat.completions.create(**kwargs)
        except OpenAIError as e:
            raise CompletionError(f"LLM request failed: {e}") from e

        if not response.choices:
            raise MalformedModelOutputError("LLM returned no choices")

        message = response.choices[0].message
        logger.debug(
            "LLM raw response: content={!r} tool_calls={}",
            message.content,
            len(message.tool_calls or []),
        )

        requests: list[OperationRequest] = []
        tool_calls: list[dict[str, Any]] = []
        for call in message.tool_calls or []:
            if call.type != "function":
                continue
            try:
                arguments = json.loads(call.function.arguments or "{}")
            except json.JSONDecodeError as e:
                raise MalformedModelOutputError(
                    f"Arguments for {call.function.name} are not valid JSON"
                ) from e
            if not isinstance(arguments, dict):
                raise MalformedModelOutputError(f"Arguments for {call.function.name} are not an object")

            requests.append(
                OperationRequest(call_id=call.id, name=call.function.name, arguments=arguments)
            )
            tool_calls.append(
                {
                    "id": call.id,
                    "type": "function",
                    "function": {
                        "name": call.function.name,
                        "arguments": call.function.arguments or "{}",
                    },
                }
            )

        assistant: dict[str, Any] = {"role": "assistant", "content": message.content}
        if tool_calls:
            assistant["tool_calls"] = tool_calls
        return Completion(text=message.content, requests=requests, message=assistant)
