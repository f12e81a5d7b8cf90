"""Two-round conversation protocol.

Round 1 gives the model the message and the capability catalog and collects
the operations it picks. Those run concurrently through the executor. Round 2
hands every result back (matched by tool-call id) and asks for a JSON reply
envelope. The model's output is advisory: the envelope is validated here and
the chart and template rules are applied in code whatever the model wrote.
"""

import asyncio
from datetime import date
from typing import Any, Callable, Iterable

from loguru import logger

from chatledger.engine.capabilities import openai_tools
from chatledger.engine.executor import OperationExecutor
from chatledger.llm.client import ChatCompleter
from chatledger.llm.envelope import parse_envelope
from chatledger.llm.prompts import (
    FALLBACK_REPLY,
    NO_TOOL_REPLY,
    REPLY_INSTRUCTION,
    build_system_prompt,
)
from chatledger.models.schemas import (
    OperationRequest,
    OperationResult,
    Platform,
    ReplyEnvelope,
)


def find_chart_url(results: Iterable[OperationResult]) -> str | None:
    for result in results:
        if result.ok:
            chart_url = result.payload.get("chartUrl")
            if isinstance(chart_url, str) and chart_url:
                return chart_url
    return None


class Dispatcher:
    def __init__(
        self,
        llm: ChatCompleter,
        executor: OperationExecutor,
        approved_templates: dict[Platform, list[str]] | None = None,
        clock: Callable[[], date] = date.today,
    ):
        self.llm = llm
        self.executor = executor
        self.approved_templates = approved_templates or {}
        self.clock = clock
        self.tools = openai_tools()

    async def process_message(self, text: str, owner_id: int, platform: Platform) -> ReplyEnvelope:
        logger.info("Processing {} message for owner #{} ({} chars)", platform.value, owner_id, len(text))
        try:
            return await self._converse(text, owner_id, platform)
        except Exception as e:
            logger.exception("Message handling failed for owner #{}: {}", owner_id, e)
            return ReplyEnvelope.text(FALLBACK_REPLY)

    async def _converse(self, text: str, owner_id: int, platform: Platform) -> ReplyEnvelope:
        templates = self.approved_templates.get(platform, [])
        conversation: list[dict[str, Any]] = [
            {"role": "system", "content": build_system_prompt(platform, self.clock(), templates)},
            {"role": "user", "content": text},
        ]

        first = await self.llm.complete(conversation, tools=self.tools)
        if not first.requests:
            logger.info("No operation chosen for owner #{}", owner_id)
            return parse_envelope((first.text or "").strip() or NO_TOOL_REPLY, templates)

        logger.info(
            "Owner #{} -> {}", owner_id, ", ".join(request.name for request in first.requests)
        )
        results = await self.run_operations(first.requests, owner_id)

        conversation.append(first.message)
        for result in results:
            conversation.append(
                {"role": "tool", "tool_call_id": result.call_id, "content": result.to_tool_content()}
            )
        conversation.append({"role": "user", "content": REPLY_INSTRUCTION})

        second = await self.llm.complete(conversation, json_mode=True)
        envelope = parse_envelope(second.text, templates)
        return self._attach_chart(envelope, results)

    async def run_operations(
        self, requests: list[OperationRequest], owner_id: int
    ) -> list[OperationResult]:
        """Execute every request in parallel; one result per request, in request order."""
        return list(
            await asyncio.gather(
                *(asyncio.to_thread(self.executor.execute, request, owner_id) for request in requests)
            )
        )

    @staticmethod
    def _attach_chart(envelope: ReplyEnvelope, results: Iterable[OperationResult]) -> ReplyEnvelope:
        if envelope.image_url:
            return envelope
        chart_url = find_chart_url(results)
        if chart_url is None:
            return envelope
        logger.info("Reply omitted the chart; attaching it")
        return envelope.model_copy(update={"image_url": chart_url})
