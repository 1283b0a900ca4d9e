from __future__ import annotations
from typing import Dict, Any, Optional
import json
import re
import time
import logging

from openai import AsyncOpenAI
from openai import APIError, APIStatusError, APITimeoutError, APIConnectionError

from .base import (
    ModelProvider, ChatRequest, ModelReply,
    StructuredReply, EmptyReply, Refusal, TransportFailure,
)

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = {408, 409, 429, 500, 502, 503, 504}

_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, (APITimeoutError, APIConnectionError)):
        return True
    if isinstance(exc, APIStatusError):
        return exc.status_code in RETRYABLE_STATUS
    return False


def _decode(content: str) -> Any:
    """JSON payload of a reply, tolerating a ```json fence; raw text otherwise."""
    text = content.strip()
    match = _FENCE.match(text)
    if match:
        text = match.group(1)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return content


class OpenAIProvider(ModelProvider):
    def __init__(self, api_key: str, base_url: Optional[str] = None, default_headers: Optional[Dict[str, str]] = None, timeout: float = 60.0, max_retries: int = 0, **kwargs):
        #sdk retries stay off; the flow runner owns the retry policy
        self.client = AsyncOpenAI(
            base_url=base_url,
            api_key=api_key,
            default_headers=default_headers or {},
            timeout=timeout,
            max_retries=max_retries,
            **kwargs
        )
        self.base_url = base_url
        self.timeout = timeout

    async def chat(self, req: ChatRequest) -> ModelReply:
        completion_params: Dict[str, Any] = {
            "model": req.model,
            "messages": req.messages,
            **dict(req.params or {}),
        }
        if req.schema is not None:
            completion_params["response_format"] = {
                "type": "json_schema",
                "json_schema": {
                    "name": req.schema_name,
                    "schema": req.schema,
                },
            }
        if req.stop:
            completion_params["stop"] = req.stop

        meta: Dict[str, Any] = {
            "provider": "openai",
            "model": req.model,
            "base_url": self.base_url or "https://api.openai.com/v1",
        }

        t0 = time.perf_counter()
        try:
            response = await self.client.chat.completions.create(**completion_params)
        except APITimeoutError as e:
            return TransportFailure(f"Model request timed out: {e}", retryable=True, timed_out=True, meta=meta)
        except APIError as e:
            status = getattr(e, "status_code", None)
            if status is not None:
                meta["status_code"] = status
            return TransportFailure(f"Model API error: {e}", retryable=_is_retryable(e), meta=meta)
        meta["latency"] = time.perf_counter() - t0

        if getattr(response, "usage", None):
            meta["usage"] = response.usage.model_dump()
        if getattr(response, "id", None):
            meta["id"] = response.id

        if not response.choices:
            return EmptyReply(meta=meta)

        choice = response.choices[0]
        meta["finish_reason"] = choice.finish_reason
        refusal = getattr(choice.message, "refusal", None)
        if refusal:
            return Refusal(reason=refusal, meta=meta)
        if choice.finish_reason == "content_filter":
            return Refusal(reason="Reply blocked by the provider's content filter", meta=meta)

        content = choice.message.content
        if content is None or not content.strip():
            return EmptyReply(meta=meta)
        return StructuredReply(value=_decode(content), meta=meta)

    async def health_check(self) -> bool:
        try:
            await self.client.models.list()
            return True
        except APIError as e:
            logger.warning("Health check failed for %s: %s", self.base_url, e)
            return False

    async def cleanup(self) -> None:
        await self.client.close()
