from __future__ import annotations
from typing import Any, Dict, Optional, Protocol
import asyncio
import logging

from tenacity import AsyncRetrying, retry_if_result, stop_after_attempt, wait_exponential, wait_random

from ..errors import (
    EmptyModelOutput, FlowError, InvalidInput, InvalidModelOutput,
    ModelInvocationError,
)
from ..models.prompts import PromptText
from ..models.providers.base import (
    EmptyReply, ModelReply, Refusal, StructuredReply, TransportFailure,
)
from ..models.schema import SchemaValidationError, json_schema, validate
from .catalog import FlowCatalog
from .types import ExecutionResult, FlowDefinition, FlowStage, I, InvocationPolicy, O, RegisteredFlow

logger = logging.getLogger(__name__)


class ModelAdapter(Protocol):
    async def invoke(self, flow: str, prompt: PromptText, output_schema: Optional[Dict[str, Any]] = None) -> ModelReply:
        ...


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (dict, list, tuple)):
        return len(value) == 0
    return False


def _should_retry(reply: ModelReply) -> bool:
    return isinstance(reply, TransportFailure) and reply.retryable


class _Invocation:
    """One pass through the pipeline; never shared between calls."""

    def __init__(self, flow: str):
        self.flow = flow
        self.stage = FlowStage.IDLE
        self.attempts = 0

    def advance(self, stage: FlowStage):
        logger.debug("flow %s: %s -> %s", self.flow, self.stage.value, stage.value)
        self.stage = stage


class FlowRunner:
    def __init__(self, catalog: FlowCatalog, adapter: ModelAdapter, policy: Optional[InvocationPolicy] = None):
        self.catalog = catalog
        self.adapter = adapter
        self.policy = policy or InvocationPolicy()

    async def execute(self, definition: FlowDefinition[I, O], raw_input: Any) -> O:
        result = await self.run(definition, raw_input)
        return result.unwrap()

    async def run(self, definition: FlowDefinition[I, O], raw_input: Any) -> ExecutionResult[O]:
        registered = self.catalog.get(definition.name)
        if registered.definition != definition:
            raise KeyError(f"Flow '{definition.name}' is registered with a different definition")

        state = _Invocation(definition.name)
        try:
            value = await self._pipeline(registered, raw_input, state)
        except FlowError as failure:
            failed_in = state.stage
            state.advance(FlowStage.FAILED)
            failure.flow = definition.name
            logger.warning("flow %s failed in %s: %s: %s", definition.name, failed_in.value, failure.kind.value, failure.message)
            return ExecutionResult(flow=definition.name, failure=failure, attempts=state.attempts)

        state.advance(FlowStage.SUCCEEDED)
        logger.info("flow %s succeeded after %d attempt(s)", definition.name, state.attempts)
        return ExecutionResult(flow=definition.name, value=value, attempts=state.attempts)

    async def _pipeline(self, registered: RegisteredFlow, raw_input: Any, state: _Invocation) -> O:
        definition = registered.definition
        state.advance(FlowStage.VALIDATING_INPUT)
        try:
            payload = validate(definition.input_schema, raw_input)
        except SchemaValidationError as e:
            raise InvalidInput(f"Invalid input for {definition.name}: {e}", e.issues) from e

        state.advance(FlowStage.RENDERING)
        # startup-checked template; later edits on disk do not apply
        prompt = self.catalog.prompts.render_config(registered.prompt, payload.model_dump())

        state.advance(FlowStage.INVOKING)
        reply = await self._invoke(definition, prompt, state)

        state.advance(FlowStage.VALIDATING_OUTPUT)
        return self._accept(definition, reply, state)

    async def _invoke(self, definition: FlowDefinition, prompt: PromptText, state: _Invocation) -> ModelReply:
        schema = json_schema(definition.output_schema)
        policy = self.policy

        async def attempt() -> ModelReply:
            state.attempts += 1
            if state.attempts > 1:
                logger.warning("flow %s: retrying model call (attempt %d/%d)", definition.name, state.attempts, policy.max_attempts)
            try:
                return await asyncio.wait_for(
                    self.adapter.invoke(definition.name, prompt, schema),
                    timeout=policy.timeout_s,
                )
            except asyncio.TimeoutError:
                return TransportFailure(
                    f"Model call exceeded {policy.timeout_s}s", retryable=True, timed_out=True,
                )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(policy.max_attempts),
            wait=wait_exponential(multiplier=policy.backoff_initial_s, max=policy.backoff_max_s)
            + wait_random(0, policy.backoff_jitter_s),
            retry=retry_if_result(_should_retry),
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
        )
        try:
            return await retrying(attempt)
        except Exception as e:
            logger.exception("flow %s: model adapter raised", definition.name)
            raise ModelInvocationError(
                f"Model adapter raised {type(e).__name__}: {e}",
                reason="adapter", attempts=state.attempts,
            ) from e

    def _accept(self, definition: FlowDefinition[I, O], reply: ModelReply, state: _Invocation) -> O:
        if isinstance(reply, TransportFailure):
            raise ModelInvocationError(
                reply.message,
                retryable=reply.retryable,
                reason="timeout" if reply.timed_out else "transport",
                attempts=state.attempts,
            )
        if isinstance(reply, Refusal):
            raise ModelInvocationError(
                f"Model refused the request: {reply.reason}",
                retryable=False, reason="refusal", attempts=state.attempts,
            )
        if isinstance(reply, EmptyReply):
            raise EmptyModelOutput(f"Model produced no output for {definition.name}")
        if isinstance(reply, StructuredReply):
            if _is_empty(reply.value):
                raise EmptyModelOutput(f"Model produced an empty payload for {definition.name}")
            try:
                return validate(definition.output_schema, reply.value)
            except SchemaValidationError as e:
                raise InvalidModelOutput(
                    f"Model output for {definition.name} does not match {definition.output_schema.__name__}: {e}",
                    e.issues, raw=reply.value,
                ) from e
        raise ModelInvocationError(
            f"Model adapter returned an unsupported reply: {type(reply).__name__}",
            reason="adapter", attempts=state.attempts,
        )
