"""Step executor - one agent turn from prompt to memory entry.

Order of work for every turn:
1. Compose the outbound prompt (goal prompt on a step's opening turn).
2. Consult the guardrail gate. A block returns BlockedResult and no
   gateway call is made.
3. Resolve the provider key; a missing key fails before any network call.
4. Assemble system prompt, de-duplicated context and the memory block.
5. Call the gateway (plain or streamed).
6. On success, record one MemoryEntry. On failure, raise the classified
   GatewayError and leave memory untouched.

The executor never retries.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from agent_orchestrator.core.config import Settings, get_settings
from agent_orchestrator.core.constants import (
    GOAL_TEMPLATE,
    OPENING_CLOSER,
    REQUEST_TEMPLATE,
    TASK_TEMPLATE,
)
from agent_orchestrator.core.exceptions import GatewayError, MissingCredentialError
from agent_orchestrator.core.logging import get_logger
from agent_orchestrator.gateway.errors import classify_gateway_error
from agent_orchestrator.gateway.protocols import GatewayRequest
from agent_orchestrator.gateway.providers import provider_for_model
from agent_orchestrator.guardrails.categories import SAFETY_INSTRUCTIONS
from agent_orchestrator.guardrails.gate import GuardrailGate, GuardrailSettings, GuardrailVerdict
from agent_orchestrator.memory.log import GlobalMemoryLog, MemoryEntry
from agent_orchestrator.models.agents import Agent, Artifact, WorkflowStep, merge_artifacts
from agent_orchestrator.models.turns import Turn


if TYPE_CHECKING:
    from agent_orchestrator.gateway.protocols import AIGatewayProtocol, DeltaCallback
    from agent_orchestrator.models.credentials import ProviderCredentials


logger = get_logger(__name__)


# =============================================================================
# Request / result models
# =============================================================================


class TurnRequest(BaseModel):
    """Inputs for one agent turn.

    Attributes:
        agent: Agent answering the turn.
        step_number: 1-based step number, used for prompts and memory.
        user_message: Raw user text.
        prior_turns: The step's history before this turn. Empty means
            this is the step's opening turn.
        step: Workflow step, for task prompt and step-local files.
        pipeline_files: Outputs of finalized steps.
        attachments: Files attached to this turn only.
        override_guardrails: User confirmed a soft-category block.
        guardrails_enabled: Master guardrail switch.
        guardrail_settings: Per-category switches.
        memory_enabled: Inject and record global memory.
        record_memory: Record this turn's MemoryEntry on success.
        model_id: Model override (comparison); defaults to the agent's model.
    """

    model_config = ConfigDict(protected_namespaces=())

    agent: Agent
    step_number: int = Field(..., ge=1)
    user_message: str
    prior_turns: list[Turn] = Field(default_factory=list)
    step: WorkflowStep | None = None
    pipeline_files: list[Artifact] = Field(default_factory=list)
    attachments: list[Artifact] = Field(default_factory=list)
    override_guardrails: bool = False
    guardrails_enabled: bool = True
    guardrail_settings: GuardrailSettings = Field(default_factory=GuardrailSettings)
    memory_enabled: bool = True
    record_memory: bool = True
    model_id: str | None = None

    @property
    def is_opening(self) -> bool:
        return not self.prior_turns

    @property
    def effective_model(self) -> str:
        return self.model_id or self.agent.model


class TurnResult(BaseModel):
    """A successful turn."""

    model_config = ConfigDict(protected_namespaces=())

    output: str
    prompt: str
    model_id: str
    user_turn: Turn
    model_turn: Turn
    memory_entry: MemoryEntry | None = None


class BlockedResult(BaseModel):
    """A turn stopped by the guardrail gate. No gateway call was made."""

    verdict: GuardrailVerdict
    prompt: str

    @property
    def category_id(self) -> str | None:
        return self.verdict.category_id

    @property
    def can_override(self) -> bool:
        return self.verdict.can_override


# =============================================================================
# Prompt composition
# =============================================================================


def compose_prompt(request: TurnRequest) -> str:
    """Outbound prompt text for a turn.

    Opening turns wrap the message as a GOAL (step 1) or USER REQUEST
    (later steps), add the step's task instruction and a fixed closer.
    Follow-up turns send the message unchanged.
    """
    if not request.is_opening:
        return request.user_message

    template = GOAL_TEMPLATE if request.step_number == 1 else REQUEST_TEMPLATE
    prompt = template.format(message=request.user_message)
    if request.step is not None and request.step.task_prompt:
        prompt += TASK_TEMPLATE.format(task=request.step.task_prompt)
    return prompt + OPENING_CLOSER


def history_text(request: TurnRequest, prompt: str) -> str:
    """Text stored on the USER turn in the step history."""
    if request.is_opening:
        return prompt
    text = request.user_message
    if request.attachments:
        text += f"\n[Attached {len(request.attachments)} file(s)]"
    return text


def build_system_prompt(agent: Agent, guardrails_enabled: bool) -> str:
    if not guardrails_enabled:
        return agent.prompt
    return f"{agent.prompt}\n\n{SAFETY_INSTRUCTIONS}"


def build_context(request: TurnRequest) -> list[Artifact]:
    """Agent knowledge, then step files, then pipeline files; first name wins."""
    step_files = request.step.files if request.step is not None else []
    return merge_artifacts(request.agent.knowledge, step_files, request.pipeline_files)


# =============================================================================
# Executor
# =============================================================================


class StepExecutor:
    """Runs single agent turns against an AI gateway."""

    def __init__(
        self,
        gateway: AIGatewayProtocol,
        gate: GuardrailGate | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._gateway = gateway
        self._gate = gate or GuardrailGate()
        self._settings = settings or get_settings()

    @property
    def gate(self) -> GuardrailGate:
        return self._gate

    def check_guardrails(self, request: TurnRequest, prompt: str) -> GuardrailVerdict | None:
        """Return the blocking verdict for ``prompt``, or None if it may be sent.

        An override lifts only overridable verdicts.
        """
        if not request.guardrails_enabled:
            return None
        verdict = self._gate.evaluate(prompt, request.guardrail_settings)
        if not verdict.blocked or verdict.bypassed_by(request.override_guardrails):
            return None
        return verdict

    def _resolve_key(self, credentials: ProviderCredentials, model_id: str) -> tuple[str, str]:
        provider = provider_for_model(model_id)
        key = credentials.for_provider(provider)
        if key is None:
            raise MissingCredentialError(
                f"No API key configured for {provider.upper()}",
                provider=provider,
                model=model_id,
            )
        return provider, key

    async def execute_turn(
        self,
        request: TurnRequest,
        memory: GlobalMemoryLog,
        credentials: ProviderCredentials,
        on_delta: DeltaCallback | None = None,
    ) -> TurnResult | BlockedResult:
        """Run one turn.

        Args:
            request: Turn inputs.
            memory: Global memory log read for context and written on success.
            credentials: Provider keys.
            on_delta: When given, the streamed gateway path is used and each
                chunk is reported as (delta, cumulative).

        Returns:
            TurnResult on success, BlockedResult when the gate blocks.

        Raises:
            MissingCredentialError: No key for the model's provider.
            GatewayError: Classified gateway failure.
        """
        prompt = compose_prompt(request)
        model_id = request.effective_model

        verdict = self.check_guardrails(request, prompt)
        if verdict is not None:
            logger.warning(
                "guardrail_blocked",
                category=verdict.category_id,
                severity=verdict.severity.value if verdict.severity else None,
                agent=request.agent.name,
                step=request.step_number,
            )
            return BlockedResult(verdict=verdict, prompt=prompt)

        provider, key = self._resolve_key(credentials, model_id)
        gateway_request = GatewayRequest(
            provider=provider,
            model=model_id,
            api_key=SecretStr(key),
            system_prompt=build_system_prompt(request.agent, request.guardrails_enabled),
            user_prompt=prompt,
            context=build_context(request),
            prior_turns=request.prior_turns,
            attachments=request.attachments,
            memory_text=memory.as_block() if request.memory_enabled else "",
            temperature=self._settings.temperature,
            max_output_tokens=self._settings.max_output_tokens,
        )

        try:
            if on_delta is not None:
                output = await self._gateway.stream(gateway_request, on_delta)
            else:
                output = await self._gateway.complete(gateway_request)
        except GatewayError as e:
            logger.error("turn_failed", kind=e.kind, provider=provider, model=model_id)
            raise
        except Exception as e:
            error = classify_gateway_error(e, provider=provider, model=model_id)
            logger.error("turn_failed", kind=error.kind, provider=provider, model=model_id)
            raise error from e

        entry = None
        if request.memory_enabled and request.record_memory:
            entry = memory.record(request.agent.name, request.step_number, request.user_message, output)

        return TurnResult(
            output=output,
            prompt=prompt,
            model_id=model_id,
            user_turn=Turn.user(history_text(request, prompt), message=request.user_message),
            model_turn=Turn.model(output, model_id=model_id),
            memory_entry=entry,
        )

    async def stream_turn(
        self,
        request: TurnRequest,
        memory: GlobalMemoryLog,
        credentials: ProviderCredentials,
        on_delta: DeltaCallback,
    ) -> TurnResult | BlockedResult:
        """Streaming variant of :meth:`execute_turn`."""
        return await self.execute_turn(request, memory, credentials, on_delta=on_delta)


__all__ = [
    "BlockedResult",
    "StepExecutor",
    "TurnRequest",
    "TurnResult",
    "build_context",
    "build_system_prompt",
    "compose_prompt",
    "history_text",
]
