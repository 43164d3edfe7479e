"""Comparison runner - fan one user turn out to several models.

Every model runs concurrently through the step executor with guardrails
off and the override forced on. The join settles all calls: one model
failing never cancels or affects the others.

Comparison calls never write global memory. Committing a chosen result
is the controller's job.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict

from agent_orchestrator.core.constants import MIN_COMPARISON_MODELS
from agent_orchestrator.core.exceptions import GatewayError, PreconditionError
from agent_orchestrator.core.logging import get_logger
from agent_orchestrator.execution.executor import BlockedResult, StepExecutor, TurnRequest


if TYPE_CHECKING:
    from agent_orchestrator.memory.log import GlobalMemoryLog
    from agent_orchestrator.models.credentials import ProviderCredentials


logger = get_logger(__name__)


class ComparisonStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class ProgressStatus(str, Enum):
    STARTING = "starting"
    COMPLETE = "complete"
    ERROR = "error"


ProgressCallback = Callable[[str, ProgressStatus, int, "ComparisonResult | None"], None]
"""Called with (model_id, status, position, result) as each model progresses."""


class ComparisonResult(BaseModel):
    """Outcome of one model in a comparison batch."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_id: str
    status: ComparisonStatus
    output: str = ""
    error: str | None = None
    error_kind: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == ComparisonStatus.SUCCESS


class ComparisonRunner:
    """Concurrent multi-model runner built on a StepExecutor."""

    def __init__(self, executor: StepExecutor) -> None:
        self._executor = executor

    async def compare(
        self,
        model_ids: list[str],
        request: TurnRequest,
        memory: GlobalMemoryLog,
        credentials: ProviderCredentials,
        on_progress: ProgressCallback | None = None,
    ) -> list[ComparisonResult]:
        """Run ``request`` once per model.

        Args:
            model_ids: At least two model identifiers.
            request: Common turn inputs; model, guardrail and memory fields
                are overridden per call.
            memory: Global memory log, read for context only.
            credentials: Provider keys.
            on_progress: Optional per-model progress callback.

        Returns:
            One result per model, in the order given.

        Raises:
            PreconditionError: Fewer than two models.
        """
        if len(model_ids) < MIN_COMPARISON_MODELS:
            raise PreconditionError(
                f"Comparison needs at least {MIN_COMPARISON_MODELS} models, got {len(model_ids)}"
            )

        logger.info("comparison_started", models=model_ids, step=request.step_number)
        tasks = [
            self._run_one(position, model_id, request, memory, credentials, on_progress)
            for position, model_id in enumerate(model_ids)
        ]
        settled = await asyncio.gather(*tasks, return_exceptions=True)

        results = [
            self._settle(model_id, outcome)
            for model_id, outcome in zip(model_ids, settled, strict=True)
        ]
        logger.info(
            "comparison_finished",
            succeeded=sum(r.succeeded for r in results),
            failed=sum(not r.succeeded for r in results),
        )
        return results

    @staticmethod
    def _settle(model_id: str, outcome: Any) -> ComparisonResult:
        if isinstance(outcome, ComparisonResult):
            return outcome
        # _run_one converts failures itself; this covers cancellation
        return ComparisonResult(model_id=model_id, status=ComparisonStatus.ERROR, error=str(outcome))

    async def _run_one(
        self,
        position: int,
        model_id: str,
        request: TurnRequest,
        memory: GlobalMemoryLog,
        credentials: ProviderCredentials,
        on_progress: ProgressCallback | None,
    ) -> ComparisonResult:
        _notify(on_progress, model_id, ProgressStatus.STARTING, position, None)
        model_request = request.model_copy(
            update={
                "model_id": model_id,
                "guardrails_enabled": False,
                "override_guardrails": True,
                "record_memory": False,
            }
        )
        try:
            outcome = await self._executor.execute_turn(model_request, memory, credentials)
        except GatewayError as e:
            result = ComparisonResult(
                model_id=model_id,
                status=ComparisonStatus.ERROR,
                error=e.message,
                error_kind=e.kind,
            )
        except Exception as e:
            logger.exception("comparison_model_crashed", model=model_id)
            result = ComparisonResult(model_id=model_id, status=ComparisonStatus.ERROR, error=str(e))
        else:
            if isinstance(outcome, BlockedResult):
                result = ComparisonResult(
                    model_id=model_id,
                    status=ComparisonStatus.ERROR,
                    error=outcome.verdict.reason or "Blocked by guardrails",
                )
            else:
                result = ComparisonResult(
                    model_id=model_id, status=ComparisonStatus.SUCCESS, output=outcome.output
                )

        status = ProgressStatus.COMPLETE if result.succeeded else ProgressStatus.ERROR
        _notify(on_progress, model_id, status, position, result)
        return result


def _notify(
    callback: ProgressCallback | None,
    model_id: str,
    status: ProgressStatus,
    position: int,
    result: ComparisonResult | None,
) -> None:
    if callback is not None:
        callback(model_id, status, position, result)


__all__ = [
    "ComparisonResult",
    "ComparisonRunner",
    "ComparisonStatus",
    "ProgressCallback",
    "ProgressStatus",
]
