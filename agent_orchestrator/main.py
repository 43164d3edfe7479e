"""Engine assembly.

Builds a ready-to-use PipelineController from settings: structured
logging, the JSON file store, the saved workspace and the HTTP gateway.

Example:
    ```python
    async with engine_session() as engine:
        engine.controller.start("Draft a launch plan")
        await engine.controller.send_turn()
    ```
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from agent_orchestrator.core.config import Settings, get_settings
from agent_orchestrator.core.logging import configure_logging, get_logger
from agent_orchestrator.gateway.http_gateway import HTTPGateway
from agent_orchestrator.gateway.protocols import AIGatewayProtocol
from agent_orchestrator.models.credentials import PROVIDERS, ProviderCredentials
from agent_orchestrator.persistence.json_store import JSONFilePersistence
from agent_orchestrator.persistence.protocols import PersistenceProtocol
from agent_orchestrator.persistence.repository import GUARDRAILS_KEY, WorkspaceRepository
from agent_orchestrator.pipeline.controller import PipelineController


logger = get_logger(__name__)


@dataclass
class Engine:
    """Wired engine components."""

    controller: PipelineController
    gateway: AIGatewayProtocol
    repository: WorkspaceRepository

    def save(self) -> None:
        """Persist the controller's workspace."""
        self.repository.save_workspace(self.controller.workspace)

    async def close(self) -> None:
        await self.gateway.close()


def create_engine(
    settings: Settings | None = None,
    gateway: AIGatewayProtocol | None = None,
    store: PersistenceProtocol | None = None,
) -> Engine:
    """Assemble the engine.

    Stored credentials win; providers with no stored key fall back to
    the ``*_api_key`` settings.

    Args:
        settings: Engine settings; defaults to ``get_settings()``.
        gateway: Completion backend; defaults to an HTTPGateway on
            ``llm_gateway_url``.
        store: Key-value and run store; defaults to JSON files under
            ``data_dir``.
    """
    settings = settings or get_settings()
    configure_logging()

    store = store or JSONFilePersistence(settings.data_dir)
    gateway = gateway or HTTPGateway(settings.llm_gateway_url, timeout=settings.llm_timeout_seconds)
    repository = WorkspaceRepository(store)

    workspace = repository.load_workspace()
    from_env = ProviderCredentials.from_settings(settings)
    stored = workspace.credentials
    workspace.credentials = ProviderCredentials(
        **{p: getattr(stored, p) if stored.for_provider(p) else getattr(from_env, p) for p in PROVIDERS}
    )
    if store.load(GUARDRAILS_KEY) is None:
        workspace.guardrails_enabled = settings.guardrails_enabled
    workspace.global_memory_enabled = settings.global_memory_enabled

    controller = PipelineController(workspace, gateway=gateway, persistence=store, settings=settings)
    logger.info(
        "engine_created",
        agents=len(workspace.agents),
        steps=len(workspace.workflow),
        providers=workspace.credentials.configured_providers(),
    )
    return Engine(controller=controller, gateway=gateway, repository=repository)


@asynccontextmanager
async def engine_session(
    settings: Settings | None = None,
    gateway: AIGatewayProtocol | None = None,
    store: PersistenceProtocol | None = None,
) -> AsyncGenerator[Engine, None]:
    """Engine lifespan: saves the workspace and closes the gateway on exit."""
    engine = create_engine(settings, gateway=gateway, store=store)
    try:
        yield engine
    finally:
        engine.save()
        await engine.close()
        logger.info("engine_closed")


__all__ = ["Engine", "create_engine", "engine_session"]
