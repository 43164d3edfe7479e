"""Gateway - Completion backend contract, provider routing and HTTP adapter."""

from agent_orchestrator.gateway.errors import classify_gateway_error
from agent_orchestrator.gateway.http_gateway import HTTPGateway, build_messages
from agent_orchestrator.gateway.protocols import AIGatewayProtocol, DeltaCallback, GatewayRequest
from agent_orchestrator.gateway.providers import has_credential_for_model, provider_for_model


__all__ = [
    "AIGatewayProtocol",
    "DeltaCallback",
    "GatewayRequest",
    "HTTPGateway",
    "build_messages",
    "classify_gateway_error",
    "has_credential_for_model",
    "provider_for_model",
]
