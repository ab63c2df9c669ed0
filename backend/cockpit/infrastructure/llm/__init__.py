"""LLM infrastructure module — concrete assistant implementations."""

from .openrouter_assistant_gateway import OpenRouterAssistantGateway

__all__ = [
    "OpenRouterAssistantGateway",
]
