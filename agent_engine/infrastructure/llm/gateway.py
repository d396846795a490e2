"""
Chat model gateway - resolves a langchain chat model from agent settings
"""

from typing import Dict, Any
import structlog
from langchain.chat_models import init_chat_model
from langchain_core.language_models.chat_models import BaseChatModel

from agent_engine.config import AgentSettings

logger = structlog.get_logger(__name__)


# Client types used in agent settings mapped to langchain provider names
PROVIDER_ALIASES: Dict[str, str] = {
    "openai": "openai",
    "anthropic": "anthropic",
    "google": "google_genai",
}


def create_chat_model(settings: AgentSettings) -> BaseChatModel:
    """
    Build the chat model for an agent

    Args:
        settings: Agent settings carrying model name, provider and credentials

    Returns:
        A chat model that supports tool binding
    """

    provider = PROVIDER_ALIASES.get(settings.provider, settings.provider)

    kwargs: Dict[str, Any] = {}
    if settings.api_key:
        kwargs["api_key"] = settings.api_key
    if settings.base_url:
        kwargs["base_url"] = settings.base_url

    logger.info("Creating chat model", model=settings.model, provider=provider)

    return init_chat_model(settings.model, model_provider=provider, **kwargs)
