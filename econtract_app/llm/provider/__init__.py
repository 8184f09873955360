"""Analysis providers.

:func:`provider_from_config` picks the implementation for the resolved
configuration: the deterministic mock in demo setups, otherwise an
OpenAI-compatible chat-completions endpoint.
"""

from econtract_app.config import AppConfig

from .base import AnalysisProvider, ProviderError, ProviderTimeout, parse_analysis
from .chat_completions import ChatCompletionsProvider
from .mock import MockAnalysisProvider


def provider_from_config(config: AppConfig) -> AnalysisProvider:
    if config.ai_provider == "deepseek" and config.ai_api_key:
        return ChatCompletionsProvider(
            api_key=config.ai_api_key,
            base_url=config.ai_base_url,
            model=config.ai_model,
        )
    return MockAnalysisProvider()


__all__ = [
    "AnalysisProvider",
    "ChatCompletionsProvider",
    "MockAnalysisProvider",
    "ProviderError",
    "ProviderTimeout",
    "parse_analysis",
    "provider_from_config",
]
