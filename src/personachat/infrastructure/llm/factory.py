"""Provider adapter factory."""

import httpx

from personachat.config.models import ProviderSettings, default_provider_settings
from personachat.domain.entities import ProviderConfig, ProviderType
from personachat.domain.services.protocols import ProviderAdapter
from personachat.infrastructure.llm.anthropic_provider import AnthropicProvider
from personachat.infrastructure.llm.model_limits import ModelLimitCache
from personachat.infrastructure.llm.openai_provider import OpenAIProvider


class ProviderFactory:
    """Creates provider adapters bound to one model.

    Holds the process-wide collaborators every adapter shares: the HTTP client
    and the model limit cache.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        limit_cache: ModelLimitCache | None = None,
        settings: dict[ProviderType, ProviderSettings] | None = None,
        debug_llm_messages: bool = False,
    ) -> None:
        """Initialize the factory.

        Args:
            http_client: Shared async HTTP client.
            limit_cache: Model limit cache shared by OpenAI adapters.
            settings: Per-provider connection settings.
            debug_llm_messages: If True, adapters log traffic at INFO.
        """
        self._http_client = http_client
        self._limit_cache = limit_cache or ModelLimitCache()
        self._settings = settings or default_provider_settings()
        self._debug_llm_messages = debug_llm_messages

    @property
    def limit_cache(self) -> ModelLimitCache:
        """Shared model limit cache."""
        return self._limit_cache

    def create(self, provider_config: ProviderConfig, api_key: str) -> ProviderAdapter:
        """Create an adapter for a provider/model.

        Args:
            provider_config: Provider type and model.
            api_key: API key for the provider.

        Returns:
            Provider adapter.

        Raises:
            ValueError: Unsupported provider type.
        """
        settings = self._settings[provider_config.type]
        if provider_config.type == ProviderType.ANTHROPIC:
            return AnthropicProvider(
                api_key,
                provider_config.model,
                self._http_client,
                base_url=settings.base_url,
                debug_llm_messages=self._debug_llm_messages,
            )
        if provider_config.type == ProviderType.OPENAI:
            return OpenAIProvider(
                api_key,
                provider_config.model,
                self._http_client,
                self._limit_cache,
                base_url=settings.base_url,
                debug_llm_messages=self._debug_llm_messages,
            )
        raise ValueError(f"Unsupported provider: {provider_config.type}")
