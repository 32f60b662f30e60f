import hashlib

from casual_llm import (
    ClientConfig,
    LLMClient,
    Model,
    ModelConfig,
    Provider,
    create_client,
    create_model,
)

from casual_hub.config import HubSettings
from casual_hub.logging import get_logger

logger = get_logger("model.factory")


class ModelFactory:
    PROVIDER_MAP = {
        "openai": Provider.OPENAI,
        "ollama": Provider.OLLAMA,
    }

    def __init__(self, settings: HubSettings) -> None:
        self.settings = settings
        self._clients: dict[str, LLMClient] = {}
        self._models: dict[tuple[str, str], Model] = {}

    def _get_client_key(self, provider: Provider, endpoint: str | None, api_key: str | None) -> str:
        key_id = hashlib.sha256(api_key.encode()).hexdigest()[:12] if api_key else "nokey"
        return f"{provider.value}:{endpoint or 'default'}:{key_id}"

    def _get_or_create_client(
        self, provider: Provider, endpoint: str | None, api_key: str | None
    ) -> tuple[str, LLMClient]:
        key = self._get_client_key(provider, endpoint, api_key)
        existing = self._clients.get(key)
        if existing:
            logger.debug("Reusing cached client for %s", key)
            return key, existing

        logger.info("Creating client for %s:%s", provider.value, endpoint or "default")
        client = create_client(
            ClientConfig(
                provider=provider,
                base_url=endpoint,
                api_key=api_key,
            )
        )
        self._clients[key] = client
        return key, client

    def get_model(self, name: str | None = None, api_key: str | None = None) -> Model:
        """Return a model for ``name``, falling back to the configured default.

        A per-request ``api_key`` takes precedence over the configured one.
        """
        name = name or self.settings.default_model
        provider = self.PROVIDER_MAP.get(self.settings.llm_provider)
        if provider is None:
            logger.error("Unknown provider '%s'", self.settings.llm_provider)
            raise ValueError(f"Unknown provider: {self.settings.llm_provider}")

        if provider == Provider.OPENAI:
            api_key = api_key or self.settings.api_key
        else:
            api_key = None
        client_key, client = self._get_or_create_client(provider, self.settings.llm_base_url, api_key)

        existing = self._models.get((client_key, name))
        if existing:
            logger.debug("Reusing cached model '%s'", name)
            return existing

        logger.info("Creating model '%s' (provider=%s)", name, provider.value)
        model = create_model(client, ModelConfig(name=name))
        self._models[(client_key, name)] = model
        return model
