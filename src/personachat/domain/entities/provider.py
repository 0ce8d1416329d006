"""Provider selection and conversation identity entities."""

from dataclasses import dataclass
from enum import Enum


class ProviderType(str, Enum):
    """Supported LLM providers."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"


@dataclass(frozen=True)
class ProviderConfig:
    """Provider and model chosen for a conversation."""

    type: ProviderType
    model: str


# handle, provider and model are joined in this order; the model part may
# itself contain the separator.
CONVERSATION_ID_SEPARATOR = ":"


@dataclass(frozen=True)
class ConversationId:
    """Composite conversation identity.

    The same persona can have independent conversations against different
    provider/model combinations, so all three parts form the key.

    Attributes:
        persona_handle: Persona twitter handle.
        provider: Provider type.
        model: Model name.
    """

    persona_handle: str
    provider: ProviderType
    model: str

    @classmethod
    def of(
        cls, persona_handle: str, provider_config: ProviderConfig
    ) -> "ConversationId":
        """Build the identity for a persona under a provider config."""
        return cls(
            persona_handle=persona_handle,
            provider=provider_config.type,
            model=provider_config.model,
        )

    @classmethod
    def parse(cls, key: str) -> "ConversationId":
        """Parse a key produced by ``str(conversation_id)``.

        Args:
            key: ``<handle>:<provider>:<model>``

        Returns:
            ConversationId instance.

        Raises:
            ValueError: The key is malformed or names an unknown provider.
        """
        parts = key.split(CONVERSATION_ID_SEPARATOR, 2)
        if len(parts) != 3 or not all(parts):
            raise ValueError(f"Invalid conversation id: {key!r}")
        handle, provider, model = parts
        return cls(persona_handle=handle, provider=ProviderType(provider), model=model)

    @property
    def provider_config(self) -> ProviderConfig:
        """Provider config encoded in this identity."""
        return ProviderConfig(type=self.provider, model=self.model)

    def __str__(self) -> str:
        return CONVERSATION_ID_SEPARATOR.join(
            [self.persona_handle, self.provider.value, self.model]
        )
