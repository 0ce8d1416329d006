"""Model context window lookup."""

import logging

import litellm

logger = logging.getLogger(__name__)

ANTHROPIC_CONTEXT_LIMITS: dict[str, int] = {
    "claude-3-5-sonnet-20241022": 200000,
    "claude-3-5-sonnet-20240620": 200000,
    "claude-3-5-haiku-20241022": 200000,
    "claude-3-opus-20240229": 200000,
    "claude-3-sonnet-20240229": 200000,
    "claude-3-haiku-20240307": 200000,
    "claude-2.1": 200000,
    "claude-2.0": 100000,
    "claude-instant-1.2": 100000,
}

OPENAI_CONTEXT_LIMITS: dict[str, int] = {
    "gpt-4-turbo-preview": 128000,
    "gpt-4-turbo": 128000,
    "gpt-4o": 128000,
    "gpt-4o-mini": 128000,
    "gpt-4-32k": 32768,
    "gpt-4": 8192,
    "gpt-3.5-turbo": 16385,
}

DEFAULT_ANTHROPIC_CONTEXT_LIMIT = 100000
DEFAULT_OPENAI_CONTEXT_LIMIT = 4096


def catalog_context_window(model: str) -> int | None:
    """Look a model up in litellm's bundled model map.

    Args:
        model: Model name.

    Returns:
        Input token limit, or None if litellm does not know the model.
    """
    try:
        info = litellm.get_model_info(model)
    except Exception as e:
        # litellm raises a plain Exception for unmapped models
        logger.debug("Model %s not in litellm model map: %s", model, e)
        return None

    limit = info.get("max_input_tokens") or info.get("max_tokens")
    if not limit:
        return None
    return int(limit)


def resolve_static_limit(model: str, table: dict[str, int], default: int) -> int:
    """Resolve a context window without any remote call.

    Order: provider table, litellm model map, conservative default.
    """
    if model in table:
        return table[model]
    limit = catalog_context_window(model)
    if limit is not None:
        return limit
    logger.debug("Unknown model %s, using default context limit %d", model, default)
    return default


class ModelLimitCache:
    """Process-wide cache of resolved model context limits.

    Created once at startup and shared by every OpenAI adapter.
    """

    def __init__(self) -> None:
        self._limits: dict[str, int] = {}

    def get(self, model: str) -> int | None:
        """Cached limit for a model, or None."""
        return self._limits.get(model)

    def set(self, model: str, limit: int) -> None:
        """Cache a limit for a model."""
        self._limits[model] = limit

    def clear(self) -> None:
        """Drop every cached limit."""
        self._limits.clear()

    def __contains__(self, model: object) -> bool:
        return model in self._limits

    def __len__(self) -> int:
        return len(self._limits)
