"""設定管理モジュール"""

from personachat.config.loader import (
    ConfigError,
    ConfigValidationError,
    EnvironmentVariableError,
    expand_env_vars,
    load_config,
)
from personachat.config.models import (
    ANTHROPIC_MODELS,
    OPENAI_MODELS,
    CatalogConfig,
    Config,
    ConversationConfig,
    HttpConfig,
    LoggingConfig,
    ProviderSettings,
    StorageConfig,
)

__all__ = [
    "ANTHROPIC_MODELS",
    "OPENAI_MODELS",
    "CatalogConfig",
    "Config",
    "ConfigError",
    "ConfigValidationError",
    "ConversationConfig",
    "EnvironmentVariableError",
    "HttpConfig",
    "LoggingConfig",
    "ProviderSettings",
    "StorageConfig",
    "expand_env_vars",
    "load_config",
]
