"""YAML設定ファイルの読み込みと環境変数展開"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from personachat.config.models import (
    CatalogConfig,
    Config,
    ConversationConfig,
    HttpConfig,
    LoggingConfig,
    ProviderSettings,
    StorageConfig,
    default_provider_settings,
)
from personachat.domain.entities.provider import ProviderType


class ConfigError(Exception):
    """設定関連の基底例外"""


class ConfigValidationError(ConfigError):
    """設定値のバリデーションエラー"""


class EnvironmentVariableError(ConfigError):
    """環境変数が見つからないエラー"""


# 環境変数パターン: ${VAR_NAME}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def expand_env_vars(value: str) -> str:
    """文字列中の ${VAR_NAME} を環境変数の値に置換する

    Args:
        value: 置換対象の文字列

    Returns:
        環境変数が展開された文字列

    Raises:
        EnvironmentVariableError: 環境変数が未設定
    """
    if not value:
        return value

    def replace_var(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            raise EnvironmentVariableError(
                f"Environment variable '{var_name}' is not set"
            )
        return env_value

    return ENV_VAR_PATTERN.sub(replace_var, value)


def _expand_recursive(data: Any) -> Any:
    """データ構造を再帰的に走査し、文字列中の環境変数を展開する"""
    if isinstance(data, dict):
        return {key: _expand_recursive(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_recursive(item) for item in data]
    elif isinstance(data, str):
        return expand_env_vars(data)
    else:
        return data


def _validate_required_field(data: dict[str, Any], field: str, parent: str = "") -> Any:
    """必須フィールドの存在を検証する

    Args:
        data: 検証対象のdict
        field: フィールド名
        parent: 親フィールド名（エラーメッセージ用）

    Returns:
        フィールドの値

    Raises:
        ConfigValidationError: フィールドが存在しない
    """
    if field not in data or data[field] is None:
        full_path = f"{parent}.{field}" if parent else field
        raise ConfigValidationError(f"Required field '{full_path}' is missing")
    return data[field]


def _positive_int(data: dict[str, Any], field: str, default: int, parent: str) -> int:
    """正の整数フィールドを取得する"""
    value = data.get(field, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigValidationError(
            f"Field '{parent}.{field}' must be a positive integer, got {value!r}"
        )
    return value


def _load_conversation_config(data: dict[str, Any] | None) -> ConversationConfig:
    """conversation セクションを読み込む"""
    if not data:
        return ConversationConfig()

    defaults = ConversationConfig()
    config = ConversationConfig(
        max_tokens=_positive_int(
            data, "max_tokens", defaults.max_tokens, "conversation"
        ),
        max_message_age=_positive_int(
            data, "max_message_age", defaults.max_message_age, "conversation"
        ),
        max_messages=_positive_int(
            data, "max_messages", defaults.max_messages, "conversation"
        ),
        reserved_tokens=_positive_int(
            data, "reserved_tokens", defaults.reserved_tokens, "conversation"
        ),
    )
    if config.reserved_tokens >= config.max_tokens:
        raise ConfigValidationError(
            "Field 'conversation.reserved_tokens' must be smaller than "
            "'conversation.max_tokens'"
        )
    return config


def _load_provider_settings(
    data: dict[str, Any] | None,
) -> dict[ProviderType, ProviderSettings]:
    """providers セクションを読み込む（未指定の値はデフォルトを使う）"""
    providers = default_provider_settings()
    if not data:
        return providers

    for key, item in data.items():
        try:
            provider_type = ProviderType(key)
        except ValueError:
            raise ConfigValidationError(f"Unknown provider 'providers.{key}'") from None

        item = item or {}
        default = providers[provider_type]
        models = item.get("models", default.models)
        if not isinstance(models, list) or not models:
            raise ConfigValidationError(
                f"Field 'providers.{key}.models' must be a non-empty list"
            )
        providers[provider_type] = ProviderSettings(
            base_url=item.get("base_url", default.base_url).rstrip("/"),
            models=[str(model) for model in models],
            api_key=item.get("api_key") or None,
        )
    return providers


def load_config(path: str | Path) -> Config:
    """設定ファイルを読み込む

    Args:
        path: config.yaml のパス

    Returns:
        Config オブジェクト

    Raises:
        FileNotFoundError: ファイルが存在しない
        ConfigValidationError: 必須項目が欠落
        EnvironmentVariableError: 環境変数が未設定
        yaml.YAMLError: YAML構文エラー
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        raw_data = yaml.safe_load(f) or {}

    # 環境変数を展開
    data = _expand_recursive(raw_data)

    # 必須セクションの検証
    storage_data = _validate_required_field(data, "storage")
    catalog_data = _validate_required_field(data, "catalog")

    storage = StorageConfig(
        database_path=_validate_required_field(
            storage_data, "database_path", "storage"
        ),
    )
    catalog = CatalogConfig(
        manifest=_validate_required_field(catalog_data, "manifest", "catalog"),
    )

    conversation = _load_conversation_config(data.get("conversation"))
    providers = _load_provider_settings(data.get("providers"))

    http_data = data.get("http") or {}
    http = HttpConfig(timeout_seconds=http_data.get("timeout_seconds"))

    # LoggingConfig (optional)
    logging_config: LoggingConfig | None = None
    logging_data = data.get("logging")
    if logging_data:
        logging_config = LoggingConfig(
            level=logging_data.get("level", "INFO"),
            format=logging_data.get(
                "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            ),
            loggers=logging_data.get("loggers"),
            debug_llm_messages=logging_data.get("debug_llm_messages", False),
        )

    return Config(
        storage=storage,
        catalog=catalog,
        conversation=conversation,
        providers=providers,
        http=http,
        logging=logging_config,
    )
