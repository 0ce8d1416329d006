"""設定データクラス"""

from dataclasses import dataclass, field

from personachat.domain.entities.conversation_config import ConversationConfig
from personachat.domain.entities.provider import ProviderType


ANTHROPIC_MODELS = [
    "claude-3-5-sonnet-20241022",
    "claude-3-opus-20240229",
    "claude-3-sonnet-20240229",
    "claude-2.1",
]

OPENAI_MODELS = [
    "gpt-4-turbo-preview",
    "gpt-4",
    "gpt-3.5-turbo",
]


@dataclass
class ProviderSettings:
    """プロバイダ接続設定

    Attributes:
        base_url: API のベース URL
        models: 選択可能なモデル（先頭がデフォルト）
        api_key: 起動時に認証情報ストアへ登録する API キー（任意）
    """

    base_url: str
    models: list[str]
    api_key: str | None = None

    @property
    def default_model(self) -> str:
        """デフォルトモデル"""
        return self.models[0]


def default_provider_settings() -> dict[ProviderType, ProviderSettings]:
    """プロバイダ設定のデフォルト値"""
    return {
        ProviderType.ANTHROPIC: ProviderSettings(
            base_url="https://api.anthropic.com",
            models=list(ANTHROPIC_MODELS),
        ),
        ProviderType.OPENAI: ProviderSettings(
            base_url="https://api.openai.com",
            models=list(OPENAI_MODELS),
        ),
    }


@dataclass
class StorageConfig:
    """永続化設定"""

    database_path: str


@dataclass
class CatalogConfig:
    """ペルソナカタログ設定

    Attributes:
        manifest: マニフェストのパスまたは URL
    """

    manifest: str


@dataclass
class HttpConfig:
    """HTTP クライアント設定

    timeout_seconds が None の場合は httpx のデフォルトを使う。
    """

    timeout_seconds: float | None = None


@dataclass
class LoggingConfig:
    """ログ設定"""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    loggers: dict[str, str] | None = None
    debug_llm_messages: bool = False


@dataclass
class Config:
    """アプリケーション設定"""

    storage: StorageConfig
    catalog: CatalogConfig
    conversation: ConversationConfig = field(default_factory=ConversationConfig)
    providers: dict[ProviderType, ProviderSettings] = field(
        default_factory=default_provider_settings
    )
    http: HttpConfig = field(default_factory=HttpConfig)
    logging: LoggingConfig | None = None
