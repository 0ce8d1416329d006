"""Domain exceptions."""

from personachat.domain.entities import ProviderType


class CredentialMissingError(Exception):
    """プロバイダの API キーが登録されていない場合に発生する例外

    会話を開始する前に認証情報の設定が必要。
    """

    def __init__(self, provider: ProviderType) -> None:
        """初期化

        Args:
            provider: API キーが見つからないプロバイダ
        """
        self.provider = provider
        super().__init__(f"No API key configured for {provider.value}")


class PersonaNotFoundError(Exception):
    """ペルソナがカタログに存在しない場合に発生する例外"""

    def __init__(self, handle: str) -> None:
        self.handle = handle
        super().__init__(f"Persona @{handle} is not in the catalog")


class ConversationNotFoundError(Exception):
    """会話がレジストリに存在しない場合に発生する例外"""

    def __init__(self, conversation_id: str) -> None:
        self.conversation_id = conversation_id
        super().__init__(f"Conversation {conversation_id} does not exist")
