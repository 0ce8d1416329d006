"""SQLModel table definitions."""

from datetime import datetime, timezone

from sqlmodel import Field, SQLModel


class ConversationModel(SQLModel, table=True):
    """会話履歴テーブル"""

    __tablename__ = "conversations"

    id: int | None = Field(default=None, primary_key=True)
    conversation_id: str = Field(unique=True, index=True)
    persona_handle: str = Field(index=True)
    provider: str
    model: str
    messages: str  # JSON format: [{"role": ..., "content": ..., ...}]
    saved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class RegistryStateModel(SQLModel, table=True):
    """レジストリ復元用エンベロープテーブル"""

    __tablename__ = "registry_state"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(unique=True, index=True)
    conversations: str = "[]"  # JSON format: ["handle:provider:model", ...]
    selected_id: str | None = None
    last_persona: str | None = None
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CredentialModel(SQLModel, table=True):
    """API キーテーブル"""

    __tablename__ = "credentials"

    id: int | None = Field(default=None, primary_key=True)
    provider: str = Field(unique=True, index=True)
    api_key: str
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
