"""JSON (de)serialization of persisted message lists."""

import logging

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from personachat.domain.entities import ConversationId, Message, Role
from personachat.infrastructure.persistence.exceptions import StorageCorruptionError

logger = logging.getLogger(__name__)


class StoredMessage(BaseModel):
    """保存形式のメッセージ

    キー名は camelCase（tokenCount）で保存する。
    文字列化されたタイムスタンプは数値に変換される。
    """

    model_config = ConfigDict(populate_by_name=True)

    role: Role
    content: str
    timestamp: int | None = None
    token_count: int | None = Field(default=None, alias="tokenCount")

    @classmethod
    def from_entity(cls, message: Message) -> "StoredMessage":
        return cls(
            role=message.role,
            content=message.content,
            timestamp=message.timestamp,
            token_count=message.token_count,
        )

    def to_entity(self) -> Message:
        return Message(
            role=self.role,
            content=self.content,
            timestamp=self.timestamp,
            token_count=self.token_count,
        )


_messages_adapter = TypeAdapter(list[StoredMessage])
_ids_adapter = TypeAdapter(list[str])


def dump_messages(messages: list[Message]) -> str:
    """メッセージリストを JSON 文字列に変換する"""
    stored = [StoredMessage.from_entity(m) for m in messages]
    return _messages_adapter.dump_json(stored, by_alias=True).decode("utf-8")


def load_messages(raw: str) -> list[Message]:
    """JSON 文字列からメッセージリストを復元する

    Raises:
        StorageCorruptionError: JSON が壊れている、または形式が不正
    """
    try:
        stored = _messages_adapter.validate_json(raw)
    except ValidationError as e:
        raise StorageCorruptionError(f"Invalid message list: {e}") from e
    return [m.to_entity() for m in stored]


def dump_conversation_ids(conversation_ids: list[ConversationId]) -> str:
    """会話 ID リストを JSON 文字列に変換する"""
    return _ids_adapter.dump_json([str(c) for c in conversation_ids]).decode("utf-8")


def load_conversation_ids(raw: str) -> list[ConversationId]:
    """JSON 文字列から会話 ID リストを復元する

    解釈できない ID はログに残して読み飛ばす。

    Raises:
        StorageCorruptionError: JSON が壊れている、または文字列のリストでない
    """
    try:
        keys = _ids_adapter.validate_json(raw)
    except ValidationError as e:
        raise StorageCorruptionError(f"Invalid conversation id list: {e}") from e

    conversation_ids: list[ConversationId] = []
    for key in keys:
        try:
            conversation_ids.append(ConversationId.parse(key))
        except ValueError as e:
            logger.warning("Skipping invalid conversation id: %s", e)
    return conversation_ids
