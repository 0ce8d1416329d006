"""Credential store protocol."""

from typing import Protocol

from personachat.domain.entities import ProviderType


class CredentialStore(Protocol):
    """プロバイダごとの API キーを保持するストア

    ローカル専用。暗号化はしない。
    """

    async def get(self, provider: ProviderType) -> str | None:
        """API キーを取得する

        Args:
            provider: プロバイダ

        Returns:
            API キー（未登録の場合は None）
        """
        ...

    async def set(self, provider: ProviderType, api_key: str) -> None:
        """API キーを登録する（上書き）"""
        ...

    async def remove(self, provider: ProviderType) -> None:
        """API キーを削除する"""
        ...

    async def has(self, provider: ProviderType) -> bool:
        """API キーが登録されているか確認する"""
        ...
