"""Registry state repository protocol."""

from typing import Protocol

from personachat.domain.entities import RegistryState


class RegistryStateRepository(Protocol):
    """レジストリ全体の復元用エンベロープを保存するリポジトリ"""

    async def save(self, state: RegistryState) -> None:
        """エンベロープを保存する（上書き）

        Args:
            state: 保存するレジストリ状態
        """
        ...

    async def load(self) -> RegistryState | None:
        """エンベロープを取得する

        Returns:
            レジストリ状態（未保存または破損している場合は None）
        """
        ...
