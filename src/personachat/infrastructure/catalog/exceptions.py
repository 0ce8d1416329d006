"""Persona catalog exceptions."""


class CatalogLoadError(Exception):
    """ペルソナカタログの取得・解析に失敗した場合に発生する例外

    起動時の致命的エラーとして扱い、自動リトライはしない。
    """
