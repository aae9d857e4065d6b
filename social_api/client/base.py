"""BackendClient - バックエンド API クライアントの抽象インターフェース

実 API（HttpBackendClient）とインメモリのモック（InMemoryBackend）が同じ
契約を実装し、SocialClient はどちらに対しても同じ呼び出し方をする。

戻り値は全て REST API のワイヤ形式（camelCase の dict）。
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BackendError(Exception):
    """バックエンドがエラーを返した（4xx など、リクエスト側の問題）"""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class BackendUnavailableError(BackendError):
    """バックエンドに到達できない、または 5xx / 503（未設定）を返した"""

    pass


class BackendClient(ABC):
    """ソーシャル API のクライアント操作"""

    @abstractmethod
    def get_user(self, user_id: str) -> dict:
        """
        Raises:
            BackendError: ユーザーが存在しない場合（status_code=404）
        """
        pass

    @abstractmethod
    def search_users(self, query: str) -> list[dict]:
        pass

    @abstractmethod
    def batch_get_users(self, user_ids: list[str]) -> dict:
        """
        Returns:
            {"users": [...], "missingIds": [...]}
        """
        pass

    @abstractmethod
    def send_friend_request(self, user_id: str, friend_id: str) -> dict:
        """作成された友達関係を返す。既に関係があれば BackendError(409)"""
        pass

    @abstractmethod
    def respond_to_friend_request(self, friendship_id: str, status: str) -> dict:
        pass

    @abstractmethod
    def list_friendships(self, user_id: str) -> list[dict]:
        pass

    @abstractmethod
    def list_pending_requests(self, user_id: str) -> list[dict]:
        pass
