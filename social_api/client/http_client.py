"""HttpBackendClient - httpx による REST API クライアント"""

from __future__ import annotations

import logging

import httpx

from social_api.client.base import BackendClient, BackendError, BackendUnavailableError
from social_api.config import ClientConfig

logger = logging.getLogger(__name__)


class HttpBackendClient(BackendClient):
    """
    REST API を呼び出す BackendClient 実装。

    通信エラー・5xx は BackendUnavailableError、それ以外の非 2xx は BackendError。
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: API のベース URL（例: "http://localhost:8000"）
            timeout: リクエストタイムアウト（秒）
            transport: テスト用の差し替えトランスポート
        """
        self._client = httpx.Client(
            base_url=base_url, timeout=timeout, transport=transport
        )

    @classmethod
    def from_config(cls, config: ClientConfig) -> HttpBackendClient:
        return cls(base_url=config.api_base_url, timeout=config.timeout_seconds)

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, **kwargs):
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("Backend request failed: %s %s - %s", method, path, e)
            raise BackendUnavailableError(str(e)) from e

        if response.is_success:
            return response.json() if response.content else None

        try:
            body = response.json()
        except ValueError:
            body = None
        # プロキシ等が返すオブジェクト以外の JSON は本文を無視する
        error = body.get("error") if isinstance(body, dict) else None
        message = error or response.reason_phrase
        if response.status_code >= 500:
            raise BackendUnavailableError(message, status_code=response.status_code)
        raise BackendError(message, status_code=response.status_code)

    def get_user(self, user_id: str) -> dict:
        return self._request("GET", f"/api/users/{user_id}")

    def search_users(self, query: str) -> list[dict]:
        data = self._request("GET", "/api/users/search", params={"q": query})
        return list((data or {}).get("users") or [])

    def batch_get_users(self, user_ids: list[str]) -> dict:
        data = self._request("POST", "/api/users/batch", json={"userIds": user_ids})
        return {
            "users": list(data.get("users") or []),
            "missingIds": list(data.get("missingIds") or []),
        }

    def send_friend_request(self, user_id: str, friend_id: str) -> dict:
        return self._request(
            "POST", "/api/friendships", json={"userId": user_id, "friendId": friend_id}
        )

    def respond_to_friend_request(self, friendship_id: str, status: str) -> dict:
        return self._request(
            "PUT", f"/api/friendships/{friendship_id}", json={"status": status}
        )

    def list_friendships(self, user_id: str) -> list[dict]:
        data = self._request("GET", f"/api/friendships/user/{user_id}")
        return list((data or {}).get("friendships") or [])

    def list_pending_requests(self, user_id: str) -> list[dict]:
        data = self._request("GET", f"/api/friendships/pending/{user_id}")
        return list((data or {}).get("requests") or [])
