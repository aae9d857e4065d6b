"""SocialClient - クライアント向けの友達・ユーザー操作

各操作は次の順で backend を選ぶ:
  1. 呼び出し元が MOCK_USER_ID なら常にモック
  2. それ以外は実バックエンドを呼ぶ
  3. 実バックエンドが到達不能（BackendUnavailableError）で、フォールバックが
     有効ならモックで再実行する。無効ならそのまま送出する

4xx（BackendError）はモックで隠さず呼び出し元に返す。
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from social_api.client.base import BackendClient, BackendError, BackendUnavailableError
from social_api.client.mock_backend import MOCK_USER_ID, InMemoryBackend
from social_api.domain.models import FriendshipStatus

logger = logging.getLogger(__name__)

R = TypeVar("R")


class SocialClient:
    def __init__(
        self,
        backend: BackendClient,
        mock: BackendClient | None = None,
        mock_fallback: bool = True,
    ) -> None:
        """
        Args:
            backend: 実バックエンド（通常は HttpBackendClient）
            mock: モックバックエンド。省略時は InMemoryBackend を新規作成
            mock_fallback: 実バックエンド到達不能時にモックへ切り替えるか
        """
        self._backend = backend
        self._mock = mock or InMemoryBackend()
        self._mock_fallback = mock_fallback

    @staticmethod
    def is_mock_user(current_user_id: str | None) -> bool:
        return current_user_id == MOCK_USER_ID

    def _call(
        self,
        current_user_id: str | None,
        operation: str,
        fn: Callable[[BackendClient], R],
    ) -> R:
        if self.is_mock_user(current_user_id):
            return fn(self._mock)
        try:
            return fn(self._backend)
        except BackendUnavailableError as e:
            if not self._mock_fallback:
                raise
            logger.warning("Backend unavailable for %s, using mock: %s", operation, e)
            return fn(self._mock)

    # ── ユーザー ─────────────────────────────────────────────────────────────

    def search_users(self, query: str, current_user_id: str | None) -> list[dict]:
        """名前・メールの部分一致検索。呼び出し元自身は結果から除く"""
        if not query.strip():
            return []
        users = self._call(
            current_user_id, "search_users", lambda b: b.search_users(query)
        )
        return [u for u in users if u.get("id") != current_user_id]

    def batch_get_users(self, user_ids: list[str], current_user_id: str | None) -> dict:
        """
        ユーザーを一括取得する。

        一括取得が失敗した場合は 1 件ずつ順番に取得し直す。
        取得できなかった ID は missingIds に要求順で入る。
        バックエンドに到達できない場合は他の操作と同じくモックに切り替える。

        Returns:
            {"users": [...], "missingIds": [...]}
        """
        if not user_ids:
            return {"users": [], "missingIds": []}
        unique_ids = list(dict.fromkeys(user_ids))
        return self._call(
            current_user_id,
            "batch_get_users",
            lambda b: self._batch_from(b, unique_ids),
        )

    @staticmethod
    def _batch_from(backend: BackendClient, user_ids: list[str]) -> dict:
        try:
            return backend.batch_get_users(user_ids)
        except BackendError as e:
            logger.warning("Batch user fetch failed, falling back to per-id: %s", e)

        users: list[dict] = []
        missing: list[str] = []
        for user_id in user_ids:
            try:
                users.append(backend.get_user(user_id))
            except BackendUnavailableError:
                raise
            except BackendError as e:
                logger.info("User fetch failed: id=%s, error=%s", user_id, e)
                missing.append(user_id)
        return {"users": users, "missingIds": missing}

    # ── 友達申請 ─────────────────────────────────────────────────────────────

    def send_friend_request(self, current_user_id: str, target_user_id: str) -> dict:
        self._call(
            current_user_id,
            "send_friend_request",
            lambda b: b.send_friend_request(current_user_id, target_user_id),
        )
        return {"success": True, "message": "Friend request sent successfully!"}

    def respond_to_friend_request(
        self, friendship_id: str, status: str, current_user_id: str
    ) -> dict:
        self._call(
            current_user_id,
            "respond_to_friend_request",
            lambda b: b.respond_to_friend_request(friendship_id, status),
        )
        return {"success": True, "message": f"Friend request {status}!"}

    # ── 友達一覧 ─────────────────────────────────────────────────────────────

    def get_friendships_data(self, current_user_id: str) -> dict:
        """
        友達・受信した申請・送信した申請をユーザー詳細付きで返す。

        Returns:
            {"friends": [... + "friend"],
             "pendingRequests": [... + "requester"],
             "sentRequests": [... + "friend"]}
            詳細を取得できなかったユーザーは None
        """

        def load(backend: BackendClient) -> dict:
            friendships = backend.list_friendships(current_user_id)
            pending = backend.list_pending_requests(current_user_id)

            accepted = [
                f for f in friendships if f["status"] == FriendshipStatus.ACCEPTED.value
            ]
            sent = [
                f
                for f in friendships
                if f["status"] == FriendshipStatus.PENDING.value
                and f.get("requestedBy") == current_user_id
            ]

            def other(f: dict) -> str:
                return f["friendId"] if f["userId"] == current_user_id else f["userId"]

            wanted = [other(f) for f in accepted]
            wanted += [r["requestedBy"] for r in pending]
            wanted += [f["friendId"] for f in sent]
            by_id: dict[str, dict] = {}
            if wanted:
                batch = self._batch_from(backend, list(dict.fromkeys(wanted)))
                by_id = {u["id"]: u for u in batch["users"]}

            return {
                "friends": [{**f, "friend": by_id.get(other(f))} for f in accepted],
                "pendingRequests": [
                    {**r, "requester": by_id.get(r["requestedBy"])} for r in pending
                ],
                "sentRequests": [{**f, "friend": by_id.get(f["friendId"])} for f in sent],
            }

        return self._call(current_user_id, "get_friendships_data", load)

    def get_user_friendships(self, current_user_id: str) -> dict:
        """
        友達・申請中の相手の ID だけを返す（検索結果の絞り込み用）。

        Returns:
            {"friends": [id...], "pendingRequests": [id...], "sentRequests": [id...]}
        """

        def load(backend: BackendClient) -> dict:
            friendships = backend.list_friendships(current_user_id)
            pending = backend.list_pending_requests(current_user_id)
            return {
                "friends": [
                    f["friendId"] if f["userId"] == current_user_id else f["userId"]
                    for f in friendships
                    if f.get("status") == FriendshipStatus.ACCEPTED.value
                ],
                "pendingRequests": [
                    r["requestedBy"] for r in pending if r.get("requestedBy")
                ],
                "sentRequests": [
                    f["friendId"]
                    for f in friendships
                    if f.get("status") == FriendshipStatus.PENDING.value
                    and f.get("requestedBy") == current_user_id
                ],
            }

        return self._call(current_user_id, "get_user_friendships", load)
