"""InMemoryBackend - 開発用のモックバックエンド

バックエンド未接続・未設定時の縮退動作に使う。インスタンスごとに固定の
フィクスチャデータを新しく作り、書き込みはそのインスタンスの中だけに反映される。
実ストレージへの書き戻しは行わない。

サーバーと同じ InMemory リポジトリとドメインモデルを使うため、
検証・重複チェック・状態遷移はサーバーと同じ規則で動く。
"""

from __future__ import annotations

import logging

from social_api.adapters.memory_repository import (
    InMemoryFriendshipRepository,
    InMemoryUserRepository,
)
from social_api.client.base import BackendClient, BackendError
from social_api.domain.errors import SocialApiError
from social_api.domain.models import Friendship, FriendshipStatus, User

logger = logging.getLogger(__name__)

MOCK_USER_ID = "mock-user-id-123"

_FIXTURE_USERS = (
    ("friend-1", "Alice Johnson", "alice@example.com"),
    ("friend-2", "Bob Wilson", "bob@example.com"),
    ("friend-3", "Charlie Brown", "charlie@example.com"),
    ("friend-sent-1", "Dave Miller", "dave@example.com"),
    ("search-1", "David Miller", "david@example.com"),
    ("search-2", "Emma Davis", "emma@example.com"),
    ("search-3", "Michael Johnson", "michael@example.com"),
)

# (id, userId, friendId, requestedBy, status, createdAt)
_FIXTURE_FRIENDSHIPS = (
    (
        "friendship-1",
        MOCK_USER_ID,
        "friend-1",
        MOCK_USER_ID,
        FriendshipStatus.ACCEPTED.value,
        "2024-01-01T00:00:00+00:00",
    ),
    (
        "friendship-2",
        MOCK_USER_ID,
        "friend-2",
        MOCK_USER_ID,
        FriendshipStatus.ACCEPTED.value,
        "2024-01-02T00:00:00+00:00",
    ),
    (
        "friendship-3",
        "friend-3",
        MOCK_USER_ID,
        "friend-3",
        FriendshipStatus.PENDING.value,
        "2024-01-03T00:00:00+00:00",
    ),
    (
        "friendship-sent-1",
        MOCK_USER_ID,
        "friend-sent-1",
        MOCK_USER_ID,
        FriendshipStatus.PENDING.value,
        "2024-01-04T00:00:00+00:00",
    ),
)


def fixture_users() -> list[User]:
    return [
        User(id=user_id, name=name, email=email)
        for user_id, name, email in _FIXTURE_USERS
    ]


def fixture_friendships() -> list[Friendship]:
    return [
        Friendship(
            id=fid,
            user_id=user_id,
            friend_id=friend_id,
            requested_by=requested_by,
            status=status,
            created_at=created_at,
        )
        for fid, user_id, friend_id, requested_by, status, created_at in (
            _FIXTURE_FRIENDSHIPS
        )
    ]


class InMemoryBackend(BackendClient):
    """フィクスチャデータを持つ BackendClient 実装"""

    def __init__(
        self,
        users: InMemoryUserRepository | None = None,
        friendships: InMemoryFriendshipRepository | None = None,
    ) -> None:
        self.users = users or InMemoryUserRepository(fixture_users())
        self.friendships = friendships or InMemoryFriendshipRepository(
            fixture_friendships()
        )

    @staticmethod
    def _unwrap(result, not_found: str):
        if result.success:
            return result.data
        if result.is_not_found:
            raise BackendError(not_found, status_code=404)
        if result.is_conflict:
            raise BackendError(result.error or "Conflict", status_code=409)
        raise BackendError(result.error or "Mock backend failure", status_code=500)

    def get_user(self, user_id: str) -> dict:
        return self._unwrap(self.users.get_by_id(user_id), "User not found").to_dict()

    def search_users(self, query: str) -> list[dict]:
        if not query.strip():
            return []
        users = self._unwrap(self.users.search(query.strip()), "User not found")
        return [u.to_dict() for u in users]

    def batch_get_users(self, user_ids: list[str]) -> dict:
        batch = self._unwrap(self.users.batch_get(user_ids), "User not found")
        return {
            "users": [u.to_dict() for u in batch.found],
            "missingIds": batch.missing_ids,
        }

    def send_friend_request(self, user_id: str, friend_id: str) -> dict:
        friendship = Friendship(
            user_id=user_id, friend_id=friend_id, requested_by=user_id
        )
        try:
            friendship.validate()
        except SocialApiError as e:
            raise BackendError(str(e), status_code=400) from e

        if self.friendships.find_between(user_id, friend_id).success:
            raise BackendError("Friendship request already exists", status_code=409)

        created = self._unwrap(self.friendships.create(friendship), "Not found")
        logger.info("Mock: friend request %s -> %s", user_id, friend_id)
        return created.to_dict()

    def respond_to_friend_request(self, friendship_id: str, status: str) -> dict:
        friendship = self._unwrap(
            self.friendships.get_by_id(friendship_id), "Friend request not found"
        )
        try:
            friendship.transition_to(status)
        except SocialApiError as e:
            raise BackendError(str(e), status_code=409) from e

        updated = self._unwrap(
            self.friendships.update(
                friendship_id,
                {"status": friendship.status},
                expected_revision=friendship.revision,
            ),
            "Friend request not found",
        )
        logger.info("Mock: %s friend request %s", status, friendship_id)
        return updated.to_dict()

    def list_friendships(self, user_id: str) -> list[dict]:
        friendships = self._unwrap(self.friendships.list_for_user(user_id), "")
        return [f.to_dict() for f in friendships]

    def list_pending_requests(self, user_id: str) -> list[dict]:
        requests = self._unwrap(self.friendships.list_pending_for(user_id), "")
        return [f.to_dict() for f in requests]
