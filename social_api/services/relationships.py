"""RelationshipService - 友達関係の集計ロジック

友達 ID の列挙・共通の友達・2 ユーザー間の関係状態をまとめて提供する。
ルートハンドラーは Repository を直接組み合わせず、このサービスを経由する。
"""

from __future__ import annotations

import logging

from social_api.domain.errors import RepositoryError
from social_api.domain.models import FriendshipStatus, User
from social_api.domain.ports import FriendshipRepository, UserRepository

logger = logging.getLogger(__name__)

NO_RELATIONSHIP = "none"


class RelationshipService:
    """
    友達関係のユースケース。

    Raises（各メソッド共通）:
        RepositoryError: 永続化層の呼び出しが失敗した場合
    """

    def __init__(
        self,
        friendships: FriendshipRepository,
        users: UserRepository,
    ) -> None:
        self._friendships = friendships
        self._users = users

    def friend_ids(self, user_id: str) -> set[str]:
        """承認済みの友達の ID 集合"""
        result = self._friendships.list_for_user(user_id)
        if not result.success:
            raise RepositoryError(result.error or "Failed to list friendships")
        return {
            f.other_party(user_id)
            for f in result.data or []
            if f.status == FriendshipStatus.ACCEPTED.value
        }

    def mutual_friends(self, user_id: str, other_id: str) -> list[User]:
        """
        2 ユーザーに共通する承認済みの友達を返す。

        ユーザー詳細は一括取得し、取得できなかった ID は結果から除外する。
        並び順は名前順。
        """
        common = self.friend_ids(user_id) & self.friend_ids(other_id)
        common -= {user_id, other_id}
        if not common:
            return []

        result = self._users.batch_get(sorted(common))
        if not result.success:
            raise RepositoryError(result.error or "Failed to load users")

        batch = result.data
        if batch.missing_ids:
            logger.info(
                "Mutual friends missing from user store: %s", batch.missing_ids
            )
        return sorted(batch.found, key=lambda u: u.name)

    def friendship_status(self, user_id: str, other_id: str) -> dict:
        """
        2 ユーザー間の関係状態。

        Returns:
            {"status": "none"|"pending"|"accepted"|"rejected",
             "friendshipId": str|None, "requestedBy": str|None}
        """
        result = self._friendships.find_between(user_id, other_id)
        if result.is_not_found:
            return {"status": NO_RELATIONSHIP, "friendshipId": None, "requestedBy": None}
        if not result.success:
            raise RepositoryError(result.error or "Failed to load friendship")

        friendship = result.data
        return {
            "status": friendship.status,
            "friendshipId": friendship.id,
            "requestedBy": friendship.requested_by,
        }
