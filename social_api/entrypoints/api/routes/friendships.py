"""友達関係 API ルート

POST /api/friendships                  → 201 Friendship（pending）
PUT  /api/friendships/{id}             → 200 Friendship
GET  /api/friendships/user/{userId}    → 200 { friendships }
GET  /api/friendships/pending/{userId} → 200 { requests }

状態遷移は pending → accepted / rejected のみ。それ以外は 409。
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status

from social_api.domain.errors import ConflictError, RepositoryError, ValidationError
from social_api.domain.models import Friendship, FriendshipStatus
from social_api.domain.ports import FriendshipRepository
from social_api.entrypoints.api.deps import get_friendship_repo
from social_api.entrypoints.api.results import unwrap
from social_api.entrypoints.api.schemas import CamelModel

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/friendships", tags=["friendships"])

RESPONSE_STATUSES = (FriendshipStatus.ACCEPTED.value, FriendshipStatus.REJECTED.value)


class FriendRequest(CamelModel):
    user_id: str = ""
    friend_id: str = ""


class FriendResponseRequest(CamelModel):
    status: str | None = None


@router.post("", status_code=status.HTTP_201_CREATED)
async def send_friend_request(
    body: FriendRequest,
    repo: FriendshipRepository = Depends(get_friendship_repo),
) -> dict:
    """
    友達申請を作成する。

    2 ユーザー間に既に友達関係（方向・状態を問わない）があれば 409。
    """
    friendship = Friendship(
        user_id=body.user_id,
        friend_id=body.friend_id,
        requested_by=body.user_id,
        status=FriendshipStatus.PENDING.value,
    )
    friendship.validate()

    existing = repo.find_between(body.user_id, body.friend_id)
    if existing.success:
        raise ConflictError("Friendship request already exists")
    if not existing.is_not_found:
        raise RepositoryError(existing.error or "Failed to look up friendship")

    created = unwrap(repo.create(friendship))
    logger.info(
        "Friend request created: id=%s, from=%s, to=%s",
        created.id,
        created.user_id,
        created.friend_id,
    )
    return created.to_dict()


@router.put("/{friendship_id}")
async def respond_to_friend_request(
    friendship_id: str,
    body: FriendResponseRequest,
    repo: FriendshipRepository = Depends(get_friendship_repo),
) -> dict:
    """申請を承認・却下する。読み込み時の revision を前提に書き込む"""
    if body.status not in RESPONSE_STATUSES:
        raise ValidationError('Invalid status. Must be "accepted" or "rejected"')

    friendship = unwrap(repo.get_by_id(friendship_id), "Friendship not found")
    friendship.transition_to(body.status)

    updated = unwrap(
        repo.update(
            friendship_id,
            {"status": friendship.status},
            expected_revision=friendship.revision,
        ),
        "Friendship not found",
    )
    logger.info("Friendship %s: id=%s", updated.status, friendship_id)
    return updated.to_dict()


@router.get("/user/{user_id}")
async def list_user_friendships(
    user_id: str,
    repo: FriendshipRepository = Depends(get_friendship_repo),
) -> dict:
    """user_id が関わる全ての友達関係（状態を問わない）"""
    friendships = unwrap(repo.list_for_user(user_id))
    return {"friendships": [f.to_dict() for f in friendships]}


@router.get("/pending/{user_id}")
async def list_pending_requests(
    user_id: str,
    repo: FriendshipRepository = Depends(get_friendship_repo),
) -> dict:
    requests = unwrap(repo.list_pending_for(user_id))
    return {"requests": [f.to_dict() for f in requests]}
