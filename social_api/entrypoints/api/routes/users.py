"""ユーザー API ルート

GET    /api/users                                   → 200 { users }
GET    /api/users/search?q=                         → 200 { users }
GET    /api/users/search/{term}                     → 200 { users }（非推奨）
POST   /api/users/batch                             → 200 { users, missingIds }
GET    /api/users/email/{email}                     → 200 User
GET    /api/users/external/{externalId}             → 200 User
GET    /api/users/azure/{azureId}                   → 200 User（非推奨エイリアス）
GET    /api/users/{id}                              → 200 User
POST   /api/users                                   → 201 User
PUT    /api/users/{id}                              → 200 User
DELETE /api/users/{id}                              → 200 { message }
GET    /api/users/{id}/privacy-settings             → 200 PrivacySettings
PUT    /api/users/{id}/privacy-settings             → 200 PrivacySettings
GET    /api/users/{id}/mutual-friends/{otherId}     → 200 { mutualFriends }
GET    /api/users/{id}/friendship-status/{otherId}  → 200 { status, friendshipId, requestedBy }
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from pydantic import field_validator

from social_api.domain.errors import ConflictError, RepositoryError, ValidationError
from social_api.domain.models import PrivacySettings, Role, User
from social_api.domain.ports import UserRepository
from social_api.entrypoints.api.deps import get_relationship_service, get_user_repo
from social_api.entrypoints.api.results import unwrap
from social_api.entrypoints.api.schemas import CamelModel
from social_api.services.relationships import RelationshipService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["users"])

USER_NOT_FOUND = "User not found"
EMAIL_TAKEN = "User with this email already exists"


class UserCreateRequest(CamelModel):
    email: str = ""
    name: str = ""
    bio: str = ""
    contact_details: dict[str, str] = {}
    role: str = Role.MEMBER.value
    privacy_settings: dict[str, str] | None = None
    external_id: str | None = None
    azure_id: str | None = None


class UserUpdateRequest(CamelModel):
    email: str | None = None
    name: str | None = None
    bio: str | None = None
    contact_details: dict[str, str] | None = None
    role: str | None = None
    privacy_settings: dict[str, str] | None = None
    external_id: str | None = None
    # 指定された場合は保存済みの revision と一致しなければ 409
    revision: int | None = None


class BatchRequest(CamelModel):
    user_ids: list[str] | None = None

    @field_validator("user_ids", mode="before")
    @classmethod
    def _must_be_list(cls, value):
        if value is not None and not isinstance(value, list):
            raise ValueError("userIds must be an array")
        return value


class PrivacySettingsRequest(CamelModel):
    profile_picture_visibility: str | None = None
    bio_visibility: str | None = None
    contact_details_visibility: str | None = None
    friends_list_visibility: str | None = None
    user_discoverability: str | None = None


def _ensure_email_available(
    repo: UserRepository, email: str, user_id: str | None = None
) -> None:
    """email が他のユーザーに使われていれば ConflictError"""
    result = repo.get_by_email(email)
    if result.success:
        if result.data.id != user_id:
            raise ConflictError(EMAIL_TAKEN)
    elif not result.is_not_found:
        raise RepositoryError(result.error or "Failed to look up email")


# ── 一覧・検索 ────────────────────────────────────────────────────────────────


@router.get("")
async def list_users(repo: UserRepository = Depends(get_user_repo)) -> dict:
    users = unwrap(repo.get_all())
    return {"users": [u.to_dict() for u in users]}


@router.get("/search")
async def search_users(
    q: str | None = None,
    repo: UserRepository = Depends(get_user_repo),
) -> dict:
    """名前・メールアドレスの部分一致検索"""
    if not q:
        raise ValidationError('Search query parameter "q" is required')
    users = unwrap(repo.search(q))
    return {"users": [u.to_dict() for u in users]}


@router.get("/search/{term}", deprecated=True)
async def search_users_by_path(
    term: str,
    repo: UserRepository = Depends(get_user_repo),
) -> dict:
    users = unwrap(repo.search(term))
    return {"users": [u.to_dict() for u in users]}


@router.post("/batch")
async def batch_get_users(
    body: BatchRequest,
    repo: UserRepository = Depends(get_user_repo),
) -> dict:
    """
    ID 一括取得。存在しない ID は missingIds に要求順で返す。
    """
    if body.user_ids is None:
        raise ValidationError("userIds must be an array")
    batch = unwrap(repo.batch_get(body.user_ids))
    return {
        "users": [u.to_dict() for u in batch.found],
        "missingIds": batch.missing_ids,
    }


@router.get("/email/{email}")
async def get_user_by_email(
    email: str,
    repo: UserRepository = Depends(get_user_repo),
) -> dict:
    return unwrap(repo.get_by_email(email), USER_NOT_FOUND).to_dict()


@router.get("/external/{external_id}")
async def get_user_by_external_id(
    external_id: str,
    repo: UserRepository = Depends(get_user_repo),
) -> dict:
    return unwrap(repo.get_by_external_id(external_id), USER_NOT_FOUND).to_dict()


@router.get("/azure/{azure_id}", deprecated=True)
async def get_user_by_azure_id(
    azure_id: str,
    repo: UserRepository = Depends(get_user_repo),
) -> dict:
    """/external/{externalId} の旧名"""
    return unwrap(repo.get_by_external_id(azure_id), USER_NOT_FOUND).to_dict()


# ── CRUD ─────────────────────────────────────────────────────────────────────


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    repo: UserRepository = Depends(get_user_repo),
) -> dict:
    return unwrap(repo.get_by_id(user_id), USER_NOT_FOUND).to_dict()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreateRequest,
    repo: UserRepository = Depends(get_user_repo),
) -> dict:
    """ユーザーを作成する。同じ email のユーザーが既にいれば 409"""
    user = User.from_dict(body.to_wire())
    user.validate()
    _ensure_email_available(repo, user.email)

    created = unwrap(repo.create(user))
    logger.info("User created: id=%s", created.id)
    return created.to_dict()


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    body: UserUpdateRequest,
    repo: UserRepository = Depends(get_user_repo),
) -> dict:
    """
    ユーザーを更新する。id / createdAt / type は変更できない。

    マージ後のユーザーを検証してから保存する。
    """
    existing = unwrap(repo.get_by_id(user_id), USER_NOT_FOUND)
    updates = body.to_wire()
    expected_revision = updates.pop("revision", None)

    merged = User.from_dict({**existing.to_dict(), **updates})
    merged.validate()
    if merged.email != existing.email:
        _ensure_email_available(repo, merged.email, user_id)

    payload = merged.to_dict()
    for key in ("id", "createdAt", "type", "revision"):
        payload.pop(key)
    updated = unwrap(
        repo.update(user_id, payload, expected_revision=expected_revision),
        USER_NOT_FOUND,
    )
    logger.info("User updated: id=%s, revision=%d", user_id, updated.revision)
    return updated.to_dict()


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    repo: UserRepository = Depends(get_user_repo),
) -> dict:
    unwrap(repo.delete(user_id), USER_NOT_FOUND)
    logger.info("User deleted: id=%s", user_id)
    return {"message": "User deleted successfully"}


# ── プライバシー設定 ──────────────────────────────────────────────────────────


@router.get("/{user_id}/privacy-settings")
async def get_privacy_settings(
    user_id: str,
    repo: UserRepository = Depends(get_user_repo),
) -> dict:
    return unwrap(repo.get_by_id(user_id), USER_NOT_FOUND).privacy_settings.to_dict()


@router.put("/{user_id}/privacy-settings")
async def update_privacy_settings(
    user_id: str,
    body: PrivacySettingsRequest,
    repo: UserRepository = Depends(get_user_repo),
) -> dict:
    """指定された項目だけを検証して既存の設定にマージする"""
    updates = body.to_wire()
    PrivacySettings().merged(updates).validate()

    user = unwrap(repo.get_by_id(user_id), USER_NOT_FOUND)
    settings = user.privacy_settings.merged(updates)
    updated = unwrap(
        repo.update(user_id, {"privacySettings": settings.to_dict()}),
        USER_NOT_FOUND,
    )
    logger.info("Privacy settings updated: id=%s", user_id)
    return updated.privacy_settings.to_dict()


# ── 関係 ─────────────────────────────────────────────────────────────────────


@router.get("/{user_id}/mutual-friends/{other_id}")
async def get_mutual_friends(
    user_id: str,
    other_id: str,
    relationships: RelationshipService = Depends(get_relationship_service),
) -> dict:
    friends = relationships.mutual_friends(user_id, other_id)
    return {"mutualFriends": [u.to_dict() for u in friends]}


@router.get("/{user_id}/friendship-status/{other_id}")
async def get_friendship_status(
    user_id: str,
    other_id: str,
    relationships: RelationshipService = Depends(get_relationship_service),
) -> dict:
    return relationships.friendship_status(user_id, other_id)
