"""グループ API ルート

GET    /api/groups                     → 200 { groups }（公開グループ）
GET    /api/groups/search?tags=a,b     → 200 { groups }
GET    /api/groups/search/{term}       → 200 { groups }
GET    /api/groups/user/{userId}       → 200 { groups }
GET    /api/groups/{id}                → 200 Group
POST   /api/groups                     → 201 Group
PUT    /api/groups/{id}                → 200 Group
DELETE /api/groups/{id}                → 200 { message }
POST   /api/groups/{id}/apply          → 200 { message }
POST   /api/groups/{id}/membership     → 200 { message }
GET    /api/groups/{id}/posts          → 200 [Post...]
POST   /api/groups/{id}/posts          → 201 Post
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status

from social_api.domain.errors import ValidationError
from social_api.domain.models import Group, MembershipAction, Post, enum_values
from social_api.domain.ports import GroupRepository, PostRepository
from social_api.entrypoints.api.deps import get_group_repo, get_post_repo
from social_api.entrypoints.api.results import unwrap
from social_api.entrypoints.api.schemas import CamelModel

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/groups", tags=["groups"])

GROUP_NOT_FOUND = "Group not found"


class GroupCreateRequest(CamelModel):
    name: str = ""
    description: str = ""
    tags: list[str] = []
    admin_ids: list[str] | None = None
    # 旧クライアント互換: 単一の adminId と privacy 文字列
    admin_id: str | None = None
    privacy: str | None = None
    is_public: bool | None = None
    member_ids: list[str] = []


class GroupUpdateRequest(CamelModel):
    name: str | None = None
    description: str | None = None
    tags: list[str] | None = None
    admin_ids: list[str] | None = None
    member_ids: list[str] | None = None
    is_public: bool | None = None
    privacy: str | None = None
    revision: int | None = None


class ApplyRequest(CamelModel):
    user_id: str | None = None


class MembershipRequest(CamelModel):
    user_id: str | None = None
    action: str | None = None


class PostCreateRequest(CamelModel):
    author_id: str = ""
    content: str = ""
    attachments: list[str] = []


def normalize_tags(tags: list[str]) -> list[str]:
    """前後の空白を除いて小文字化し、空要素と重複を取り除く"""
    return list(dict.fromkeys(t.strip().lower() for t in tags if t.strip()))


def _group_from_request(data: dict) -> Group:
    admin_id = data.pop("adminId", None)
    if not data.get("adminIds") and admin_id:
        data["adminIds"] = [admin_id]
    if "tags" in data:
        data["tags"] = normalize_tags(data["tags"])
    return Group.from_dict(data)


# ── 一覧・検索 ────────────────────────────────────────────────────────────────


@router.get("")
async def list_public_groups(repo: GroupRepository = Depends(get_group_repo)) -> dict:
    groups = unwrap(repo.list_public())
    return {"groups": [g.to_dict() for g in groups]}


@router.get("/search")
async def search_groups_by_tags(
    tags: str | None = None,
    repo: GroupRepository = Depends(get_group_repo),
) -> dict:
    """カンマ区切りのタグのいずれかを持つ公開グループ"""
    tag_list = normalize_tags(tags.split(",")) if tags else []
    if not tag_list:
        raise ValidationError("Tags parameter is required")
    groups = unwrap(repo.search_by_tags(tag_list))
    return {"groups": [g.to_dict() for g in groups]}


@router.get("/search/{term}")
async def search_groups(
    term: str,
    repo: GroupRepository = Depends(get_group_repo),
) -> dict:
    """名前の部分一致またはタグの完全一致"""
    groups = unwrap(repo.search(term))
    return {"groups": [g.to_dict() for g in groups]}


@router.get("/user/{user_id}")
async def list_user_groups(
    user_id: str,
    repo: GroupRepository = Depends(get_group_repo),
) -> dict:
    groups = unwrap(repo.list_for_user(user_id))
    return {"groups": [g.to_dict() for g in groups]}


# ── CRUD ─────────────────────────────────────────────────────────────────────


@router.get("/{group_id}")
async def get_group(
    group_id: str,
    repo: GroupRepository = Depends(get_group_repo),
) -> dict:
    return unwrap(repo.get_by_id(group_id), GROUP_NOT_FOUND).to_dict()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_group(
    body: GroupCreateRequest,
    repo: GroupRepository = Depends(get_group_repo),
) -> dict:
    group = _group_from_request(body.to_wire())
    group.validate()

    created = unwrap(repo.create(group))
    logger.info("Group created: id=%s, admins=%s", created.id, created.admin_ids)
    return created.to_dict()


@router.put("/{group_id}")
async def update_group(
    group_id: str,
    body: GroupUpdateRequest,
    repo: GroupRepository = Depends(get_group_repo),
) -> dict:
    """グループを更新する。マージ後のグループを検証してから保存する"""
    existing = unwrap(repo.get_by_id(group_id), GROUP_NOT_FOUND)
    updates = body.to_wire()
    expected_revision = updates.pop("revision", None)
    if "isPublic" not in updates and updates.get("privacy") is not None:
        updates["isPublic"] = updates["privacy"] == "public"
    updates.pop("privacy", None)

    merged = _group_from_request({**existing.to_dict(), **updates})
    merged.validate()

    payload = merged.to_dict()
    for key in ("id", "createdAt", "type", "revision"):
        payload.pop(key)
    updated = unwrap(
        repo.update(group_id, payload, expected_revision=expected_revision),
        GROUP_NOT_FOUND,
    )
    logger.info("Group updated: id=%s, revision=%d", group_id, updated.revision)
    return updated.to_dict()


@router.delete("/{group_id}")
async def delete_group(
    group_id: str,
    repo: GroupRepository = Depends(get_group_repo),
) -> dict:
    unwrap(repo.delete(group_id), GROUP_NOT_FOUND)
    logger.info("Group deleted: id=%s", group_id)
    return {"message": "Group deleted successfully"}


# ── メンバーシップ ────────────────────────────────────────────────────────────


@router.post("/{group_id}/apply")
async def apply_to_group(
    group_id: str,
    body: ApplyRequest,
    repo: GroupRepository = Depends(get_group_repo),
) -> dict:
    """参加申請。申請中・参加済みの場合は何も書き込まない"""
    if not body.user_id:
        raise ValidationError("User ID is required")

    group = unwrap(repo.get_by_id(group_id), GROUP_NOT_FOUND)
    if group.add_membership_request(body.user_id):
        unwrap(
            repo.update(
                group_id,
                {"membershipRequests": group.membership_requests},
                expected_revision=group.revision,
            ),
            GROUP_NOT_FOUND,
        )
        logger.info("Membership requested: group=%s, user=%s", group_id, body.user_id)
    return {"message": "Membership request submitted"}


@router.post("/{group_id}/membership")
async def resolve_membership(
    group_id: str,
    body: MembershipRequest,
    repo: GroupRepository = Depends(get_group_repo),
) -> dict:
    """参加申請を承認（メンバーに追加）または却下する"""
    if not body.user_id or not body.action:
        raise ValidationError("User ID and action are required")
    if body.action not in enum_values(MembershipAction):
        raise ValidationError('Invalid action. Use "accept" or "reject"')

    group = unwrap(repo.get_by_id(group_id), GROUP_NOT_FOUND)
    group.resolve_membership_request(body.user_id, body.action)
    unwrap(
        repo.update(
            group_id,
            {
                "membershipRequests": group.membership_requests,
                "memberIds": group.member_ids,
            },
            expected_revision=group.revision,
        ),
        GROUP_NOT_FOUND,
    )
    logger.info(
        "Membership %s: group=%s, user=%s", body.action, group_id, body.user_id
    )
    return {"message": f"Membership request {body.action}ed"}


# ── 投稿 ─────────────────────────────────────────────────────────────────────


@router.get("/{group_id}/posts")
async def list_group_posts(
    group_id: str,
    groups: GroupRepository = Depends(get_group_repo),
    posts: PostRepository = Depends(get_post_repo),
) -> list[dict]:
    unwrap(groups.get_by_id(group_id), GROUP_NOT_FOUND)
    return [p.to_dict() for p in unwrap(posts.list_for_group(group_id))]


@router.post("/{group_id}/posts", status_code=status.HTTP_201_CREATED)
async def create_group_post(
    group_id: str,
    body: PostCreateRequest,
    groups: GroupRepository = Depends(get_group_repo),
    posts: PostRepository = Depends(get_post_repo),
) -> dict:
    unwrap(groups.get_by_id(group_id), GROUP_NOT_FOUND)
    post = Post(
        author_id=body.author_id,
        content=body.content,
        group_id=group_id,
        attachments=list(body.attachments),
    )
    post.validate()

    created = unwrap(posts.create(post))
    logger.info("Group post created: group=%s, post=%s", group_id, created.id)
    return created.to_dict()
