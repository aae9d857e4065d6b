"""Firestore Repository Adapter

EntityRepository の Firestore 実装。エンティティ 1 種類につき 1 コレクション。

Firestore コレクション構造:
  users/{userId}
  friendships/{friendshipId}
  groups/{groupId}
  posts/{postId}
  comments/{commentId}
  events/{eventId}

ドキュメントは Entity.to_dict() の camelCase 形式をそのまま保存する。
SDK の例外は RepositoryResult に変換し、呼び出し側へは送出しない。
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, ClassVar

from google.api_core import exceptions as gcp_exceptions
from google.auth import exceptions as google_auth_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import And, FieldFilter, Or

from social_api.config import AppConfig
from social_api.domain.models import (
    Comment,
    Entity,
    Event,
    Friendship,
    Group,
    Post,
    User,
    utc_now_iso,
)
from social_api.domain.ports import (
    AllOf,
    AnyOf,
    BatchLoad,
    CommentRepository,
    Condition,
    EntityRepository,
    EventRepository,
    FriendshipRepository,
    GroupRepository,
    PostRepository,
    RepositoryResult,
    UserRepository,
    Where,
)

logger = logging.getLogger(__name__)

USERS = "users"
FRIENDSHIPS = "friendships"
GROUPS = "groups"
POSTS = "posts"
COMMENTS = "comments"
EVENTS = "events"

COLLECTIONS = (USERS, FRIENDSHIPS, GROUPS, POSTS, COMMENTS, EVENTS)


def create_client(config: AppConfig) -> firestore.Client:
    """AppConfig から Firestore クライアントを生成する"""
    return firestore.Client(
        project=config.project_id, database=config.firestore_database
    )


def check_connection(config: AppConfig, db: firestore.Client | None = None) -> dict:
    """
    Firestore への疎通確認。コレクション一覧を 1 件だけ読みに行く。
    db を省略した場合は config からクライアントを生成する。

    Returns:
        {"success": True, "database": ..., "project": ...}
        または {"success": False, "error": ...}
    """
    try:
        db = db or create_client(config)
        next(iter(db.collections()), None)
    except (gcp_exceptions.GoogleAPIError, google_auth_exceptions.GoogleAuthError) as e:
        logger.warning("Firestore connection check failed: %s", e)
        return {"success": False, "error": str(e)}
    return {
        "success": True,
        "database": config.firestore_database,
        "project": config.project_id,
    }


def to_firestore_filter(condition: Condition) -> FieldFilter | Or | And:
    """Where / AnyOf / AllOf を Firestore のフィルターに変換する"""
    if isinstance(condition, Where):
        return FieldFilter(condition.field, condition.op, condition.value)
    if isinstance(condition, AnyOf):
        return Or(filters=[to_firestore_filter(c) for c in condition.conditions])
    if isinstance(condition, AllOf):
        return And(filters=[to_firestore_filter(c) for c in condition.conditions])
    raise TypeError(f"Unsupported condition: {condition!r}")


class FirestoreRepository(EntityRepository):
    """
    Firestore を使った EntityRepository の共通実装。

    サブクラスは collection_name と model_cls を指定する。
    """

    collection_name: ClassVar[str] = ""
    model_cls: ClassVar[type[Entity]] = Entity

    def __init__(self, db: firestore.Client) -> None:
        """
        Args:
            db: 初期化済みの Firestore クライアント
        """
        self._db = db

    def _collection(self):
        return self._db.collection(self.collection_name)

    def _from_snapshot(self, snap) -> Any:
        data = snap.to_dict() or {}
        data.setdefault("id", snap.id)
        return self.model_cls.from_dict(data)

    # ── CRUD ─────────────────────────────────────────────────────────────────

    def create(self, item):
        data = item.to_dict()
        try:
            self._collection().document(item.id).create(data)
        except gcp_exceptions.AlreadyExists:
            return RepositoryResult.conflict(f"Document already exists: {item.id}")
        except gcp_exceptions.GoogleAPIError as e:
            logger.error(
                "Create failed: collection=%s, error=%s", self.collection_name, e
            )
            return RepositoryResult.failure(str(e))
        logger.info("Created %s: id=%s", self.model_cls.TYPE, item.id)
        return RepositoryResult.ok(self.model_cls.from_dict(data))

    def get_by_id(self, item_id: str):
        try:
            snap = self._collection().document(item_id).get()
        except gcp_exceptions.GoogleAPIError as e:
            return RepositoryResult.failure(str(e))
        if not snap.exists:
            return RepositoryResult.not_found()
        return RepositoryResult.ok(self._from_snapshot(snap))

    def get_many(self, item_ids: Sequence[str]):
        """db.get_all() で 1 回の RPC にまとめて取得する"""
        refs = [self._collection().document(i) for i in item_ids]
        try:
            snaps = list(self._db.get_all(refs))
        except gcp_exceptions.GoogleAPIError as e:
            return RepositoryResult.failure(str(e))

        found = {snap.id: self._from_snapshot(snap) for snap in snaps if snap.exists}
        return RepositoryResult.ok(
            BatchLoad(
                found=[found[i] for i in item_ids if i in found],
                missing_ids=[i for i in item_ids if i not in found],
            )
        )

    def update(
        self,
        item_id: str,
        updates: Mapping[str, Any],
        expected_revision: int | None = None,
    ):
        """
        読み直し → マージ → 置き換え。

        置き換えは読み込み時の update_time を前提条件として書き込むため、
        その間に他の書き込みがあれば conflict になる。
        """
        ref = self._collection().document(item_id)
        try:
            snap = ref.get()
            if not snap.exists:
                return RepositoryResult.not_found()

            existing = snap.to_dict() or {}
            current_revision = int(existing.get("revision") or 0)
            if expected_revision is not None and expected_revision != current_revision:
                return RepositoryResult.conflict(
                    f"Revision mismatch: expected {expected_revision}, "
                    f"found {current_revision}"
                )

            merged = {
                **existing,
                **updates,
                "id": item_id,
                "updatedAt": utc_now_iso(),
                "revision": current_revision + 1,
            }
            ref.update(
                merged,
                option=self._db.write_option(last_update_time=snap.update_time),
            )
        except gcp_exceptions.FailedPrecondition:
            logger.warning(
                "Concurrent update detected: collection=%s, id=%s",
                self.collection_name,
                item_id,
            )
            return RepositoryResult.conflict("Document was modified concurrently")
        except gcp_exceptions.GoogleAPIError as e:
            logger.error(
                "Update failed: collection=%s, id=%s, error=%s",
                self.collection_name,
                item_id,
                e,
            )
            return RepositoryResult.failure(str(e))

        logger.info(
            "Updated %s: id=%s, revision=%d",
            self.model_cls.TYPE,
            item_id,
            merged["revision"],
        )
        return RepositoryResult.ok(self.model_cls.from_dict(merged))

    def delete(self, item_id: str):
        ref = self._collection().document(item_id)
        try:
            if not ref.get().exists:
                return RepositoryResult.not_found()
            ref.delete()
        except gcp_exceptions.GoogleAPIError as e:
            return RepositoryResult.failure(str(e))
        logger.info("Deleted %s: id=%s", self.model_cls.TYPE, item_id)
        return RepositoryResult.ok()

    def query(
        self,
        conditions: Sequence[Condition] = (),
        order_by: str | None = None,
        descending: bool = False,
    ):
        query = self._collection()
        for condition in conditions:
            query = query.where(filter=to_firestore_filter(condition))
        if order_by:
            query = query.order_by(
                order_by,
                direction=(
                    firestore.Query.DESCENDING
                    if descending
                    else firestore.Query.ASCENDING
                ),
            )
        try:
            items = [self._from_snapshot(snap) for snap in query.stream()]
        except gcp_exceptions.GoogleAPIError as e:
            logger.error(
                "Query failed: collection=%s, error=%s", self.collection_name, e
            )
            return RepositoryResult.failure(str(e))
        return RepositoryResult.ok(items)


class FirestoreUserRepository(FirestoreRepository, UserRepository):
    collection_name = USERS
    model_cls = User


class FirestoreFriendshipRepository(FirestoreRepository, FriendshipRepository):
    collection_name = FRIENDSHIPS
    model_cls = Friendship


class FirestoreGroupRepository(FirestoreRepository, GroupRepository):
    collection_name = GROUPS
    model_cls = Group


class FirestorePostRepository(FirestoreRepository, PostRepository):
    collection_name = POSTS
    model_cls = Post


class FirestoreCommentRepository(FirestoreRepository, CommentRepository):
    collection_name = COMMENTS
    model_cls = Comment


class FirestoreEventRepository(FirestoreRepository, EventRepository):
    collection_name = EVENTS
    model_cls = Event
