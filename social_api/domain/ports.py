"""Ports - 永続化層のインターフェース定義（ABC）

EntityRepository が汎用 CRUD + クエリの契約を定義し、エンティティ別の
Repository はその上にクエリヘルパーを組み立てる。
Adapter（Firestore / インメモリ）は EntityRepository の抽象メソッドだけを実装すればよい。

全操作は例外を投げず RepositoryResult を返す:
  RepositoryResult(success=True, data=...)
  RepositoryResult(success=False, error="...", error_kind=ErrorKind.NOT_FOUND)

クエリ条件は Where / AnyOf / AllOf の値オブジェクトで表し、値は常にパラメータとして
SDK に渡す（クエリ文字列への埋め込みは行わない）。
"""

from __future__ import annotations

import datetime
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from social_api.domain.models import (
    Comment,
    Entity,
    Event,
    Friendship,
    FriendshipStatus,
    Group,
    Post,
    User,
)

T = TypeVar("T", bound=Entity)
D = TypeVar("D")


# ── 結果型 ──────────────────────────────────────────────────────────────────


class ErrorKind(Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    FAILURE = "failure"


@dataclass(frozen=True)
class RepositoryResult(Generic[D]):
    """永続化操作の統一結果型"""

    success: bool
    data: D | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None

    @classmethod
    def ok(cls, data: D | None = None) -> RepositoryResult[D]:
        return cls(success=True, data=data)

    @classmethod
    def not_found(cls, error: str = "Document not found") -> RepositoryResult[D]:
        return cls(success=False, error=error, error_kind=ErrorKind.NOT_FOUND)

    @classmethod
    def conflict(cls, error: str) -> RepositoryResult[D]:
        return cls(success=False, error=error, error_kind=ErrorKind.CONFLICT)

    @classmethod
    def failure(cls, error: str) -> RepositoryResult[D]:
        return cls(success=False, error=error, error_kind=ErrorKind.FAILURE)

    @property
    def is_not_found(self) -> bool:
        return self.error_kind is ErrorKind.NOT_FOUND

    @property
    def is_conflict(self) -> bool:
        return self.error_kind is ErrorKind.CONFLICT


@dataclass(frozen=True)
class BatchLoad(Generic[T]):
    """
    ID 一括取得の結果。

    存在しない ID は found から除外され、missing_ids に要求順で列挙される。
    """

    found: list[T] = field(default_factory=list)
    missing_ids: list[str] = field(default_factory=list)

    def by_id(self) -> dict[str, T]:
        return {item.id: item for item in self.found}


# ── クエリ条件 ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Where:
    """単一フィールド条件。op は "==", "!=", "<", "<=", ">", ">=", "in",
    "array_contains", "array_contains_any" のいずれか"""

    field: str
    op: str
    value: Any


@dataclass(frozen=True)
class AnyOf:
    """OR 条件"""

    conditions: tuple[Condition, ...]


@dataclass(frozen=True)
class AllOf:
    """AND 条件"""

    conditions: tuple[Condition, ...]


Condition = Where | AnyOf | AllOf


# ── 汎用リポジトリ ──────────────────────────────────────────────────────────


class EntityRepository(ABC, Generic[T]):
    """エンティティ 1 種類 = 1 コレクションの CRUD 契約"""

    @abstractmethod
    def create(self, item: T) -> RepositoryResult[T]:
        """新規作成。同じ ID が既に存在する場合は conflict"""
        pass

    @abstractmethod
    def get_by_id(self, item_id: str) -> RepositoryResult[T]:
        pass

    @abstractmethod
    def get_many(self, item_ids: Sequence[str]) -> RepositoryResult[BatchLoad[T]]:
        """ID を一括取得する。存在しない ID は missing_ids に入る"""
        pass

    @abstractmethod
    def update(
        self,
        item_id: str,
        updates: Mapping[str, Any],
        expected_revision: int | None = None,
    ) -> RepositoryResult[T]:
        """
        既存レコードを読み直し、updates（camelCase）をマージして置き換える。

        id は変更不可、updatedAt は現在時刻、revision は +1 に強制される。
        expected_revision が指定され、保存済みの revision と異なる場合は conflict。
        """
        pass

    @abstractmethod
    def delete(self, item_id: str) -> RepositoryResult[None]:
        pass

    @abstractmethod
    def query(
        self,
        conditions: Sequence[Condition] = (),
        order_by: str | None = None,
        descending: bool = False,
    ) -> RepositoryResult[list[T]]:
        """conditions を AND で結合して検索する"""
        pass

    def get_all(
        self, conditions: Sequence[Condition] | None = None
    ) -> RepositoryResult[list[T]]:
        return self.query(conditions or ())

    def first(self, conditions: Sequence[Condition], error: str) -> RepositoryResult[T]:
        """条件に一致する最初の 1 件。無ければ not_found(error)"""
        result = self.query(conditions)
        if not result.success:
            return RepositoryResult.failure(result.error or "Query failed")
        if not result.data:
            return RepositoryResult.not_found(error)
        return RepositoryResult.ok(result.data[0])


def _contains(haystack: str, needle: str) -> bool:
    return needle.lower() in (haystack or "").lower()


# ── エンティティ別リポジトリ ────────────────────────────────────────────────


class UserRepository(EntityRepository[User]):
    """users コレクション"""

    def get_by_email(self, email: str) -> RepositoryResult[User]:
        return self.first([Where("email", "==", email)], "User not found")

    def get_by_external_id(self, external_id: str) -> RepositoryResult[User]:
        return self.first([Where("externalId", "==", external_id)], "User not found")

    def search(self, term: str) -> RepositoryResult[list[User]]:
        """名前またはメールアドレスの部分一致（大文字小文字を区別しない）"""
        # Firestore は部分一致クエリを持たないため全件から絞り込む
        result = self.get_all()
        if not result.success:
            return result
        return RepositoryResult.ok(
            [
                u
                for u in result.data or []
                if _contains(u.name, term) or _contains(u.email, term)
            ]
        )

    def batch_get(self, user_ids: Sequence[str]) -> RepositoryResult[BatchLoad[User]]:
        if not user_ids:
            return RepositoryResult.ok(BatchLoad())
        return self.get_many(list(dict.fromkeys(user_ids)))


class FriendshipRepository(EntityRepository[Friendship]):
    """friendships コレクション"""

    def list_for_user(self, user_id: str) -> RepositoryResult[list[Friendship]]:
        """user_id がどちらかのスロットに入っている友達関係"""
        return self.query(
            [
                AnyOf(
                    (
                        Where("userId", "==", user_id),
                        Where("friendId", "==", user_id),
                    )
                )
            ]
        )

    def list_pending_for(self, user_id: str) -> RepositoryResult[list[Friendship]]:
        """user_id 宛ての未回答の申請"""
        return self.query(
            [
                Where("friendId", "==", user_id),
                Where("status", "==", FriendshipStatus.PENDING.value),
            ]
        )

    def find_between(self, user_a: str, user_b: str) -> RepositoryResult[Friendship]:
        """2 ユーザー間の友達関係（申請方向は問わない）"""
        return self.first(
            [
                AnyOf(
                    (
                        AllOf(
                            (
                                Where("userId", "==", user_a),
                                Where("friendId", "==", user_b),
                            )
                        ),
                        AllOf(
                            (
                                Where("userId", "==", user_b),
                                Where("friendId", "==", user_a),
                            )
                        ),
                    )
                )
            ],
            "Friendship not found",
        )


class GroupRepository(EntityRepository[Group]):
    """groups コレクション"""

    def list_for_user(self, user_id: str) -> RepositoryResult[list[Group]]:
        """メンバーまたは管理者として所属しているグループ"""
        return self.query(
            [
                AnyOf(
                    (
                        Where("memberIds", "array_contains", user_id),
                        Where("adminIds", "array_contains", user_id),
                    )
                )
            ]
        )

    def list_public(self) -> RepositoryResult[list[Group]]:
        return self.query([Where("isPublic", "==", True)])

    def search(self, term: str) -> RepositoryResult[list[Group]]:
        """名前の部分一致、またはタグの完全一致"""
        result = self.get_all()
        if not result.success:
            return result
        needle = term.lower()
        return RepositoryResult.ok(
            [
                g
                for g in result.data or []
                if _contains(g.name, term)
                or needle in [t.lower() for t in g.tags if isinstance(t, str)]
            ]
        )

    def search_by_tags(self, tags: Sequence[str]) -> RepositoryResult[list[Group]]:
        """いずれかのタグを持つ公開グループ"""
        if not tags:
            return RepositoryResult.failure("Tags array is required")
        return self.query(
            [
                Where("isPublic", "==", True),
                Where("tags", "array_contains_any", list(tags)),
            ]
        )


class PostRepository(EntityRepository[Post]):
    """posts コレクション（新しい順）"""

    def list_for_group(self, group_id: str) -> RepositoryResult[list[Post]]:
        return self.query(
            [Where("groupId", "==", group_id)], order_by="createdAt", descending=True
        )

    def list_for_event(self, event_id: str) -> RepositoryResult[list[Post]]:
        return self.query(
            [Where("eventId", "==", event_id)], order_by="createdAt", descending=True
        )


class CommentRepository(EntityRepository[Comment]):
    """comments コレクション"""

    def list_for_post(self, post_id: str) -> RepositoryResult[list[Comment]]:
        return self.query([Where("postId", "==", post_id)], order_by="createdAt")


class EventRepository(EntityRepository[Event]):
    """events コレクション（開始日時の昇順）"""

    def list_by_organizer(self, organizer_id: str) -> RepositoryResult[list[Event]]:
        return self.query(
            [Where("organizerId", "==", organizer_id)], order_by="startDate"
        )

    def list_upcoming(
        self, now: datetime.datetime | None = None
    ) -> RepositoryResult[list[Event]]:
        now = now or datetime.datetime.now(datetime.UTC)
        # startDate は UTC で保存されているため、文字列比較で時刻順になる
        after = now.astimezone(datetime.UTC).isoformat()
        return self.query([Where("startDate", ">", after)], order_by="startDate")
