"""In-Memory Repository Adapter

EntityRepository のインメモリ実装。Firestore アダプターと同じ意味論
（conflict / not_found / revision）を持ち、テストとローカル開発で使う。

状態はインスタンスごとに持つ。モジュールレベルの共有状態は無い。
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping, Sequence
from typing import Any, ClassVar

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


def _compare(op: str, actual: Any, expected: Any) -> bool:
    if op == "==":
        return actual == expected
    if op == "!=":
        return actual != expected
    if op == "in":
        return actual in expected
    if op == "array_contains":
        return isinstance(actual, list) and expected in actual
    if op == "array_contains_any":
        return isinstance(actual, list) and any(v in actual for v in expected)
    # 範囲比較は Firestore と同じく型が合わないものを除外する
    if actual is None:
        return False
    try:
        if op == "<":
            return actual < expected
        if op == "<=":
            return actual <= expected
        if op == ">":
            return actual > expected
        if op == ">=":
            return actual >= expected
    except TypeError:
        return False
    raise ValueError(f"Unsupported operator: {op}")


def matches(data: Mapping[str, Any], condition: Condition) -> bool:
    """保存形式の dict が条件を満たすか判定する"""
    if isinstance(condition, Where):
        return _compare(condition.op, data.get(condition.field), condition.value)
    if isinstance(condition, AnyOf):
        return any(matches(data, c) for c in condition.conditions)
    if isinstance(condition, AllOf):
        return all(matches(data, c) for c in condition.conditions)
    raise TypeError(f"Unsupported condition: {condition!r}")


class InMemoryRepository(EntityRepository):
    """dict に camelCase の保存形式をそのまま持つ EntityRepository 実装"""

    model_cls: ClassVar[type[Entity]] = Entity

    def __init__(self, items: Sequence[Entity] = ()) -> None:
        self._docs: dict[str, dict[str, Any]] = {}
        for item in items:
            self._docs[item.id] = item.to_dict()

    def _load(self, data: Mapping[str, Any]) -> Any:
        return self.model_cls.from_dict(copy.deepcopy(dict(data)))

    def __len__(self) -> int:
        return len(self._docs)

    def create(self, item):
        if item.id in self._docs:
            return RepositoryResult.conflict(f"Document already exists: {item.id}")
        data = item.to_dict()
        self._docs[item.id] = copy.deepcopy(data)
        logger.debug("Created %s in memory: id=%s", self.model_cls.TYPE, item.id)
        return RepositoryResult.ok(self._load(data))

    def get_by_id(self, item_id: str):
        data = self._docs.get(item_id)
        if data is None:
            return RepositoryResult.not_found()
        return RepositoryResult.ok(self._load(data))

    def get_many(self, item_ids: Sequence[str]):
        return RepositoryResult.ok(
            BatchLoad(
                found=[self._load(self._docs[i]) for i in item_ids if i in self._docs],
                missing_ids=[i for i in item_ids if i not in self._docs],
            )
        )

    def update(
        self,
        item_id: str,
        updates: Mapping[str, Any],
        expected_revision: int | None = None,
    ):
        existing = self._docs.get(item_id)
        if existing is None:
            return RepositoryResult.not_found()

        current_revision = int(existing.get("revision") or 0)
        if expected_revision is not None and expected_revision != current_revision:
            return RepositoryResult.conflict(
                f"Revision mismatch: expected {expected_revision}, "
                f"found {current_revision}"
            )

        merged = {
            **existing,
            **copy.deepcopy(dict(updates)),
            "id": item_id,
            "updatedAt": utc_now_iso(),
            "revision": current_revision + 1,
        }
        self._docs[item_id] = merged
        return RepositoryResult.ok(self._load(merged))

    def delete(self, item_id: str):
        if self._docs.pop(item_id, None) is None:
            return RepositoryResult.not_found()
        return RepositoryResult.ok()

    def query(
        self,
        conditions: Sequence[Condition] = (),
        order_by: str | None = None,
        descending: bool = False,
    ):
        docs = [
            d for d in self._docs.values() if all(matches(d, c) for c in conditions)
        ]
        if order_by:
            # Firestore と同じく order_by のフィールドを持たないドキュメントは除外
            docs = [d for d in docs if d.get(order_by) is not None]
            docs.sort(key=lambda d: d[order_by], reverse=descending)
        return RepositoryResult.ok([self._load(d) for d in docs])


class InMemoryUserRepository(InMemoryRepository, UserRepository):
    model_cls = User


class InMemoryFriendshipRepository(InMemoryRepository, FriendshipRepository):
    model_cls = Friendship


class InMemoryGroupRepository(InMemoryRepository, GroupRepository):
    model_cls = Group


class InMemoryPostRepository(InMemoryRepository, PostRepository):
    model_cls = Post


class InMemoryCommentRepository(InMemoryRepository, CommentRepository):
    model_cls = Comment


class InMemoryEventRepository(InMemoryRepository, EventRepository):
    model_cls = Event
