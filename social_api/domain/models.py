"""ドメインモデル - 外部依存なしのデータ構造

全エンティティは Entity を継承し、以下を共通で持つ:
  id          : 生成時に uuid4 を採番
  created_at  : 生成時刻（ISO8601, UTC）
  updated_at  : touch() のたびに更新
  revision    : 楽観的排他制御用のカウンタ（update のたびに +1）

コンストラクタは例外を投げない。検証は validate() を明示的に呼んだときだけ行い、
最初に見つかった違反で ValidationError を送出する（fail-fast）。

保存形式・API のワイヤ形式はどちらも camelCase の dict（to_dict / from_dict）。
"""

from __future__ import annotations

import datetime
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from social_api.domain.errors import InvalidTransitionError, ValidationError


def utc_now_iso() -> str:
    """現在時刻を ISO8601（UTC）文字列で返す"""
    return datetime.datetime.now(datetime.UTC).isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


def parse_datetime(value: str) -> datetime.datetime | None:
    """ISO8601 文字列を aware な datetime に変換する。解釈できない場合は None"""
    try:
        parsed = datetime.datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.UTC)
    return parsed


def to_utc_iso(value: str) -> str:
    """日時文字列を UTC の ISO8601 に揃える。解釈できない値はそのまま返す"""
    parsed = parse_datetime(value) if value else None
    if parsed is None:
        return value
    return parsed.astimezone(datetime.UTC).isoformat()


def _list_or_raw(value: Any) -> Any:
    # 不正な型は validate() で検出できるようそのまま残す
    if value is None:
        return []
    if isinstance(value, list):
        return list(value)
    return value


# ── 列挙型 ──────────────────────────────────────────────────────────────────


class Role(Enum):
    """ユーザーロール"""

    MEMBER = "member"
    GROUP_ADMIN = "group_admin"
    GLOBAL_ADMIN = "global_admin"


class Visibility(Enum):
    """プロフィール項目の公開範囲"""

    FRIENDS = "friends"
    FRIENDS_OF_FRIENDS = "friends_of_friends"
    ALL_USERS = "all_users"


class Discoverability(Enum):
    """検索でユーザーを見つけられる範囲"""

    NONE = "none"
    FRIENDS_OF_FRIENDS = "friends_of_friends"
    ALL_USERS = "all_users"


class FriendshipStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class RsvpStatus(Enum):
    ATTENDING = "attending"
    NOT_ATTENDING = "not_attending"
    MAYBE = "maybe"


class MembershipAction(Enum):
    ACCEPT = "accept"
    REJECT = "reject"


def enum_values(enum_cls: type[Enum]) -> list[str]:
    return [m.value for m in enum_cls]


# 友達申請の状態遷移表。accepted / rejected は終端状態
FRIENDSHIP_TRANSITIONS: dict[str, frozenset[str]] = {
    FriendshipStatus.PENDING.value: frozenset(
        {FriendshipStatus.ACCEPTED.value, FriendshipStatus.REJECTED.value}
    ),
    FriendshipStatus.ACCEPTED.value: frozenset(),
    FriendshipStatus.REJECTED.value: frozenset(),
}


# ── 基底エンティティ ────────────────────────────────────────────────────────


@dataclass
class Entity:
    """全エンティティ共通の識別子・タイムスタンプ・リビジョン"""

    TYPE: ClassVar[str] = ""

    id: str = ""
    created_at: str = ""
    updated_at: str = ""
    revision: int = 0

    def __post_init__(self) -> None:
        if not self.id:
            self.id = new_id()
        if not self.created_at:
            self.created_at = utc_now_iso()
        if not self.updated_at:
            self.updated_at = self.created_at

    def touch(self) -> None:
        """updated_at を現在時刻に更新する"""
        self.updated_at = utc_now_iso()

    def validate(self) -> None:
        if not self.id:
            raise ValidationError("ID is required")

    def to_dict(self) -> dict[str, Any]:
        """保存・レスポンス用の camelCase dict に変換する"""
        return {
            "id": self.id,
            "type": self.TYPE,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "revision": self.revision,
            **self._payload(),
        }

    def _payload(self) -> dict[str, Any]:
        return {}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Entity:
        return cls(**cls._base_kwargs(data))

    @staticmethod
    def _base_kwargs(data: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "id": data.get("id") or "",
            "created_at": data.get("createdAt") or "",
            "updated_at": data.get("updatedAt") or "",
            "revision": int(data.get("revision") or 0),
        }


# ── User ────────────────────────────────────────────────────────────────────


@dataclass
class PrivacySettings:
    """5 項目それぞれ独立した公開範囲設定"""

    profile_picture_visibility: str = Visibility.FRIENDS.value
    bio_visibility: str = Visibility.FRIENDS.value
    contact_details_visibility: str = Visibility.FRIENDS.value
    friends_list_visibility: str = Visibility.FRIENDS.value
    user_discoverability: str = Discoverability.FRIENDS_OF_FRIENDS.value

    # ワイヤ上のキー → 属性名
    WIRE_KEYS: ClassVar[dict[str, str]] = {
        "profilePictureVisibility": "profile_picture_visibility",
        "bioVisibility": "bio_visibility",
        "contactDetailsVisibility": "contact_details_visibility",
        "friendsListVisibility": "friends_list_visibility",
        "userDiscoverability": "user_discoverability",
    }

    def validate(self) -> None:
        visibility = enum_values(Visibility)
        for key, attr in self.WIRE_KEYS.items():
            allowed = (
                enum_values(Discoverability)
                if attr == "user_discoverability"
                else visibility
            )
            if getattr(self, attr) not in allowed:
                raise ValidationError(f"Invalid {key} value")

    def merged(self, updates: Mapping[str, Any]) -> PrivacySettings:
        """指定されたキーだけを上書きした新しい設定を返す（None は無視）"""
        data = self.to_dict()
        data.update(
            {
                k: v
                for k, v in updates.items()
                if k in self.WIRE_KEYS and v is not None
            }
        )
        return PrivacySettings.from_dict(data)

    def to_dict(self) -> dict[str, str]:
        return {key: getattr(self, attr) for key, attr in self.WIRE_KEYS.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> PrivacySettings:
        data = data or {}
        defaults = cls()
        return cls(
            **{
                attr: data.get(key) or getattr(defaults, attr)
                for key, attr in cls.WIRE_KEYS.items()
            }
        )


@dataclass
class User(Entity):
    """ユーザー。外部認証 ID（Firebase uid 等）は未連携なら None"""

    TYPE: ClassVar[str] = "user"

    external_id: str | None = None
    email: str = ""
    name: str = ""
    bio: str = ""
    contact_details: dict[str, str] = field(default_factory=dict)
    role: str = Role.MEMBER.value
    privacy_settings: PrivacySettings = field(default_factory=PrivacySettings)

    def validate(self) -> None:
        super().validate()
        if not self.email:
            raise ValidationError("Email is required")
        if not self.name:
            raise ValidationError("Name is required")
        if self.role not in enum_values(Role):
            raise ValidationError("Invalid role")
        self.privacy_settings.validate()

    def _payload(self) -> dict[str, Any]:
        return {
            "externalId": self.external_id,
            "email": self.email,
            "name": self.name,
            "bio": self.bio,
            "contactDetails": dict(self.contact_details),
            "role": self.role,
            "privacySettings": self.privacy_settings.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> User:
        return cls(
            **cls._base_kwargs(data),
            # azureId は旧クライアントとの互換用
            external_id=data.get("externalId") or data.get("azureId") or None,
            email=data.get("email") or "",
            name=data.get("name") or "",
            bio=data.get("bio") or "",
            contact_details=dict(data.get("contactDetails") or {}),
            role=data.get("role") or Role.MEMBER.value,
            privacy_settings=PrivacySettings.from_dict(data.get("privacySettings")),
        )


# ── Friendship ──────────────────────────────────────────────────────────────


@dataclass
class Friendship(Entity):
    """
    友達関係。申請者に関わらず user_id / friend_id の 2 スロットで表す無向関係。

    作成時は user_id = requested_by で pending。
    相手側が accepted / rejected に遷移させる（FRIENDSHIP_TRANSITIONS 参照）。
    """

    TYPE: ClassVar[str] = "friendship"

    user_id: str = ""
    friend_id: str = ""
    status: str = FriendshipStatus.PENDING.value
    requested_by: str = ""

    def validate(self) -> None:
        super().validate()
        if not self.user_id:
            raise ValidationError("User ID is required")
        if not self.friend_id:
            raise ValidationError("Friend ID is required")
        if not self.requested_by:
            raise ValidationError("Requested by is required")
        if self.status not in enum_values(FriendshipStatus):
            raise ValidationError("Invalid status")
        if self.user_id == self.friend_id:
            raise ValidationError("User cannot befriend themselves")
        if self.requested_by not in (self.user_id, self.friend_id):
            raise ValidationError("Requested by must be one of the two users")

    def can_transition_to(self, status: str) -> bool:
        return status in FRIENDSHIP_TRANSITIONS.get(self.status, frozenset())

    def transition_to(self, status: str) -> None:
        """
        状態を遷移させる。

        Raises:
            InvalidTransitionError: 遷移表にない遷移の場合
        """
        if not self.can_transition_to(status):
            raise InvalidTransitionError(
                f"Cannot change friendship status from {self.status} to {status}"
            )
        self.status = status
        self.touch()

    def involves(self, user_id: str) -> bool:
        return user_id in (self.user_id, self.friend_id)

    def other_party(self, user_id: str) -> str:
        """user_id から見た相手側の ID を返す"""
        return self.friend_id if self.user_id == user_id else self.user_id

    def _payload(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "friendId": self.friend_id,
            "status": self.status,
            "requestedBy": self.requested_by,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Friendship:
        return cls(
            **cls._base_kwargs(data),
            user_id=data.get("userId") or "",
            friend_id=data.get("friendId") or "",
            status=data.get("status") or FriendshipStatus.PENDING.value,
            requested_by=data.get("requestedBy") or "",
        )


# ── Group ───────────────────────────────────────────────────────────────────


@dataclass
class Group(Entity):
    """グループ。管理者は最低 1 人必要"""

    TYPE: ClassVar[str] = "group"

    name: str = ""
    description: str = ""
    tags: list[str] = field(default_factory=list)
    admin_ids: list[str] = field(default_factory=list)
    member_ids: list[str] = field(default_factory=list)
    membership_requests: list[str] = field(default_factory=list)
    is_public: bool = True

    def validate(self) -> None:
        super().validate()
        if not self.name:
            raise ValidationError("Group name is required")
        if not isinstance(self.tags, list):
            raise ValidationError("Tags must be a list")
        if not isinstance(self.admin_ids, list) or not self.admin_ids:
            raise ValidationError("At least one admin is required")

    def is_admin(self, user_id: str) -> bool:
        return user_id in self.admin_ids

    def is_member(self, user_id: str) -> bool:
        return user_id in self.member_ids or self.is_admin(user_id)

    def add_member(self, user_id: str) -> None:
        if user_id not in self.member_ids:
            self.member_ids.append(user_id)
            self.touch()

    def remove_member(self, user_id: str) -> None:
        self.member_ids = [uid for uid in self.member_ids if uid != user_id]
        self.membership_requests = [
            uid for uid in self.membership_requests if uid != user_id
        ]
        self.touch()

    def add_membership_request(self, user_id: str) -> bool:
        """参加申請を追加する。既に申請中・参加済みなら何もせず False を返す"""
        if user_id in self.membership_requests or user_id in self.member_ids:
            return False
        self.membership_requests.append(user_id)
        self.touch()
        return True

    def resolve_membership_request(self, user_id: str, action: str) -> None:
        """
        参加申請を承認・却下する。申請一覧からは常に取り除く。

        Raises:
            ValidationError: action が accept / reject 以外の場合
        """
        if action not in enum_values(MembershipAction):
            raise ValidationError('Invalid action. Use "accept" or "reject"')
        self.membership_requests = [
            uid for uid in self.membership_requests if uid != user_id
        ]
        if action == MembershipAction.ACCEPT.value:
            self.add_member(user_id)
        self.touch()

    def _payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "tags": _list_or_raw(self.tags),
            "adminIds": _list_or_raw(self.admin_ids),
            "memberIds": list(self.member_ids),
            "membershipRequests": list(self.membership_requests),
            "isPublic": self.is_public,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Group:
        # isPublic が無い旧データは privacy 文字列から導出する
        if data.get("isPublic") is not None:
            is_public = bool(data["isPublic"])
        elif data.get("privacy") is not None:
            is_public = data["privacy"] == "public"
        else:
            is_public = True
        return cls(
            **cls._base_kwargs(data),
            name=data.get("name") or "",
            description=data.get("description") or "",
            tags=_list_or_raw(data.get("tags")),
            admin_ids=_list_or_raw(data.get("adminIds")),
            member_ids=list(data.get("memberIds") or []),
            membership_requests=list(data.get("membershipRequests") or []),
            is_public=is_public,
        )


# ── Post / Comment ──────────────────────────────────────────────────────────


@dataclass
class Post(Entity):
    """投稿。group_id と event_id のどちらか一方にだけ属する"""

    TYPE: ClassVar[str] = "post"

    author_id: str = ""
    content: str = ""
    group_id: str | None = None
    event_id: str | None = None
    attachments: list[str] = field(default_factory=list)

    def validate(self) -> None:
        super().validate()
        if not self.author_id:
            raise ValidationError("Author ID is required")
        if not self.content:
            raise ValidationError("Content is required")
        if not self.group_id and not self.event_id:
            raise ValidationError("Either group ID or event ID is required")
        if self.group_id and self.event_id:
            raise ValidationError("Post cannot belong to both group and event")

    def _payload(self) -> dict[str, Any]:
        return {
            "authorId": self.author_id,
            "content": self.content,
            "groupId": self.group_id,
            "eventId": self.event_id,
            "attachments": list(self.attachments),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Post:
        return cls(
            **cls._base_kwargs(data),
            author_id=data.get("authorId") or "",
            content=data.get("content") or "",
            group_id=data.get("groupId") or None,
            event_id=data.get("eventId") or None,
            attachments=list(data.get("attachments") or []),
        )


@dataclass
class Comment(Entity):
    """投稿へのコメント"""

    TYPE: ClassVar[str] = "comment"

    post_id: str = ""
    author_id: str = ""
    content: str = ""

    def validate(self) -> None:
        super().validate()
        if not self.post_id:
            raise ValidationError("Post ID is required")
        if not self.author_id:
            raise ValidationError("Author ID is required")
        if not self.content:
            raise ValidationError("Content is required")

    def _payload(self) -> dict[str, Any]:
        return {
            "postId": self.post_id,
            "authorId": self.author_id,
            "content": self.content,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Comment:
        return cls(
            **cls._base_kwargs(data),
            post_id=data.get("postId") or "",
            author_id=data.get("authorId") or "",
            content=data.get("content") or "",
        )


# ── Event ───────────────────────────────────────────────────────────────────


@dataclass
class Rsvp:
    """イベントへの出欠回答（ユーザーごとに最大 1 件）"""

    user_id: str
    status: str
    responded_at: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "userId": self.user_id,
            "status": self.status,
            "respondedAt": self.responded_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Rsvp:
        return cls(
            user_id=data.get("userId") or "",
            status=data.get("status") or "",
            responded_at=data.get("respondedAt") or "",
        )


@dataclass
class Event(Entity):
    """イベント。end_date は任意だが start_date より前にはできない"""

    TYPE: ClassVar[str] = "event"

    organizer_id: str = ""
    title: str = ""
    description: str = ""
    location: str = ""
    start_date: str = ""  # ISO8601。保存時に UTC へ揃える
    end_date: str = ""
    invited_user_ids: list[str] = field(default_factory=list)
    invited_group_ids: list[str] = field(default_factory=list)
    rsvps: list[Rsvp] = field(default_factory=list)

    def validate(self) -> None:
        super().validate()
        if not self.organizer_id:
            raise ValidationError("Organizer ID is required")
        if not self.title:
            raise ValidationError("Title is required")
        if not self.start_date:
            raise ValidationError("Start date is required")
        start = parse_datetime(self.start_date)
        if start is None:
            raise ValidationError("Invalid start date")
        if self.end_date:
            end = parse_datetime(self.end_date)
            if end is None:
                raise ValidationError("Invalid end date")
            if end < start:
                raise ValidationError("End date cannot be before start date")

    def update_rsvp(self, user_id: str, status: str) -> Rsvp:
        """
        出欠を登録・更新する（user_id をキーにした upsert、最後の回答が勝つ）。

        Raises:
            ValidationError: status が attending / not_attending / maybe 以外の場合
        """
        if status not in enum_values(RsvpStatus):
            raise ValidationError("Invalid RSVP status")

        rsvp = Rsvp(user_id=user_id, status=status, responded_at=utc_now_iso())
        for index, existing in enumerate(self.rsvps):
            if existing.user_id == user_id:
                self.rsvps[index] = rsvp
                break
        else:
            self.rsvps.append(rsvp)

        self.touch()
        return rsvp

    def get_rsvp(self, user_id: str) -> Rsvp | None:
        return next((r for r in self.rsvps if r.user_id == user_id), None)

    def is_invited(self, user_id: str) -> bool:
        return user_id in self.invited_user_ids

    def _payload(self) -> dict[str, Any]:
        return {
            "organizerId": self.organizer_id,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "startDate": to_utc_iso(self.start_date),
            "endDate": to_utc_iso(self.end_date),
            "invitedUserIds": list(self.invited_user_ids),
            "invitedGroupIds": list(self.invited_group_ids),
            "rsvps": [r.to_dict() for r in self.rsvps],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Event:
        return cls(
            **cls._base_kwargs(data),
            organizer_id=data.get("organizerId") or "",
            title=data.get("title") or "",
            description=data.get("description") or "",
            location=data.get("location") or "",
            start_date=data.get("startDate") or "",
            end_date=data.get("endDate") or "",
            invited_user_ids=list(data.get("invitedUserIds") or []),
            invited_group_ids=list(data.get("invitedGroupIds") or []),
            rsvps=[Rsvp.from_dict(r) for r in data.get("rsvps") or []],
        )
