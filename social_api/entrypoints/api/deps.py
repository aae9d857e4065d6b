"""FastAPI 依存性注入

設定・Firestore リポジトリ・Firebase Auth のトークン検証を提供する。
各ルートは Depends() でこのモジュールの関数を呼び出してリポジトリを受け取る。
テストでは app.dependency_overrides でインメモリ実装に差し替える。

ドキュメントストアが未設定（PROJECT_ID なし）の場合、リポジトリ依存の解決時点で
503 を送出するため、ボディ検証や業務ロジックより先に 503 が返る。
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

import firebase_admin
import firebase_admin.auth as fb_auth
from fastapi import Depends
from firebase_admin import credentials as fb_creds
from google.cloud import firestore

from social_api.adapters.firestore_repository import (
    FirestoreCommentRepository,
    FirestoreEventRepository,
    FirestoreFriendshipRepository,
    FirestoreGroupRepository,
    FirestorePostRepository,
    FirestoreUserRepository,
    create_client,
)
from social_api.config import AUTH_DOCUMENTATION, DATABASE_DOCUMENTATION, AppConfig
from social_api.domain.errors import AuthNotConfiguredError, DatabaseNotConfiguredError
from social_api.domain.ports import (
    CommentRepository,
    EventRepository,
    FriendshipRepository,
    GroupRepository,
    PostRepository,
    UserRepository,
)
from social_api.services.relationships import RelationshipService

logger = logging.getLogger(__name__)

# ── 設定 ────────────────────────────────────────────────────────────────────────

_app_config: AppConfig | None = None


def get_app_config() -> AppConfig:
    global _app_config
    if _app_config is None:
        _app_config = AppConfig.from_env()
    return _app_config


def database_not_configured_body() -> dict:
    """ドキュメントストア未設定時の固定レスポンスボディ"""
    return {
        "error": "Database not configured",
        "message": (
            "Firestore is not properly configured. "
            "Please check environment variables."
        ),
        "documentation": DATABASE_DOCUMENTATION,
    }


def auth_not_configured_body() -> dict:
    return {
        "error": "Authentication not configured",
        "message": (
            "Authentication service is not properly configured. "
            "Please check environment variables."
        ),
        "documentation": AUTH_DOCUMENTATION,
    }


# ── Firestore クライアント（シングルトン） ──────────────────────────────────────

_firestore_client: firestore.Client | None = None


def get_firestore_client(
    config: AppConfig = Depends(get_app_config),
) -> firestore.Client:
    """
    Firestore クライアントを返す依存関数。

    Raises:
        DatabaseNotConfiguredError: ドキュメントストアが未設定の場合（503）
    """
    global _firestore_client
    if not config.is_database_configured:
        raise DatabaseNotConfiguredError("Database not configured")
    if _firestore_client is None:
        _firestore_client = create_client(config)
        logger.info(
            "Firestore client initialized: project=%s, database=%s",
            config.project_id,
            config.firestore_database,
        )
    return _firestore_client


# ── リポジトリ依存 ─────────────────────────────────────────────────────────────


def get_user_repo(
    db: firestore.Client = Depends(get_firestore_client),
) -> UserRepository:
    """UserRepository を返す依存関数"""
    return FirestoreUserRepository(db)


def get_friendship_repo(
    db: firestore.Client = Depends(get_firestore_client),
) -> FriendshipRepository:
    """FriendshipRepository を返す依存関数"""
    return FirestoreFriendshipRepository(db)


def get_group_repo(
    db: firestore.Client = Depends(get_firestore_client),
) -> GroupRepository:
    """GroupRepository を返す依存関数"""
    return FirestoreGroupRepository(db)


def get_post_repo(
    db: firestore.Client = Depends(get_firestore_client),
) -> PostRepository:
    return FirestorePostRepository(db)


def get_comment_repo(
    db: firestore.Client = Depends(get_firestore_client),
) -> CommentRepository:
    return FirestoreCommentRepository(db)


def get_event_repo(
    db: firestore.Client = Depends(get_firestore_client),
) -> EventRepository:
    return FirestoreEventRepository(db)


def get_relationship_service(
    friendships: FriendshipRepository = Depends(get_friendship_repo),
    users: UserRepository = Depends(get_user_repo),
) -> RelationshipService:
    return RelationshipService(friendships=friendships, users=users)


# ── Firebase Admin 初期化（プロセス内で1回のみ） ────────────────────────────────

_firebase_app: firebase_admin.App | None = None


def _get_firebase_app(config: AppConfig) -> firebase_admin.App:
    global _firebase_app
    if _firebase_app is None:
        try:
            _firebase_app = firebase_admin.get_app()
        except ValueError:
            cred = fb_creds.ApplicationDefault()
            _firebase_app = firebase_admin.initialize_app(
                cred, options={"projectId": config.project_id}
            )
            logger.info("Firebase Admin initialized project=%s", config.project_id)
    return _firebase_app


# ── 認証 ────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class AuthInfo:
    """Firebase Auth ID トークンから取得した認証情報"""

    uid: str
    email: str
    display_name: str

    def to_user_info(self) -> dict:
        """/auth/sync-user にそのまま渡せる userInfo 形式"""
        return {
            "userId": self.uid,
            "email": self.email,
            "name": self.display_name,
            "username": self.email,
        }


class InvalidTokenError(Exception):
    """ID トークンの検証に失敗した"""


TokenVerifier = Callable[[str], AuthInfo]


def _verify_with_firebase(config: AppConfig) -> TokenVerifier:
    def verify(id_token: str) -> AuthInfo:
        _get_firebase_app(config)
        try:
            decoded = fb_auth.verify_id_token(id_token)
        except (ValueError, fb_auth.InvalidIdTokenError) as e:
            logger.warning("Invalid Firebase ID token: %s", e)
            raise InvalidTokenError(str(e)) from e
        return AuthInfo(
            uid=decoded["uid"],
            email=decoded.get("email", ""),
            display_name=decoded.get("name", ""),
        )

    return verify


def get_token_verifier(
    config: AppConfig = Depends(get_app_config),
) -> TokenVerifier:
    """
    ID トークン検証関数を返す依存関数。

    Raises:
        AuthNotConfiguredError: 認証が未設定の場合（503）
    """
    if not config.is_auth_configured:
        raise AuthNotConfiguredError("Authentication not configured")
    return _verify_with_firebase(config)
