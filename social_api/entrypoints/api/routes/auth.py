"""認証 API ルート（Firebase Auth 連携）

GET  /auth/status          → 200 { configured, message }
POST /auth/validate-token  → 200 { success, user } | 401 | 503
POST /auth/sync-user       → 200（既存）| 201（作成）| 409（email 重複）| 400 | 503
POST /auth/logout          → 200 { success, message }

トークンの発行はフロントエンド（Firebase Auth SDK）が行い、サーバーは検証のみ行う。
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from social_api.config import AUTH_DOCUMENTATION, AppConfig
from social_api.domain.errors import ConflictError, RepositoryError, ValidationError
from social_api.domain.models import User
from social_api.domain.ports import UserRepository
from social_api.entrypoints.api.deps import (
    InvalidTokenError,
    TokenVerifier,
    get_app_config,
    get_token_verifier,
    get_user_repo,
)
from social_api.entrypoints.api.results import unwrap
from social_api.entrypoints.api.schemas import CamelModel

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


class ValidateTokenRequest(CamelModel):
    id_token: str | None = None


class UserInfo(CamelModel):
    user_id: str | None = None
    email: str | None = None
    name: str | None = None
    username: str | None = None


class SyncUserRequest(CamelModel):
    user_info: UserInfo | None = None


@router.get("/status")
async def auth_status(config: AppConfig = Depends(get_app_config)) -> dict:
    return {
        "configured": config.is_auth_configured,
        "message": (
            "Firebase Authentication is properly configured"
            if config.is_auth_configured
            else f"Firebase Authentication requires configuration. {AUTH_DOCUMENTATION}"
        ),
    }


@router.post("/validate-token")
async def validate_token(
    body: ValidateTokenRequest,
    verify: TokenVerifier = Depends(get_token_verifier),
) -> dict:
    """
    Firebase ID トークンを検証してユーザー情報を返す。

    トークンそのものはレスポンスに含めない。
    """
    if not body.id_token:
        raise ValidationError("ID token is required")
    try:
        auth_info = verify(body.id_token)
    except InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Token validation failed", "details": str(e)},
        ) from e
    return {"success": True, "user": auth_info.to_user_info()}


@router.post("/sync-user")
async def sync_user(
    body: SyncUserRequest,
    response: Response,
    repo: UserRepository = Depends(get_user_repo),
) -> dict:
    """
    認証済みユーザーをユーザーストアと同期する。

    1. 外部認証 ID で既存ユーザーが見つかれば 200 でそのまま返す
    2. email が別アカウントで使われていれば 409
    3. それ以外は新規作成して 201
    """
    info = body.user_info
    if info is None or not info.user_id or not info.email:
        raise ValidationError("User info with userId and email is required")

    existing = repo.get_by_external_id(info.user_id)
    if existing.success:
        return existing.data.to_dict()
    if not existing.is_not_found:
        raise RepositoryError(existing.error or "Failed to look up user")

    by_email = repo.get_by_email(info.email)
    if by_email.success:
        raise ConflictError("User with this email already exists")
    if not by_email.is_not_found:
        raise RepositoryError(by_email.error or "Failed to look up email")

    user = User(
        external_id=info.user_id,
        email=info.email,
        name=info.name or info.username or info.email,
    )
    user.validate()
    created = unwrap(repo.create(user))
    logger.info("User synced from identity provider: id=%s", created.id)
    response.status_code = status.HTTP_201_CREATED
    return created.to_dict()


@router.post("/logout")
async def logout() -> dict:
    # セッションはクライアント側（Firebase Auth SDK）で破棄する
    return {"success": True, "message": "Logged out successfully"}
