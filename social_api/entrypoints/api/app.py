"""FastAPI アプリケーション

プライバシー重視のソーシャルネットワーク バックエンド API。
ユーザー・友達関係・グループ・イベント・投稿を Firestore に保存する。

エンドポイント一覧:
  /api/users/...        ユーザー・プライバシー設定・共通の友達
  /api/friendships/...  友達申請と承認
  /api/groups/...       グループ・参加申請・グループ投稿
  /api/events/...       イベント・出欠・イベント投稿
  /api/posts/...        投稿とコメント
  /auth/...             Firebase Auth 連携        ← ドキュメントストア不要
  /database/status      Firestore 接続状態        ← ドキュメントストア不要
  GET /, GET /health

エラーレスポンスは全て {"error": "..."} 形式。

ローカル起動: social-api-serve（または uvicorn social_api.entrypoints.api.app:app）
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from social_api.config import AppConfig
from social_api.domain.errors import (
    AuthNotConfiguredError,
    ConflictError,
    DatabaseNotConfiguredError,
    NotFoundError,
    SocialApiError,
    ValidationError,
)
from social_api.domain.models import utc_now_iso
from social_api.entrypoints.api.deps import (
    auth_not_configured_body,
    database_not_configured_body,
)
from social_api.entrypoints.api.routes import (
    auth,
    database,
    events,
    friendships,
    groups,
    posts,
    users,
)
from social_api.logging_config import log_fields, setup_logging

API_VERSION = "1.0.0"

# ── ロギング初期化 ───────────────────────────────────────────────────────────
setup_logging()
logger = logging.getLogger(__name__)

# ── FastAPI アプリ ───────────────────────────────────────────────────────────
app = FastAPI(
    title="Social API",
    description="プライバシー重視のソーシャルネットワーク バックエンド API",
    version=API_VERSION,
)


# ── 例外ハンドラー ───────────────────────────────────────────────────────────


def _status_for(exc: SocialApiError) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ConflictError):
        return 409
    if isinstance(exc, (DatabaseNotConfiguredError, AuthNotConfiguredError)):
        return 503
    return 500


@app.exception_handler(SocialApiError)
async def _handle_domain_error(request: Request, exc: SocialApiError) -> JSONResponse:
    if isinstance(exc, DatabaseNotConfiguredError):
        return JSONResponse(status_code=503, content=database_not_configured_body())
    if isinstance(exc, AuthNotConfiguredError):
        return JSONResponse(status_code=503, content=auth_not_configured_body())

    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error(
            "Persistence error: %s %s - %s", request.method, request.url.path, exc
        )
    return JSONResponse(status_code=status_code, content={"error": str(exc)})


@app.exception_handler(StarletteHTTPException)
async def _handle_http_error(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    # dict の detail（固定ボディ）はそのまま返す
    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(
        status_code=exc.status_code, content=content, headers=exc.headers
    )


def _describe(error: dict) -> str:
    ctx_error = (error.get("ctx") or {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    location = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
    return f"{location}: {error.get('msg')}" if location else str(error.get("msg"))


@app.exception_handler(RequestValidationError)
async def _handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """ボディ全体の検証結果を 1 回で返す（先頭の違反を error に入れる）"""
    details = [_describe(e) for e in exc.errors()]
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder(
            {"error": details[0] if details else "Invalid request", "details": details}
        ),
    )


# ── グローバル例外ミドルウェア ──────────────────────────────────────────────────
# 【登録順の注意】
#   add_middleware は後から登録したものが外側になる（insert(0, ...) のため）。
#   このミドルウェアを CORSMiddleware より先に登録することで内側に配置し、
#   500 レスポンスが CORSMiddleware を通過して CORS ヘッダーが付与される。
#
# スタック: ServerErrorMiddleware → CORSMiddleware → このMW → ExceptionMiddleware → Routes


@app.middleware("http")
async def _catch_unhandled_exceptions(
    request: Request, call_next: Callable[[Request], Response]
) -> Response:
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as exc:
        logger.error(
            "Unhandled exception: %s %s - %s",
            request.method,
            request.url.path,
            exc,
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"},
        )

    logger.info(
        "%s %s %d",
        request.method,
        request.url.path,
        response.status_code,
        extra=log_fields(
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        ),
    )
    return response


# ── CORS ─────────────────────────────────────────────────────────────────────
# CORS_ORIGINS 環境変数でカンマ区切りのオリジンを指定可能
# 【後から登録 = 外側】例外ミドルウェアを内包し、全レスポンスに CORS ヘッダーを付与する
_cors_origins = AppConfig.from_env().cors_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins if _cors_origins else ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

# ── ルーター登録 ─────────────────────────────────────────────────────────────
_PREFIX = "/api"

app.include_router(users.router, prefix=_PREFIX)
app.include_router(friendships.router, prefix=_PREFIX)
app.include_router(groups.router, prefix=_PREFIX)
app.include_router(events.router, prefix=_PREFIX)
app.include_router(posts.router, prefix=_PREFIX)

# ドキュメントストアに依存しないルート
app.include_router(auth.router)
app.include_router(database.router)


@app.get("/")
async def root() -> dict:
    return {
        "message": "Social API Backend API",
        "version": API_VERSION,
        "status": "running",
    }


@app.get("/health")
async def health() -> dict:
    """ヘルスチェックエンドポイント（Cloud Run の起動確認用）"""
    return {"status": "OK", "timestamp": utc_now_iso()}


logger.info("Social API started")


def serve() -> None:
    """uvicorn でローカル起動する（PORT 環境変数、既定 8000）"""
    import uvicorn

    port = int(os.getenv("PORT", "8000"))
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    serve()
