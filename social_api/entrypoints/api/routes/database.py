"""データベース状態 API ルート

GET /database/status → 200 { configured, connection, config, message }

未設定でも 503 にはせず、状態をそのまま報告する。
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from social_api.adapters.firestore_repository import check_connection
from social_api.config import DATABASE_DOCUMENTATION, AppConfig
from social_api.entrypoints.api.deps import get_app_config

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/database", tags=["database"])


@router.get("/status")
async def database_status(config: AppConfig = Depends(get_app_config)) -> dict:
    if config.is_database_configured:
        connection = check_connection(config)
    else:
        connection = {"success": False, "error": "Database not configured"}

    return {
        "configured": config.is_database_configured,
        "connection": connection,
        "config": {
            "project": config.project_id or "Not set",
            "database": config.firestore_database or "Not set",
            "emulator": config.emulator_host or None,
        },
        "message": (
            "Firestore is configured"
            if config.is_database_configured
            else f"Firestore requires configuration. {DATABASE_DOCUMENTATION}"
        ),
    }
