"""設定管理 - 環境変数の型安全な読み込み

ドキュメントストア（Firestore）と認証（Firebase Auth）はどちらも PROJECT_ID が
無ければ「未設定」として扱い、依存するエンドポイントは 503 を返す。
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

DATABASE_DOCUMENTATION = "See docs/FIRESTORE_SETUP.md for setup instructions"
AUTH_DOCUMENTATION = "See docs/FIREBASE_AUTH_SETUP.md for setup instructions"


@dataclass(frozen=True)
class AppConfig:
    """アプリケーション設定"""

    project_id: str = ""
    firestore_database: str = "(default)"
    emulator_host: str = ""
    cors_origins: list[str] = field(default_factory=list)
    auth_enabled: bool = True

    @property
    def is_database_configured(self) -> bool:
        return bool(self.project_id and self.firestore_database)

    @property
    def is_auth_configured(self) -> bool:
        return bool(self.project_id) and self.auth_enabled

    @classmethod
    def from_env(cls) -> "AppConfig":
        """環境変数から設定を読み込む"""
        load_dotenv()

        cors_origins = [
            o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()
        ]

        return cls(
            project_id=os.getenv("PROJECT_ID", ""),
            firestore_database=os.getenv("FIRESTORE_DATABASE", "(default)"),
            emulator_host=os.getenv("FIRESTORE_EMULATOR_HOST", ""),
            cors_origins=cors_origins,
            auth_enabled=os.getenv("AUTH_DISABLED", "").lower() not in ("1", "true"),
        )


@dataclass(frozen=True)
class ClientConfig:
    """クライアント（SocialClient）設定"""

    api_base_url: str = "http://localhost:8000"
    mock_fallback: bool = True
    timeout_seconds: float = 10.0

    @classmethod
    def from_env(cls) -> "ClientConfig":
        load_dotenv()
        return cls(
            api_base_url=os.getenv("API_BASE_URL", "http://localhost:8000"),
            mock_fallback=os.getenv("MOCK_FALLBACK", "true").lower()
            in ("1", "true", "yes"),
            timeout_seconds=float(os.getenv("API_TIMEOUT_SECONDS", "10")),
        )
