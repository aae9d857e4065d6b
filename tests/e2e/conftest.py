"""E2E テスト用フィクスチャ

Firestore Emulator に接続し、実際の Firestore Repository を使ってテストする。

前提: FIRESTORE_EMULATOR_HOST 環境変数が設定されていること
  例: FIRESTORE_EMULATOR_HOST=localhost:8080 pytest tests/e2e/ -m e2e -v
"""

from __future__ import annotations

import os

import pytest
from fastapi.testclient import TestClient
from google.cloud import firestore

from social_api.adapters.firestore_repository import COLLECTIONS
from social_api.config import AppConfig
from social_api.entrypoints.api import deps
from social_api.entrypoints.api.app import app

TEST_PROJECT = "test-project"


@pytest.fixture(scope="session")
def firestore_client():
    """Firestore Emulator に接続するクライアント（セッション共有）。

    FIRESTORE_EMULATOR_HOST が未設定の場合は localhost:8080 をデフォルトとして使用する。
    エミュレーターが起動していない場合はテストが接続エラーで失敗する。
    """
    host = os.environ.get("FIRESTORE_EMULATOR_HOST", "localhost:8080")
    os.environ["FIRESTORE_EMULATOR_HOST"] = host
    return firestore.Client(project=TEST_PROJECT)


@pytest.fixture(autouse=True)
def _cleanup_firestore(request, firestore_client):
    """各テスト後に Emulator のデータをクリーンアップ（e2e マーク付きテストのみ）"""
    yield
    if not request.node.get_closest_marker("e2e"):
        return
    for collection_name in COLLECTIONS:
        for doc in firestore_client.collection(collection_name).stream():
            doc.reference.delete()


@pytest.fixture
def e2e_client(firestore_client):
    """実 Firestore（Emulator）に接続した TestClient"""
    deps._firestore_client = firestore_client
    app.dependency_overrides[deps.get_app_config] = lambda: AppConfig(
        project_id=TEST_PROJECT
    )

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
    deps._firestore_client = None
