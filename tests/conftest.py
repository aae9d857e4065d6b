"""共通テストフィクスチャ

全テストから利用可能なサンプルデータとインメモリリポジトリを提供。

API テスト:
- api_client は全リポジトリ依存をインメモリ実装に差し替えた TestClient
- repos から同じインスタンスにアクセスしてデータの準備・検証ができる
"""

from dataclasses import dataclass

import pytest
from fastapi.testclient import TestClient

from social_api.adapters.memory_repository import (
    InMemoryCommentRepository,
    InMemoryEventRepository,
    InMemoryFriendshipRepository,
    InMemoryGroupRepository,
    InMemoryPostRepository,
    InMemoryUserRepository,
)
from social_api.config import AppConfig
from social_api.domain.models import Event, Friendship, Group, User
from social_api.entrypoints.api import deps
from social_api.entrypoints.api.app import app

# ========== サンプルデータ ==========


@pytest.fixture
def alice() -> User:
    """サンプルユーザー: Alice"""
    return User(
        id="u1",
        external_id="ext-alice",
        email="alice@example.com",
        name="Alice Johnson",
        bio="Hiker",
    )


@pytest.fixture
def bob() -> User:
    """サンプルユーザー: Bob"""
    return User(id="u2", email="bob@example.com", name="Bob Wilson")


@pytest.fixture
def carol() -> User:
    """サンプルユーザー: Carol"""
    return User(id="u3", email="carol@example.com", name="Carol Smith")


@pytest.fixture
def pending_friendship() -> Friendship:
    """u1 → u2 の未回答の友達申請"""
    return Friendship(id="f1", user_id="u1", friend_id="u2", requested_by="u1")


@pytest.fixture
def sample_group() -> Group:
    """サンプルグループ（u1 が管理者）"""
    return Group(
        id="g1",
        name="Hiking Club",
        description="Weekend hikes",
        tags=["outdoors", "hiking"],
        admin_ids=["u1"],
        member_ids=["u1"],
    )


@pytest.fixture
def sample_event() -> Event:
    """サンプルイベント（u1 主催、u2 招待）"""
    return Event(
        id="e1",
        organizer_id="u1",
        title="Summit Day",
        location="Trailhead",
        start_date="2030-05-10T08:00:00+00:00",
        end_date="2030-05-10T18:00:00+00:00",
        invited_user_ids=["u2"],
    )


# ========== リポジトリ / API クライアント ==========


@dataclass
class Repos:
    """API テストで使うインメモリリポジトリ一式"""

    users: InMemoryUserRepository
    friendships: InMemoryFriendshipRepository
    groups: InMemoryGroupRepository
    posts: InMemoryPostRepository
    comments: InMemoryCommentRepository
    events: InMemoryEventRepository


@pytest.fixture
def repos() -> Repos:
    """テストごとに新しく作るインメモリリポジトリ"""
    return Repos(
        users=InMemoryUserRepository(),
        friendships=InMemoryFriendshipRepository(),
        groups=InMemoryGroupRepository(),
        posts=InMemoryPostRepository(),
        comments=InMemoryCommentRepository(),
        events=InMemoryEventRepository(),
    )


@pytest.fixture
def api_client(repos):
    """リポジトリ依存をインメモリ実装に差し替えたテストクライアント"""
    app.dependency_overrides[deps.get_app_config] = lambda: AppConfig(
        project_id="test-project"
    )
    app.dependency_overrides[deps.get_user_repo] = lambda: repos.users
    app.dependency_overrides[deps.get_friendship_repo] = lambda: repos.friendships
    app.dependency_overrides[deps.get_group_repo] = lambda: repos.groups
    app.dependency_overrides[deps.get_post_repo] = lambda: repos.posts
    app.dependency_overrides[deps.get_comment_repo] = lambda: repos.comments
    app.dependency_overrides[deps.get_event_repo] = lambda: repos.events

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
