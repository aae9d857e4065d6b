"""開発用フィクスチャを Firestore に投入するスクリプト

モックバックエンドと同じユーザー・友達関係を Firestore（主に Emulator）に書き込み、
フロントエンドを実バックエンドに向けたときも同じデータで動作確認できるようにする。

実行方法:
    # Firestore Emulator に投入する場合
    FIRESTORE_EMULATOR_HOST=localhost:8080 PROJECT_ID=demo-social \
        python scripts/seed_firestore.py

    # 書き込まずに内容だけ確認
    python scripts/seed_firestore.py --dry-run

処理内容:
    既に同じ ID のドキュメントがある場合はスキップする（冪等）。
"""

from __future__ import annotations

import argparse
import logging

from social_api.adapters.firestore_repository import (
    FirestoreFriendshipRepository,
    FirestoreUserRepository,
    create_client,
)
from social_api.client.mock_backend import fixture_friendships, fixture_users
from social_api.config import AppConfig

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def seed(repo, items, dry_run: bool) -> tuple[int, int]:
    """
    Returns:
        (作成数, スキップ数)
    """
    created = 0
    skipped = 0
    for item in items:
        if dry_run:
            logger.info("DRY RUN %s id=%s", item.TYPE, item.id)
            created += 1
            continue
        result = repo.create(item)
        if result.success:
            created += 1
        elif result.is_conflict:
            logger.info("SKIP %s id=%s (already exists)", item.TYPE, item.id)
            skipped += 1
        else:
            raise SystemExit(f"Failed to seed {item.TYPE} {item.id}: {result.error}")
    return created, skipped


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed development fixtures")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run without making any changes (preview only)",
    )
    args = parser.parse_args()

    config = AppConfig.from_env()
    if not config.is_database_configured:
        raise SystemExit("PROJECT_ID が設定されていません")

    db = create_client(config)
    logger.info(
        "Firestore client initialized project=%s emulator=%s",
        config.project_id,
        config.emulator_host or "-",
    )

    users = seed(FirestoreUserRepository(db), fixture_users(), args.dry_run)
    friendships = seed(
        FirestoreFriendshipRepository(db), fixture_friendships(), args.dry_run
    )
    logger.info(
        "Done: users created=%d skipped=%d, friendships created=%d skipped=%d",
        *users,
        *friendships,
    )


if __name__ == "__main__":
    main()
