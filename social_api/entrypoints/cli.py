#!/usr/bin/env python3
"""CLI Entrypoint - クライアント操作をコマンドラインから実行

使い方:
    python -m social_api.entrypoints.cli search alice --as <userId>
    python -m social_api.entrypoints.cli friends --as <userId>
    python -m social_api.entrypoints.cli request <targetUserId> --as <userId>
    python -m social_api.entrypoints.cli respond <friendshipId> accepted --as <userId>

--as mock-user-id-123 を指定するとバックエンドに接続せずモックデータを使う。

環境変数:
    API_BASE_URL: バックエンドのベース URL デフォルト: http://localhost:8000
    MOCK_FALLBACK: バックエンド到達不能時にモックを使うか デフォルト: true
    LOG_LEVEL: ログレベル (DEBUG, INFO, WARNING, ERROR) デフォルト: INFO
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from social_api.client.base import BackendError
from social_api.client.http_client import HttpBackendClient
from social_api.client.mock_backend import MOCK_USER_ID
from social_api.client.services import SocialClient
from social_api.config import ClientConfig
from social_api.logging_config import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="social-api")
    parser.add_argument(
        "--as",
        dest="current_user_id",
        default=MOCK_USER_ID,
        help="操作するユーザーの ID",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="ユーザーを検索する")
    search.add_argument("query")

    sub.add_parser("friends", help="友達と申請の一覧を表示する")

    request = sub.add_parser("request", help="友達申請を送る")
    request.add_argument("target_user_id")

    respond = sub.add_parser("respond", help="友達申請に応答する")
    respond.add_argument("friendship_id")
    respond.add_argument("status", choices=["accepted", "rejected"])

    return parser


def run(args: argparse.Namespace, client: SocialClient) -> dict | list:
    if args.command == "search":
        return client.search_users(args.query, args.current_user_id)
    if args.command == "friends":
        return client.get_friendships_data(args.current_user_id)
    if args.command == "request":
        return client.send_friend_request(args.current_user_id, args.target_user_id)
    if args.command == "respond":
        return client.respond_to_friend_request(
            args.friendship_id, args.status, args.current_user_id
        )
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> None:
    """メインエントリーポイント"""
    setup_logging()
    logger = logging.getLogger(__name__)
    args = build_parser().parse_args(argv)

    config = ClientConfig.from_env()
    backend = HttpBackendClient.from_config(config)
    client = SocialClient(backend, mock_fallback=config.mock_fallback)

    try:
        result = run(args, client)
    except BackendError as e:
        logger.error("Request failed (status=%s): %s", e.status_code, e)
        sys.exit(1)
    finally:
        backend.close()

    print(json.dumps(result, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
