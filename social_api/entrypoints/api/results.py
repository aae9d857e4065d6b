"""RepositoryResult → ドメイン例外の変換

ルートは unwrap() で成功データを取り出し、失敗はドメイン例外として送出する。
ドメイン例外から HTTP ステータスへの対応は app.py の例外ハンドラーが行う。
"""

from __future__ import annotations

from typing import TypeVar

from social_api.domain.errors import ConflictError, NotFoundError, RepositoryError
from social_api.domain.ports import RepositoryResult

D = TypeVar("D")


def unwrap(result: RepositoryResult[D], not_found: str | None = None) -> D:
    """
    成功なら data を返す。

    Raises:
        NotFoundError: not_found 結果（メッセージは not_found 優先）
        ConflictError: conflict 結果
        RepositoryError: それ以外の失敗
    """
    if result.success:
        return result.data
    if result.is_not_found:
        raise NotFoundError(not_found or result.error or "Document not found")
    if result.is_conflict:
        raise ConflictError(result.error or "Conflict")
    raise RepositoryError(result.error or "Persistence operation failed")
