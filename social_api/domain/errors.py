"""ドメイン固有の例外クラス

ルート層ではそれぞれ以下の HTTP ステータスに対応付けられる:
  ValidationError            → 400
  NotFoundError              → 404
  ConflictError              → 409
  DatabaseNotConfiguredError → 503
  AuthNotConfiguredError     → 503
  RepositoryError            → 500
"""


class SocialApiError(Exception):
    """Social API の基底例外"""

    pass


class ValidationError(SocialApiError):
    """入力値・モデルの検証エラー（最初に見つかった違反のみを保持する）"""

    pass


class NotFoundError(SocialApiError):
    """参照先エンティティが存在しない"""

    pass


class ConflictError(SocialApiError):
    """一意制約の重複やリビジョン不一致"""

    pass


class InvalidTransitionError(ConflictError):
    """状態遷移表にない遷移（例: rejected → accepted）"""

    pass


class DatabaseNotConfiguredError(SocialApiError):
    """ドキュメントストアの接続設定が不足している"""

    pass


class AuthNotConfiguredError(SocialApiError):
    """認証プロバイダー（Firebase Auth）の設定が不足している"""

    pass


class RepositoryError(SocialApiError):
    """永続化層の想定外エラー"""

    pass
