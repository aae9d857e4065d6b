"""ロギング設定モジュール

Cloud Run / Cloud Logging 環境ではJSON形式、ローカルではテキスト形式でログを出力する。

使い方:
    from social_api.logging_config import setup_logging, log_fields
    setup_logging()
    logger.info("Request handled", extra=log_fields(method="GET", status=200))

環境変数:
    LOG_LEVEL: ログレベル (DEBUG, INFO, WARNING, ERROR, CRITICAL) デフォルト: INFO
    LOG_FORMAT: "json" / "text" を明示指定（未指定なら環境から自動判定）
    K_SERVICE / CLOUD_RUN_JOB: Cloud Run 環境判定（自動設定される）
"""

import json
import logging
import os

# SDK 由来の冗長なログを抑制するロガー
_NOISY_LOGGERS = ("google", "urllib3", "httpx", "httpcore")


class CloudLoggingFormatter(logging.Formatter):
    """Cloud Logging互換のJSONフォーマッタ

    JSON形式で `severity` フィールドを含めることでログレベルが正しくマッピングされる。
    log_fields() で渡した構造化フィールドはトップレベルに展開される。
    """

    LEVEL_TO_SEVERITY = {
        "DEBUG": "DEBUG",
        "INFO": "INFO",
        "WARNING": "WARNING",
        "ERROR": "ERROR",
        "CRITICAL": "CRITICAL",
    }

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict = {
            "severity": self.LEVEL_TO_SEVERITY.get(record.levelname, "DEFAULT"),
            "message": record.getMessage(),
            "logger": record.name,
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
        }
        if record.exc_info and record.exc_info[0]:
            log_entry["exception"] = self.formatException(record.exc_info)
        if hasattr(record, "extra_fields"):
            log_entry.update(record.extra_fields)
        return json.dumps(log_entry, ensure_ascii=False, default=str)


def log_fields(**fields) -> dict:
    """logger.*(extra=...) に渡す構造化フィールドを組み立てる"""
    return {"extra_fields": fields}


def _use_json_format() -> bool:
    explicit = os.getenv("LOG_FORMAT", "").lower()
    if explicit in ("json", "text"):
        return explicit == "json"
    # Cloud Run 環境判定（K_SERVICE: Cloud Run Services, CLOUD_RUN_JOB: Cloud Run Jobs）
    return bool(os.getenv("K_SERVICE") or os.getenv("CLOUD_RUN_JOB"))


def setup_logging() -> None:
    """ログ設定を初期化する

    Cloud Run 環境（K_SERVICE または CLOUD_RUN_JOB 環境変数が存在する場合）では
    Cloud Logging 互換の JSON フォーマットを使用し、ローカルではテキスト形式を使用する。
    """
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    handler = logging.StreamHandler()
    if _use_json_format():
        handler.setFormatter(CloudLoggingFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
