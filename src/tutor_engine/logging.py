"""Logging utilities.

構造化ログの初期化をまとめて提供する。スケジューラと推定器は純粋関数のため
ログを出さず、読込・計算・書込を担うサービス層だけがイベントを記録する。
"""

import logging

import structlog
from structlog import contextvars as structlog_contextvars

from .config import settings


def configure_logging() -> None:
    """Configure structlog for application-wide logging.

    標準 logging を settings.log_level で初期化し、structlog で ISO タイムスタンプと
    JSON 形式の出力を有効化する。bind_contextvars で束ねた session_id などは
    merge_contextvars により全イベントへ付与される。
    """
    # stdlib 側の出力に余計なプレフィックスを付けないため、
    # フォーマットはメッセージのみ(%(message)s)に固定する。
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(message)s",
        handlers=[logging.StreamHandler()],
        force=True,
    )
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog_contextvars.merge_contextvars,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


logger = structlog.get_logger()
