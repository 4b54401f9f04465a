"""
로깅 설정

서버(uvicorn, Lambda)와 조정 클라이언트가 같은 설정을 공유한다.
- budgarden.sync: 잔액 폴링/헬스 체크처럼 초당 반복되는 경로 전용 로거.
  SYNC_LOG_LEVEL로 따로 조절하며 기본값은 WARNING
- sqlalchemy.engine: DEBUG 모드에서만 SQL을 INFO로 남김
- WARNING 이상은 stderr에도 위치 정보와 함께 출력
"""

import logging.config
import sys
from typing import Any, Dict

SYNC_LOGGER = "budgarden.sync"

LINE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
PROBLEM_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"


def build_logging_config(
    log_level: str = "INFO",
    sync_log_level: str = "WARNING",
    sql_echo: bool = False,
) -> Dict[str, Any]:
    log_level = log_level.upper()
    app_handlers = ["stdout", "stderr"]

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "line": {"format": LINE_FORMAT},
            "problem": {"format": PROBLEM_FORMAT},
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "line",
                "stream": sys.stdout,
            },
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": "problem",
                "stream": sys.stderr,
                "level": "WARNING",
            },
        },
        "root": {"handlers": app_handlers, "level": log_level},
        "loggers": {
            "budgarden": {
                "handlers": app_handlers,
                "level": log_level,
                "propagate": False,
            },
            SYNC_LOGGER: {
                "handlers": app_handlers,
                "level": sync_log_level.upper(),
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "level": "INFO" if sql_echo else "WARNING",
            },
            # 요청 로그는 LoggingMiddleware가 남기므로 access 로그는 생략
            "uvicorn.access": {"level": "WARNING"},
        },
    }


def setup_logging(
    log_level: str = "INFO", sync_log_level: str = "WARNING", sql_echo: bool = False
) -> None:
    logging.config.dictConfig(build_logging_config(log_level, sync_log_level, sql_echo))
