"""
타임존 유틸리티

원장에 저장되는 모든 시각은 UTC 기준이다.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """현재 UTC 시간을 반환합니다."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """tzinfo가 없는 값(sqlite 등에서 읽은 값)은 UTC로 간주합니다."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def elapsed_minutes(since: datetime, until: datetime) -> Decimal:
    """두 시각 사이의 경과 시간(분, 소수 포함). 역행하는 경우 0."""
    seconds = (ensure_utc(until) - ensure_utc(since)).total_seconds()
    if seconds <= 0:
        return Decimal("0")
    return Decimal(str(seconds)) / Decimal(60)
