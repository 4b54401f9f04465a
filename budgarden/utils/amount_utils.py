"""BUD 금액 계산 유틸리티"""

from decimal import ROUND_DOWN, ROUND_FLOOR, Decimal
from typing import Union

# Numeric(24, 6) 컬럼과 같은 정밀도
AMOUNT_QUANTUM = Decimal("0.000001")


def to_amount(value: Union[Decimal, int, float, str, None]) -> Decimal:
    """DB/JSON에서 읽은 값을 6자리 Decimal로 정규화"""
    if value is None:
        return Decimal("0").quantize(AMOUNT_QUANTUM)
    return Decimal(str(value)).quantize(AMOUNT_QUANTUM, rounding=ROUND_DOWN)


def accrued_amount(rate_per_minute: Decimal, minutes: Decimal) -> Decimal:
    """분당 생산량 x 경과 분. 저장 정밀도 아래는 버림"""
    if rate_per_minute <= 0 or minutes <= 0:
        return to_amount(0)
    return (Decimal(rate_per_minute) * Decimal(minutes)).quantize(
        AMOUNT_QUANTUM, rounding=ROUND_DOWN
    )


def floor_whole(value: Decimal) -> Decimal:
    return Decimal(value).quantize(Decimal("1"), rounding=ROUND_FLOOR)
