"""
기본 아이템 카탈로그 / 시스템 초대 코드 시드 스크립트
"""

import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from decimal import Decimal

from sqlalchemy.orm import Session

from budgarden.config import settings
from budgarden.database.connection import create_db_engine, create_session_factory
from budgarden.database.session import get_db_context
from budgarden.repositories.item_repository import CatalogRepository
from budgarden.repositories.referral_repository import ReferralRepository

DEFAULT_CATALOG = [
    {
        "item_kind": "sprout",
        "name": "Sprout",
        "description": "The potential to grow into something bigger..",
        "price": Decimal("5760000"),
        "accrual_rate_per_minute": Decimal("1000"),
        "max_purchases_per_player": None,
        "is_purchasable": True,
    },
    {
        "item_kind": "mini-mary",
        "name": "Mini-Mary",
        "description": "Now this has some pot-ential..",
        "price": Decimal("28800000"),
        "accrual_rate_per_minute": Decimal("5000"),
        "max_purchases_per_player": 10,
        "is_purchasable": True,
    },
    {
        "item_kind": "radio",
        "name": "Radio",
        "description": "A classic radio to keep you company while you grow.",
        "price": Decimal("1000000"),
        "accrual_rate_per_minute": Decimal("0"),
        "max_purchases_per_player": 1,
        "is_purchasable": True,
    },
    {
        "item_kind": "puff-daddy",
        "name": "Puff Daddy",
        "description": "This is one puffy mfer..",
        "price": Decimal("57600000"),
        "accrual_rate_per_minute": Decimal("10000"),
        "max_purchases_per_player": 1,
        "is_purchasable": True,
    },
]

# 소유자가 없는 시스템 초대 코드 (이 코드로 가입하면 추천인 없음)
SYSTEM_INVITE_CODES = ["BUDGARDEN"]


def seed_catalog(db: Session):
    """기본 카탈로그 시드 (있으면 갱신)"""
    catalog_repo = CatalogRepository(db)
    for fields in DEFAULT_CATALOG:
        catalog_repo.upsert_item(**fields)
    print(f"✅ 카탈로그 시드 완료: {len(DEFAULT_CATALOG)}개 아이템")
    for fields in DEFAULT_CATALOG:
        print(
            f"   {fields['item_kind']:<12} price={fields['price']} "
            f"rate={fields['accrual_rate_per_minute']}/min"
        )


def seed_system_codes(db: Session):
    referral_repo = ReferralRepository(db)
    created = 0
    for code in SYSTEM_INVITE_CODES:
        if not referral_repo.code_exists(code):
            referral_repo.create_code(code, owner_player_id=None)
            created += 1
    print(f"✅ 시스템 초대 코드 시드 완료: {created}개 생성")


def main():
    engine = create_db_engine(settings)
    session_factory = create_session_factory(engine)
    try:
        with get_db_context(session_factory) as db:
            seed_catalog(db)
            seed_system_codes(db)
    except Exception as e:
        print(f"❌ 시드 데이터 생성 실패: {str(e)}")
        raise
    finally:
        engine.dispose()


if __name__ == "__main__":
    main()
