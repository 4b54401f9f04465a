import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient

from budgarden.config import Settings
from budgarden.containers import Container
from budgarden.database.connection import create_db_engine, create_session_factory
from budgarden.database.session import get_db_context
from budgarden.main import create_app
from budgarden.models import Base, Player
from budgarden.repositories.item_repository import CatalogRepository
from budgarden.repositories.referral_repository import ReferralRepository
from budgarden.schemas.player import RegisterPlayerRequest
from budgarden.services.player_service import PlayerService

SYSTEM_CODE = "SYSTEM"

TEST_CATALOG = [
    {
        "item_kind": "sprout",
        "name": "Sprout",
        "description": "Starter plant",
        "price": Decimal("50"),
        "accrual_rate_per_minute": Decimal("1000"),
        "max_purchases_per_player": None,
        "is_purchasable": True,
    },
    {
        "item_kind": "golden-bud",
        "name": "Golden Bud",
        "description": None,
        "price": Decimal("60"),
        "accrual_rate_per_minute": Decimal("100"),
        "max_purchases_per_player": None,
        "is_purchasable": True,
    },
    {
        "item_kind": "radio",
        "name": "Radio",
        "description": "One per garden",
        "price": Decimal("10"),
        "accrual_rate_per_minute": Decimal("0"),
        "max_purchases_per_player": 1,
        "is_purchasable": True,
    },
    {
        "item_kind": "heirloom",
        "name": "Heirloom",
        "description": "Event reward, not sold",
        "price": Decimal("0"),
        "accrual_rate_per_minute": Decimal("5"),
        "max_purchases_per_player": None,
        "is_purchasable": False,
    },
]


class FakeClock:
    """테스트용 시계 - advance()로만 시간이 흐른다"""

    def __init__(self, start: datetime = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: float = 0, seconds: float = 0) -> datetime:
        self.now = self.now + timedelta(minutes=minutes, seconds=seconds)
        return self.now

    def rewind(self, minutes: float) -> datetime:
        self.now = self.now - timedelta(minutes=minutes)
        return self.now


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite:///{tmp_path / 'budgarden_test.db'}",
        OFFLINE_CACHE_PATH=str(tmp_path / "cache.json"),
        API_BASE_URL="http://testserver/api/v1",
        SYNC_INTERVAL_SECONDS=0.01,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(settings):
    engine = create_db_engine(settings)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def seeded(session_factory):
    """테스트 카탈로그 + 시스템 초대 코드"""
    with get_db_context(session_factory) as session:
        catalog_repo = CatalogRepository(session)
        for fields in TEST_CATALOG:
            catalog_repo.upsert_item(**fields)
        ReferralRepository(session).create_code(SYSTEM_CODE, owner_player_id=None)
    return session_factory


@pytest.fixture
def register_player(seeded, settings, clock):
    """가입 헬퍼 - 매 호출마다 새 세션 사용"""

    def _register(username: str, invite_code: str = SYSTEM_CODE):
        session = seeded()
        try:
            return PlayerService(session, settings, clock).register(
                RegisterPlayerRequest(
                    username=username,
                    wallet_address="9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin",
                    invite_code=invite_code,
                )
            )
        finally:
            session.close()

    return _register


@pytest.fixture
def set_total_balance(seeded):
    """정산 잔액을 직접 설정 (원장을 거치지 않으므로 정합성 검증 테스트에는 사용하지 않음)"""

    def _set(player_id: str, amount) -> None:
        with get_db_context(seeded) as session:
            player = session.get(Player, player_id)
            player.total_balance = Decimal(str(amount))

    return _set


@pytest.fixture
def load_player(seeded):
    def _load(player_id: str) -> Player:
        session = seeded()
        try:
            return session.get(Player, player_id)
        finally:
            session.close()

    return _load


@pytest.fixture
def run_concurrently():
    return _run_concurrently


def _run_concurrently(count: int, operation):
    """count개의 스레드에서 동시에 operation 실행. (결과 목록, 예외 목록) 반환"""
    barrier = threading.Barrier(count)
    lock = threading.Lock()
    results, errors = [], []

    def worker():
        barrier.wait()
        try:
            result = operation()
        except Exception as e:
            with lock:
                errors.append(e)
        else:
            with lock:
                results.append(result)

    threads = [threading.Thread(target=worker) for _ in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return results, errors


@pytest.fixture
def app(seeded, settings, clock):
    """테스트 DB/시계를 주입한 애플리케이션"""
    container = Container()
    container.config.config.override(providers.Object(settings))
    container.config.clock.override(providers.Object(clock))
    container.repositories.session_factory.override(providers.Object(seeded))
    return create_app(container)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
