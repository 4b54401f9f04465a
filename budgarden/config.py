from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="budgarden/.env",
        env_file_encoding="utf-8",
        extra="allow",
    )
    # Application
    APP_NAME: str = "BUD Garden Ledger API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    # 폴링 경로(balance, health) 요청 로그 레벨
    SYNC_LOG_LEVEL: str = "WARNING"

    # Database
    POSTGRES_HOST: str = ""
    POSTGRES_PORT: int = 5432
    POSTGRES_USERNAME: str = ""
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DATABASE: str = ""

    # 지정되면 POSTGRES_* 값보다 우선 (로컬/테스트는 sqlite 사용)
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    @property
    def database_url(self) -> str:
        """POSTGRES_* 값으로 데이터베이스 URL 구성"""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        if not self.POSTGRES_HOST:
            return "sqlite:///./budgarden.db"

        # URL encode the password to handle special characters
        encoded_password = quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql+psycopg2://{self.POSTGRES_USERNAME}:{encoded_password}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DATABASE}"

    # Referral
    REFERRAL_RATE: Decimal = Decimal("0.02")  # 피추천인 수확량의 2%
    REFERRAL_CODE_LENGTH: int = 5
    REFERRAL_CODE_MAX_ATTEMPTS: int = 10

    # 신규 가입 시 지급되는 아이템 (item_kind -> 수량)
    STARTER_ITEMS: Dict[str, int] = {"sprout": 1}

    # joint 업그레이드(결제 확인 후 1회) 시 지급되는 아이템
    JOINT_UPGRADE_ITEM: str = "sprout"

    # Grid
    GRID_ROWS: int = 5
    GRID_COLS: int = 5
    BLOCKED_TILES: List[Tuple[int, int]] = [
        (0, 0), (0, 1), (0, 2),
        (1, 0), (1, 1),
        (2, 0), (2, 1),
    ]

    # Reconciliation client
    API_BASE_URL: str = "http://localhost:8000/api/v1"
    SYNC_INTERVAL_SECONDS: float = 1.0
    RPC_TIMEOUT_SECONDS: float = 5.0
    OFFLINE_CACHE_PATH: str = ".budgarden_cache.json"
    OFFLINE_CACHE_KEY: str = "budGarden_gameState"


settings = Settings()
