from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from budgarden.config import Settings


def _enable_sqlite_write_locking(engine: Engine) -> None:
    """sqlite는 FOR UPDATE를 지원하지 않으므로 트랜잭션 시작 시 쓰기 잠금을 획득

    pysqlite의 자동 BEGIN을 끄고 BEGIN IMMEDIATE로 시작하게 하여
    같은 DB 파일에 대한 쓰기 트랜잭션이 직렬화되도록 한다.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_db_engine(settings: Settings) -> Engine:
    url = settings.database_url

    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        _enable_sqlite_write_locking(engine)
        return engine

    return create_engine(
        url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,  # 연결 유효성 검사
        pool_recycle=3600,  # 1시간마다 연결 재생성
        # SQL 로그는 logging_config의 sqlalchemy.engine 레벨로 제어
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    # Use expire_on_commit=False to avoid DetachedInstanceError when accessing
    # attributes after commit within the same request scope (common FastAPI pattern).
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        expire_on_commit=False,
    )
