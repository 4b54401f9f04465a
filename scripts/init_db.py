import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from budgarden.config import settings
from budgarden.database.connection import create_db_engine
from budgarden.models import Base


def init_db():
    """데이터베이스 초기화 - ORM 메타데이터 기준 테이블 생성"""
    engine = create_db_engine(settings)
    try:
        Base.metadata.create_all(bind=engine)
        print(f"Database initialized successfully: {engine.url.render_as_string(hide_password=True)}")
    except Exception as e:
        print(f"Database initialization failed: {str(e)}")
        raise
    finally:
        engine.dispose()


if __name__ == "__main__":
    init_db()
