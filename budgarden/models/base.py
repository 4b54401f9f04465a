from sqlalchemy import Column, DateTime, Numeric, func
from sqlalchemy.orm import declarative_base, declared_attr

Base = declarative_base()

# BUD 금액 컬럼 - 분 단위 누적이 소수이므로 정밀도 6자리 유지
Amount = Numeric(24, 6)


class TimestampMixin:
    """타임스탬프 필드를 위한 믹스인"""

    @declared_attr
    def created_at(cls):
        return Column(DateTime(timezone=True), server_default=func.now())

    @declared_attr
    def updated_at(cls):
        return Column(
            DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
        )


class BaseModel(Base, TimestampMixin):
    """모든 모델의 베이스 클래스"""

    __abstract__ = True

    def dict(self):
        """모델을 딕셔너리로 변환"""
        return {
            column.name: getattr(self, column.name) for column in self.__table__.columns
        }
