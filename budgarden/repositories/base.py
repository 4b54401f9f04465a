from abc import ABC
from typing import TypeVar, Generic, Optional, List, Dict, Any, Type
from sqlalchemy.orm import Session
from pydantic import BaseModel

T = TypeVar("T")
SchemaType = TypeVar("SchemaType", bound=BaseModel)


class BaseRepository(Generic[T, SchemaType], ABC):
    """모든 리포지토리의 베이스 클래스

    리포지토리는 flush까지만 수행하고 커밋은 서비스 계층이 결정한다.
    (하나의 RPC가 여러 테이블을 원자적으로 변경해야 하므로)
    """

    def __init__(
        self, model_class: Type[T], schema_class: Type[SchemaType], db: Session
    ):
        self.model_class = model_class
        self.schema_class = schema_class
        self.db = db

    def _to_schema(self, model_instance: Any) -> Optional[SchemaType]:
        """SQLAlchemy 모델을 Pydantic 스키마로 변환"""
        if model_instance is None:
            return None

        # Pydantic v2의 model_validate를 사용하여 from_attributes 활용
        return self.schema_class.model_validate(model_instance)

    def _primary_key_filter(self, id: Any):
        primary_key = self.model_class.__mapper__.primary_key[0]  # type: ignore[attr-defined]
        return primary_key == id

    def get_model(self, id: Any, for_update: bool = False) -> Optional[T]:
        """기본 키로 모델 조회. for_update=True면 행 잠금 (SELECT ... FOR UPDATE)"""
        query = self.db.query(self.model_class).filter(self._primary_key_filter(id))
        if for_update:
            # 잠금 후 최신 값으로 identity map을 덮어씀
            query = query.with_for_update().populate_existing()
        return query.first()

    def get_by_id(self, id: Any) -> Optional[SchemaType]:
        """ID로 조회 - Pydantic 스키마 반환"""
        return self._to_schema(self.get_model(id))

    def find_all(
        self,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
    ) -> List[T]:
        """조건에 맞는 모든 레코드 조회"""
        query = self.db.query(self.model_class)

        if filters:
            for key, value in filters.items():
                if hasattr(self.model_class, key):
                    query = query.filter(getattr(self.model_class, key) == value)

        if order_by and hasattr(self.model_class, order_by):
            query = query.order_by(getattr(self.model_class, order_by))

        return query.all()

    def add(self, instance: T) -> T:
        """새 레코드 추가 (flush만 수행)"""
        self.db.add(instance)
        self.db.flush()
        return instance

    def exists(self, filters: Dict[str, Any]) -> bool:
        """레코드 존재 여부 확인"""
        query = self.db.query(self.model_class)

        for key, value in filters.items():
            if hasattr(self.model_class, key):
                query = query.filter(getattr(self.model_class, key) == value)

        return query.first() is not None
