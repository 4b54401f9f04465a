from typing import Optional

from sqlalchemy.orm import Session

from budgarden.models.payment import VerifiedPayment
from budgarden.repositories.base import BaseRepository
from budgarden.schemas.payment import VerifiedPaymentResponse


class PaymentRepository(BaseRepository[VerifiedPayment, VerifiedPaymentResponse]):
    """검증된 결제 서명 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(VerifiedPayment, VerifiedPaymentResponse, db)

    def get_by_signature(self, signature: str) -> Optional[VerifiedPayment]:
        return (
            self.db.query(VerifiedPayment)
            .filter(VerifiedPayment.signature == signature)
            .first()
        )

    def signature_used(self, signature: str) -> bool:
        return self.exists({"signature": signature})

    def to_response(self, payment: VerifiedPayment) -> VerifiedPaymentResponse:
        return self._to_schema(payment)
