from fastapi import Depends, Request
from sqlalchemy.orm import Session

from budgarden.database.session import get_db

# Services
from budgarden.services.accrual_service import AccrualService
from budgarden.services.grid_service import GridService
from budgarden.services.payment_service import PaymentService
from budgarden.services.player_service import PlayerService
from budgarden.services.shop_service import ShopService


def get_accrual_service(
    request: Request, db: Session = Depends(get_db)
) -> AccrualService:
    return request.app.container.services.accrual_service(db=db)


def get_shop_service(request: Request, db: Session = Depends(get_db)) -> ShopService:
    return request.app.container.services.shop_service(db=db)


def get_grid_service(request: Request, db: Session = Depends(get_db)) -> GridService:
    return request.app.container.services.grid_service(db=db)


def get_player_service(
    request: Request, db: Session = Depends(get_db)
) -> PlayerService:
    return request.app.container.services.player_service(db=db)


def get_payment_service(
    request: Request, db: Session = Depends(get_db)
) -> PaymentService:
    return request.app.container.services.payment_service(db=db)
