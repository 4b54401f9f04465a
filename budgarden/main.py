import logging

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from mangum import Mangum
from sqlalchemy.exc import IntegrityError
from starlette.middleware.cors import CORSMiddleware

from budgarden import containers
from budgarden.core.exception_handlers import (
    handle_base_api_exception,
    handle_http_exception,
    handle_integrity_error,
    handle_unexpected_error,
    handle_validation_error,
)
from budgarden.core.exceptions import BaseAPIException
from budgarden.core.logging_middleware import LoggingMiddleware
from budgarden.logging_config import setup_logging
from budgarden.routers import (
    balance_router,
    grid_router,
    health_router,
    payment_router,
    player_router,
    shop_router,
)

load_dotenv("budgarden/.env")

logger = logging.getLogger(__name__)


def create_app(container: containers.Container = None) -> FastAPI:
    container = container or containers.Container()
    settings = container.config.config()
    setup_logging(settings.LOG_LEVEL, settings.SYNC_LOG_LEVEL, sql_echo=settings.DEBUG)

    app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)
    app.container = container  # type: ignore

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    # 구체적인 예외부터 등록
    app.add_exception_handler(BaseAPIException, handle_base_api_exception)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(IntegrityError, handle_integrity_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(health_router.router, prefix=settings.API_V1_STR)
    app.include_router(player_router.router, prefix=settings.API_V1_STR)
    app.include_router(balance_router.router, prefix=settings.API_V1_STR)
    app.include_router(shop_router.router, prefix=settings.API_V1_STR)
    app.include_router(grid_router.router, prefix=settings.API_V1_STR)
    app.include_router(payment_router.router, prefix=settings.API_V1_STR)

    @app.get("/")
    def hello() -> dict:
        return {"message": settings.APP_NAME}

    logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")
    return app


app = create_app()

handler = Mangum(app)
