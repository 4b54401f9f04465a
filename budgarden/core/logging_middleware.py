import logging
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from budgarden.logging_config import SYNC_LOGGER

logger = logging.getLogger("budgarden")
sync_logger = logging.getLogger(SYNC_LOGGER)


class LoggingMiddleware(BaseHTTPMiddleware):
    """요청/응답 로깅. 폴링 경로(balance, health)는 budgarden.sync 로거로 분리한다."""

    QUIET_SUFFIXES = ("/balance", "/health")

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.perf_counter()
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        method = request.method
        path = request.url.path
        client = request.client.host if request.client else "-"
        quiet = path.endswith(self.QUIET_SUFFIXES)
        path_logger = sync_logger if quiet else logger

        if not quiet:
            logger.info(f"[Request {request_id}] {method} {path} from {client}")
        try:
            response = await call_next(request)
        except Exception:
            path_logger.exception(f"[Unhandled Error {request_id}] {method} {path} from {client}")
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = request_id
        message = f"[Response {request_id}] {method} {path} -> {response.status_code} in {duration_ms:.1f}ms"
        if response.status_code >= 500:
            path_logger.error(message)
        elif response.status_code >= 400:
            path_logger.warning(message)
        else:
            path_logger.info(message)
        return response
