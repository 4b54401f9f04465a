"""
예외 → 에러 envelope 변환

모든 에러 응답은 {"success": false, "error": {"code", "message", "details"}} 형식이며
클라이언트(client/rpc.py)는 code 값으로 재시도/상태 재조회 여부를 판단한다.
4xx는 WARNING, 5xx는 스택과 함께 ERROR로 기록한다.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from .exceptions import ConflictError, InternalServerError

logger = logging.getLogger("budgarden.errors")


def error_envelope(
    code: str, message: str, details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    return {
        "success": False,
        "error": {"code": code, "message": message, "details": details or {}},
    }


def _log(request: Request, kind: str, status_code: int, summary: Any, exc=None) -> None:
    client = request.client.host if request.client else "-"
    line = f"[{kind}] {request.method} {request.url.path} from {client} -> {status_code}: {summary}"
    if status_code >= 500:
        logger.error(line, exc_info=exc)
    else:
        logger.warning(line)


async def handle_base_api_exception(request, exc):
    _log(request, "API", exc.status_code, exc.error_code, exc if exc.status_code >= 500 else None)
    return JSONResponse(status_code=exc.status_code, content=exc.detail)  # type: ignore[arg-type]


async def handle_http_exception(request, exc):
    """라우팅 404/405 등 프레임워크가 던지는 HTTPException"""
    _log(request, "HTTP", exc.status_code, exc.detail)
    if isinstance(exc.detail, dict) and "error" in exc.detail:  # type: ignore[truthy-bool]
        content = exc.detail
    else:
        content = error_envelope("HTTP_ERROR", str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=content)  # type: ignore[arg-type]


async def handle_validation_error(request, exc):
    errors = exc.errors()
    _log(request, "Validation", 422, f"{len(errors)} error(s)")
    return JSONResponse(
        status_code=422,
        content=error_envelope(
            "VALIDATION_001",
            "Validation failed",
            {"errors": [str(err) for err in errors]},
        ),
    )


async def handle_integrity_error(request, exc):
    """서비스 단에서 걸러지지 않은 제약 조건 위반 (동시 삽입 경합 등)"""
    _log(request, "Integrity", 409, exc.orig)
    conflict = ConflictError("Conflicting write, refresh state and retry")
    return JSONResponse(status_code=conflict.status_code, content=conflict.detail)  # type: ignore[arg-type]


async def handle_unexpected_error(request, exc):
    _log(request, "Unhandled", 500, f"{type(exc).__name__}: {str(exc)}", exc)
    internal = InternalServerError()
    return JSONResponse(status_code=internal.status_code, content=internal.detail)  # type: ignore[arg-type]
