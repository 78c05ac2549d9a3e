import logging
import traceback
from typing import Any, Dict

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from walletapi.config import settings
from .exceptions import InternalServerError

logger = logging.getLogger("walletapi")


def _request_context(request: Request) -> Dict[str, Any]:
    client = request.client.host if request.client else "-"
    return {
        "method": request.method,
        "url": str(request.url),
        "client": client,
    }


async def handle_base_api_exception(request, exc):
    ctx = _request_context(request)
    if getattr(exc, "status_code", 500) >= 500:
        logger.error(
            f"[BaseAPIException] {ctx['method']} {ctx['url']} from {ctx['client']} -> {exc.status_code}: {exc.message}"
        )
    else:
        logger.warning(
            f"[BaseAPIException] {ctx['method']} {ctx['url']} from {ctx['client']} -> {exc.status_code}: {exc.message}"
        )
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.detail))


async def handle_http_exception(request, exc):
    ctx = _request_context(request)

    error_msg = f"[HTTPException] {ctx['method']} {ctx['url']} from {ctx['client']} -> {exc.status_code}: {exc.detail}"

    if getattr(exc, "status_code", 500) >= 500:
        tb_str = "".join(traceback.format_tb(exc.__traceback__))
        logger.error(f"{error_msg}\n\nStack Trace:\n{tb_str}")
    else:
        logger.warning(error_msg)
    # If detail is already structured (e.g., from BaseAPIException), pass through; else normalize
    if isinstance(exc.detail, dict) and "error" in exc.detail:
        content = exc.detail
    else:
        content = {
            "success": False,
            "message": str(exc.detail),
            "error": {
                "code": "HTTP_ERROR",
                "message": str(exc.detail),
                "details": {},
            },
        }
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(content),
        headers=getattr(exc, "headers", None),
    )


async def handle_validation_error(request, exc):
    ctx = _request_context(request)
    errors = jsonable_encoder(exc.errors())
    logger.warning(
        f"[ValidationError] {ctx['method']} {ctx['url']} from {ctx['client']} -> 422: {errors}"
    )
    content = {
        "success": False,
        "message": "Invalid request data",
        "errors": errors,
        "error": {
            "code": "VALIDATION_001",
            "message": "Validation failed",
            "details": {"errors": errors},
        },
    }
    return JSONResponse(status_code=422, content=content)


async def handle_unexpected_error(request, exc):
    ctx = _request_context(request)

    tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error(
        f"[Unhandled Error] {ctx['method']} {ctx['url']} from {ctx['client']}\n"
        f"Exception Type: {type(exc).__name__}\n"
        f"Exception Message: {str(exc)}\n\n"
        f"Full Stack Trace:\n{tb_str}"
    )

    details = None
    if settings.EXPOSE_ERROR_DETAILS:
        details = {"exception": type(exc).__name__, "message": str(exc)}
    internal = InternalServerError(details=details)
    return JSONResponse(status_code=internal.status_code, content=internal.detail)
