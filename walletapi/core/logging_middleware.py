import logging
import time
from typing import Dict

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from walletapi.core.exceptions import AuthenticationError
from walletapi.core.security import decode_access_token

logger = logging.getLogger("walletapi.access")

# Path parameters worth correlating money movements by
TRACKED_PATH_PARAMS = ("payment_id", "order_id", "user_id")


def request_user(request: Request) -> str:
    """Subject of the bearer token, without touching the database"""
    scheme, _, token = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        return "anonymous"
    try:
        return f"user={decode_access_token(token).sub}"
    except AuthenticationError:
        return "invalid-token"


def tracked_ids(request: Request) -> Dict[str, str]:
    # Filled in by the router once the route has matched
    path_params = request.scope.get("path_params") or {}
    return {
        name: str(path_params[name]) for name in TRACKED_PATH_PARAMS if name in path_params
    }


def request_tags(request: Request) -> str:
    tags = [request_user(request)]
    tags.extend(f"{name}={value}" for name, value in tracked_ids(request).items())
    return " ".join(tags)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Access log keyed by caller and by the payment or order touched"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.perf_counter()
        line = f"{request.method} {request.url.path}"

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"{line} [{request_tags(request)}] crashed")
            raise

        elapsed_ms = (time.perf_counter() - start) * 1000
        message = (
            f"{line} [{request_tags(request)}] -> {response.status_code} in {elapsed_ms:.1f}ms"
        )
        if response.status_code >= 500:
            logger.error(message)
        elif response.status_code in (401, 403):
            logger.warning(message)
        else:
            logger.info(message)
        return response
