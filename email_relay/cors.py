"""
CORS Middleware for the email functions

Browser clients call the functions from any origin:
- Pre-flight (OPTIONS) requests are answered immediately with a plain "ok"
- Every response carries the permissive CORS headers
"""

import logging
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import PlainTextResponse, Response

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


class CORSHeadersMiddleware(BaseHTTPMiddleware):
    """Short-circuits pre-flight requests and stamps CORS headers on all responses."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method == "OPTIONS":
            logger.debug(f"Pre-flight request for {request.url.path}")
            return PlainTextResponse("ok", headers=CORS_HEADERS)

        response = await call_next(request)
        for name, value in CORS_HEADERS.items():
            response.headers[name] = value
        return response
