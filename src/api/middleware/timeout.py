"""
Per-request deadline.

A request still running after ``timeout_seconds`` is cancelled and answered
with a 504 in the API's error envelope. Liveness probes are never cut off:
a slow database should show up as an unhealthy ``/health`` body, not a 504.
"""

import asyncio
from collections.abc import Iterable

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

DEFAULT_EXEMPT_PATHS = ("/health",)


class TimeoutMiddleware(BaseHTTPMiddleware):
    """Cancel requests exceeding ``timeout_seconds`` and reply 504."""

    def __init__(
        self,
        app,
        timeout_seconds: float = 30.0,
        exempt_paths: Iterable[str] = DEFAULT_EXEMPT_PATHS,
    ):
        super().__init__(app)
        self.timeout_seconds = timeout_seconds
        self.exempt_paths = tuple(exempt_paths)

    def _is_exempt(self, path: str) -> bool:
        return path.startswith(self.exempt_paths)

    async def dispatch(self, request: Request, call_next):
        if self._is_exempt(request.url.path):
            return await call_next(request)

        try:
            async with asyncio.timeout(self.timeout_seconds):
                return await call_next(request)
        except TimeoutError:
            logger.warning(
                "Request deadline exceeded",
                method=request.method,
                path=request.url.path,
                timeout_seconds=self.timeout_seconds,
            )

        return JSONResponse(
            status_code=504,
            content={
                "success": False,
                "message": f"{request.method} {request.url.path} timed out after {self.timeout_seconds}s",
                "error_type": "timeout",
            },
        )
