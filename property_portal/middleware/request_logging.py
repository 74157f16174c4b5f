"""
Request logging middleware.

Assigns every request a short id, rejects oversized bodies, and logs the
method, path, status and elapsed time.
"""

from typing import Callable, Optional
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import logging
import time
import uuid

from property_portal.services.error_handler import ErrorHandlerService
from property_portal.utils.exceptions import BadRequestError


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with an 8-character id, echoed in ``X-Request-ID``.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_request_size: int = 100 * 1024 * 1024,
        logger: Optional[logging.Logger] = None
    ):
        super().__init__(app)
        self.max_request_size = max_request_size
        self.logger = logger or logging.getLogger("property_portal.requests")
        self.error_handler = ErrorHandlerService(self.logger)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        start_time = time.perf_counter()

        try:
            self._validate_request_size(request)
        except BadRequestError as exc:
            response = self.error_handler.handle_api_exception(exc, request)
            response.headers["X-Request-ID"] = request_id
            return response

        self.logger.info(f"Request [{request_id}]: {request.method} {request.url.path}")

        response = await call_next(request)

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        log = self.logger.warning if response.status_code >= 400 else self.logger.info
        log(
            f"Response [{request_id}]: {request.method} {request.url.path} "
            f"{response.status_code} in {elapsed_ms:.1f}ms"
        )

        response.headers["X-Request-ID"] = request_id
        return response

    def _validate_request_size(self, request: Request) -> None:
        """
        Raises:
            BadRequestError: If the declared body size is invalid or over the limit
        """
        content_length = request.headers.get("content-length")
        if not content_length:
            return
        try:
            size = int(content_length)
        except ValueError:
            raise BadRequestError("Invalid content-length header")
        if size > self.max_request_size:
            raise BadRequestError(
                f"Request size {size} bytes exceeds maximum allowed size {self.max_request_size} bytes"
            )
