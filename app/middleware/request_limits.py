from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from typing import Callable
from app.core.config import settings
import logging

logger = logging.getLogger(__name__)

class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Middleware to reject oversized request bodies before routing.
    Photos arrive inline as base64 data URIs, so the ceiling is generous.
    """

    def __init__(self, app, max_request_size: int = None):
        super().__init__(app)
        self.max_request_size = max_request_size or settings.MAX_REQUEST_SIZE

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Check Content-Length header if present
        content_length = request.headers.get("content-length")
        if content_length:
            try:
                size = int(content_length)
            except ValueError:
                # Invalid Content-Length header; let the server reject the body
                size = 0

            if size > self.max_request_size:
                logger.warning(
                    f"Request size limit exceeded: {size} bytes "
                    f"from IP {request.client.host if request.client else 'unknown'}"
                )
                # Exceptions raised here bypass FastAPI's handlers, so respond directly
                return JSONResponse(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    content={"error": f"Request size too large. Maximum allowed: {self.max_request_size} bytes"}
                )

        return await call_next(request)

def create_request_limit_middleware():
    """
    Create the request size limit middleware.
    """
    logger.info(f"Request size limiting enabled with max size: {settings.MAX_REQUEST_SIZE} bytes")
    return RequestSizeLimitMiddleware
