"""
Cross-origin boundary filter.

Starlette's CORSMiddleware only decides which response headers to send;
a simple GET from an unknown origin still reaches the route. This filter
rejects such requests outright so route logic only ever runs for
same-origin callers (no Origin header) or allow-listed frontends.
"""

import logging
from typing import Callable, Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


class OriginAllowlistMiddleware(BaseHTTPMiddleware):
    """Reject requests whose Origin header is present but not allow-listed."""

    def __init__(self, app: ASGIApp, *, allowed_origins: Iterable[str]) -> None:
        super().__init__(app)
        self.allowed = {o.strip().rstrip("/") for o in allowed_origins if o.strip()}

    async def dispatch(self, request, call_next: Callable):
        origin = request.headers.get("origin")
        # exact match, the same comparison CORSMiddleware makes
        if origin is not None and origin not in self.allowed:
            logger.warning(
                "Rejected cross-origin request",
                extra={"origin": origin, "path": request.url.path},
            )
            return JSONResponse({"error": "Not allowed by CORS"}, status_code=403)
        return await call_next(request)
