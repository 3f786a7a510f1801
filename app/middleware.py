from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
import logging
import time
import uuid

log = logging.getLogger("app.request")

class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        req_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        log.info("%s %s -> %s (%.1f ms) rid=%s", request.method, request.url.path,
                 response.status_code, elapsed_ms, req_id)
        response.headers["X-Request-ID"] = req_id
        return response
