from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

log = logging.getLogger(__name__)

class ServiceError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

class NotFoundError(ServiceError):
    status_code = 404

class ConflictError(ServiceError):
    status_code = 409

class ValidationFailed(ServiceError):
    status_code = 400

def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def _service_error(request: Request, exc: ServiceError):
        log.warning("%s %s rejected (%s): %s", request.method, request.url.path,
                    type(exc).__name__, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})
