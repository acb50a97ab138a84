import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger("uvicorn.error")


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
  """Log unhandled errors with a traceback and return an opaque 500."""
  logger.error("Unhandled exception path=%s method=%s error_type=%s", request.url.path, request.method, type(exc).__name__, exc_info=True)
  return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Internal Server Error"})


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
  """Pass 4xx details through; hide 5xx details from callers."""
  if exc.status_code >= 500:
    logger.error("HTTPException path=%s status_code=%s detail=%s", request.url.path, exc.status_code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": "Internal Server Error"})
  return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))
