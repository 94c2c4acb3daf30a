import time
import logging
from fastapi import Request

logger = logging.getLogger("access")

# Polled by the dashboard connection indicator, too chatty to log
QUIET_PATHS = {"/health"}


async def request_logging_middleware(request: Request, call_next):
    started = time.perf_counter()

    response = await call_next(request)

    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
    response.headers["X-Process-Time-Ms"] = str(elapsed_ms)

    if request.url.path in QUIET_PATHS and response.status_code < 400:
        return response

    path = request.url.path
    if request.url.query:
        path = f"{path}?{request.url.query}"

    logger.info(
        "",
        extra={
            "client_addr": request.client.host if request.client else "unknown",
            "method": request.method,
            "path": path,
            "status_code": response.status_code,
            "process_time_ms": elapsed_ms,
        },
    )

    return response
