from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import time
import logging

from stockflow.config.settings import settings

logger = logging.getLogger(__name__)

PROCESS_TIME_HEADER = "X-Process-Time"

def setup_middleware(app: FastAPI):
    """CORS y registro de tiempos por petición"""

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[PROCESS_TIME_HEADER],
    )

    @app.middleware("http")
    async def time_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers[PROCESS_TIME_HEADER] = f"{elapsed_ms:.1f}ms"

        line = f"{request.method} {request.url.path} → {response.status_code} ({elapsed_ms:.1f}ms)"
        if response.status_code >= 500:
            logger.error(f"💥 {line}")
        elif response.status_code in (401, 403):
            # intentos sin token o sin permiso de transferencia
            logger.warning(f"🔒 {line}")
        else:
            logger.info(f"⏱️ {line}")

        return response
