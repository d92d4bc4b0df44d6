"""
tracedeck entry point.

Serves the dashboard API under /api/v1 (session auth) and the public API under
/api/public (API key auth). On first startup auto-provisions a default admin
user, project and API key pair.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from tracedeck.config import settings
from tracedeck.api.v1.router import api_router
from tracedeck.api.public.router import public_api_router
from tracedeck.middleware.ip_blocking import IPBlockingMiddleware
from tracedeck.db.session import dispose_engine, get_session_factory
from tracedeck.db.valkey import close_valkey_client
from tracedeck.bootstrap import ensure_default_user
from logging import getLogger, Filter
import logging

logger = getLogger(__name__)
logger.setLevel(logging.INFO)


class HealthCheckFilter(Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.getMessage().find("/health") == -1


logging.getLogger("uvicorn.access").addFilter(HealthCheckFilter())


app = FastAPI(title=settings.app_name, debug=settings.debug, redirect_slashes=False)


@app.on_event("startup")
async def startup_event():
    logger.info("--- Starting tracedeck ---")
    try:
        async with get_session_factory()() as db:
            await ensure_default_user(db)
    except Exception as e:
        logger.error(f"Warning: Error during bootstrap: {e}")
    logger.info("--- tracedeck startup completed ---")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("--- Server shutting down! ---")
    try:
        await dispose_engine()
        await close_valkey_client()
        logger.info("--- Database and cache connections closed. ---")
    except Exception as e:
        logger.error(f"Warning: Error during shutdown: {e}")


if settings.deployment_variant == "cloud":
    app.add_middleware(IPBlockingMiddleware, blocked_ips_key=settings.blocked_ips_key)

# Outermost middleware: preflight is answered before IP blocking and auth.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")
app.include_router(public_api_router, prefix="/api/public")


@app.get("/")
def read_root():
    return {"message": "Welcome to tracedeck"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
