"""
FastAPI Application Entry Point

Integrates:
  - Control API (webhook target, readiness, outbound sends)
  - WhatsApp Cloud API webhook receiver
  - Health checks
  - Middleware for logging & error handling

Run: uvicorn main:app --host 0.0.0.0 --port 3000
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from api.control import router as control_router
from config import Config
from infra.bootstrap import RelayBootstrap
from transport.whatsapp import router as whatsapp_router

# Setup logging
logging.basicConfig(
    level=Config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(relay: Optional[RelayBootstrap] = None) -> FastAPI:
    """
    Build the application around a relay.

    Args:
        relay: Pre-built relay (tests); created from the environment otherwise
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan: startup and shutdown handlers.
        """
        # Startup
        logger.info("=" * 60)
        logger.info("WhatsApp relay starting up...")
        logger.info(f"Relay: {app.state.relay!r}")
        logger.info(f"Environment: {Config.ENVIRONMENT}")
        logger.info("=" * 60)
        await app.state.relay.start()

        yield

        # Shutdown
        logger.info("WhatsApp relay shutting down...")
        await app.state.relay.stop()

    app = FastAPI(
        title="WhatsApp Relay API",
        description="Bridges a WhatsApp session to an n8n webhook",
        version="1.0.0",
        lifespan=lifespan,
    )

    relay = relay or RelayBootstrap()
    app.state.relay = relay
    app.state.session = relay.session
    app.state.webhook_secrets = relay.config.webhook_secrets()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=Config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Middleware for logging
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests."""
        logger.debug(f"{request.method} {request.url.path}")
        try:
            response = await call_next(request)
            return response
        except Exception as e:
            logger.error(f"Request error: {str(e)}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error"},
            )

    # Include routers
    app.include_router(control_router)
    app.include_router(whatsapp_router)

    # Health check endpoints
    @app.get("/health/live")
    async def health_live():
        """Live health check (Kubernetes liveness check)."""
        return {"status": "alive"}

    @app.get("/health/ready")
    async def health_ready():
        """Readiness health check: ready once the WhatsApp session is."""
        if app.state.relay.relay_config.whatsapp_ready:
            return {"status": "ready"}
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "reason": "WhatsApp session not ready"},
        )

    @app.get("/")
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "WhatsApp Relay API",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "get_webhook": "GET /get-webhook",
                "status_whatsapp": "GET /status-whatsapp",
                "set_webhook": "POST /set-webhook",
                "send_message": "POST /send-message",
                "send_audio": "POST /send-audio",
                "whatsapp_webhook": "POST /webhook/whatsapp",
                "health_live": "GET /health/live",
                "health_ready": "GET /health/ready",
            },
        }

    return app


app = create_app()


def main() -> None:
    import uvicorn

    uvicorn.run(app, host=Config.HOST, port=Config.PORT)


if __name__ == "__main__":
    main()
