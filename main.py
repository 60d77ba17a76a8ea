"""
Contact Mailer API — application entry point.
"""

from __future__ import annotations

import logging
import sys

import uvicorn
from fastapi import FastAPI, Response

from api.contacts import router as contacts_router
from api.errors import register_exception_handlers
from api.groups import router as groups_router
from api.middleware import register_middleware
from api.profile import router as profile_router
from api.templates import router as templates_router
from auth.routes import router as auth_router
from config.settings import config
from connectors.encryption import is_encryption_enabled
from connectors.routes import router as google_router
from database.session import init_models
from mail.routes import router as mail_router

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("httpcore", "httpx", "urllib3", "googleapiclient.discovery_cache", "aiosqlite"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Contact Mailer API",
        version="1.0.0",
        description="Contacts, groups, templates and Gmail bulk sending.",
    )

    register_middleware(app)
    register_exception_handlers(app)

    # Routes
    for router in (
        auth_router,
        profile_router,
        google_router,
        contacts_router,
        groups_router,
        templates_router,
        mail_router,
    ):
        app.include_router(router, prefix="/api")

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon() -> Response:
        return Response(status_code=204)

    @app.on_event("startup")
    async def on_startup():
        logger.info("Creating database tables…")
        await init_models()

        if not config.is_google_configured():
            logger.warning("GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET not set — Google connection will fail")
        if config.oauth_state_secret == "change-me-oauth-state":
            logger.warning("OAUTH_STATE_SECRET is the default value — set a real secret")
        is_encryption_enabled()

        logger.info("Application ready to accept requests.")

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
