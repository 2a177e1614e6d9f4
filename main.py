"""
Auth API — application entry point.
"""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import register_middleware
from api.responses import ErrorClassifier
from auth.password import PasswordHasher
from auth.routes import router as auth_router
from auth.tokens import TokenIssuer
from config.settings import Settings, config
from database.session import build_engine, build_session_factory, init_db
from utils.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def create_app(settings: Settings = config) -> FastAPI:
    app = FastAPI(
        title="Auth API",
        version="1.0.0",
        description="Signup and login with hashed passwords and signed session tokens.",
        debug=settings.debug,
    )

    # Immutable, process-wide components
    app.state.settings = settings
    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    app.state.token_issuer = TokenIssuer(
        settings.jwt_secret,
        expiry_seconds=settings.jwt_expiry_seconds,
        algorithm=settings.jwt_algorithm,
    )
    app.state.classifier = ErrorClassifier(settings)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)

    # Routes
    app.include_router(auth_router, prefix="/api/auth")

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": "auth"}

    @app.on_event("startup")
    async def on_startup():
        await init_db(app.state.engine)
        if settings.jwt_secret == Settings.model_fields["jwt_secret"].default:
            logger.warning("JWT_SECRET is not set; using the development default")
        logger.info("Application ready to accept requests (environment=%s).", settings.environment)

    @app.on_event("shutdown")
    async def on_shutdown():
        await app.state.engine.dispose()

    return app


setup_logging(debug=config.debug, fmt=config.log_format)
app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
