"""FastAPI application entry point."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from topocheck.api.routes import health, rules, validate
from topocheck.config import get_settings


def create_app() -> FastAPI:
    settings = get_settings()
    logging.getLogger("topocheck").setLevel(settings.log_level.upper())

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Topology rule checks for point, line and polygon layers",
        debug=settings.debug,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(rules.router, prefix="/api/v1/rules", tags=["Rules"])
    app.include_router(validate.router, prefix="/api/v1/validate", tags=["Validation"])

    return app


app = create_app()
