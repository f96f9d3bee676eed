# main.py
import logging
import os

import sqladmin
import swagger_ui_bundle
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.staticfiles import StaticFiles

from reception_app import models
from reception_app.admin import create_admin
from reception_app.config import settings
from reception_app.database import check_database_health, engine
from reception_app.error_handlers import setup_exception_handlers
from reception_app.routers import (
    appointments,
    audit_logs,
    auth,
    clients,
    dashboard,
    employees,
    parcels,
    phone_calls,
    reports,
    travel_logs,
    users,
    vehicles,
    visitors,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

ROUTERS = (
    auth, users, employees, visitors, vehicles, phone_calls, travel_logs,
    parcels, appointments, clients, dashboard, reports, audit_logs,
)
SWAGGER_STATIC = "/swagger-static"


def _mount_docs(app: FastAPI) -> None:
    """Serve Swagger UI from the swagger_ui_bundle package instead of a CDN"""
    app.mount(SWAGGER_STATIC, StaticFiles(directory=swagger_ui_bundle.swagger_ui_path), name="swagger-static")

    @app.get("/docs", include_in_schema=False)
    def swagger_ui():
        return get_swagger_ui_html(
            openapi_url=app.openapi_url,
            title=f"{app.title} - Swagger UI",
            swagger_js_url=f"{SWAGGER_STATIC}/swagger-ui-bundle.js",
            swagger_css_url=f"{SWAGGER_STATIC}/swagger-ui.css",
            swagger_favicon_url=f"{SWAGGER_STATIC}/favicon-32x32.png",
        )


def _mount_admin(app: FastAPI) -> None:
    statics = os.path.join(os.path.dirname(sqladmin.__file__), "statics")
    app.mount("/admin/statics", StaticFiles(directory=statics), name="sqladmin-static")
    create_admin(app)


def create_app() -> FastAPI:
    # alembic owns migrations; this only fills in tables missing on a fresh database
    models.Base.metadata.create_all(bind=engine)

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description=settings.api_description,
        docs_url=None,
        redoc_url=None,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_exception_handlers(app)

    for module in ROUTERS:
        app.include_router(module.router)

    _mount_docs(app)
    _mount_admin(app)

    @app.get("/")
    async def root():
        return {
            "message": f"Welcome to the {settings.api_title} API",
            "docs": "/docs",
            "admin": "/admin",
            "health": "/health",
        }

    @app.get("/health")
    def health():
        up = check_database_health()
        return {"status": "ok" if up else "degraded", "db": "up" if up else "down"}

    logger.info("%s %s ready (env=%s)", settings.api_title, settings.api_version, settings.env)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.env == "dev", log_level="info")
