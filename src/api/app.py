"""FastAPI application factory for the plan REST API."""

from fastapi import APIRouter, FastAPI

from api.routes import register_routes
from storage.plan_store import PlanConfig


def create_app(config: PlanConfig) -> FastAPI:
    """Build and return a FastAPI app serving the plans under ``config``."""
    app = FastAPI(title="long-term-plan", docs_url="/api/docs", openapi_url="/api/openapi.json")

    api = APIRouter(prefix="/api")
    register_routes(api, config)
    app.include_router(api)

    return app
