"""
FastAPI application entry point for public dashboards.

The query backend and datasource registry are attached to app.state by the
deployment (query_executor, datasource_registry); without an executor the
panel query endpoint answers 503.
"""

import logging

from fastapi import FastAPI

from pubdash.api.routes import public_dashboards

# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="Public Dashboards API")
    app.include_router(public_dashboards.public_router)
    app.include_router(public_dashboards.config_router)
    logger.info("Public dashboard routes registered")
    return app


app = create_app()
