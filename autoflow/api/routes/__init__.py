from fastapi import FastAPI

from .auth import router as auth_router
from .plans import router as plans_router
from .automations import router as automations_router
from .approvals import router as approvals_router
from .versions import router as versions_router
from .webhooks import router as webhooks_router
from .connections import router as connections_router, catalog_router
from .retry import router as retry_router
from .analytics import router as analytics_router


def register_routes(app: FastAPI):
    app.include_router(auth_router, prefix="/v1")
    app.include_router(plans_router, prefix="/v1")
    app.include_router(automations_router, prefix="/v1")
    app.include_router(approvals_router, prefix="/v1")
    app.include_router(versions_router, prefix="/v1")
    app.include_router(webhooks_router, prefix="/v1")
    app.include_router(connections_router, prefix="/v1")
    app.include_router(catalog_router, prefix="/v1")
    app.include_router(retry_router, prefix="/v1")
    app.include_router(analytics_router, prefix="/v1")
