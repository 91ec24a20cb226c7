"""FastAPI service for prompt-driven workflow automation.

Turns plain-language descriptions into automation plans, deploys them to
ActivePieces and keeps the local state around them:
- approval requests with timed auto-execution
- workflow version history and rollback
- inbound and outbound webhooks

Background jobs (approval poller, session checker) live for the lifetime
of the app.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from autoflow.api.core.container import get_container
from autoflow.api.routes import register_routes
from autoflow.db.connection import init_db
from autoflow.observability.tracing import log_event

logging.basicConfig(level=logging.INFO, format="%(message)s")

tags_metadata = [
    {
        "name": "Auth",
        "description": "Login, registration and session state against ActivePieces"
    },
    {
        "name": "Plans",
        "description": "Turn descriptions into automation plans, analyze and diff them"
    },
    {
        "name": "Automations",
        "description": "Create, update and execute automations"
    },
    {
        "name": "Approvals",
        "description": "Routes that allow manual approvals of automation runs"
    },
    {
        "name": "Versions",
        "description": "Version history, rollback, export and import"
    },
    {
        "name": "Webhooks",
        "description": "Outgoing deliveries and the public inbound endpoint"
    },
    {
        "name": "Connections",
        "description": "Third-party connections and the trigger/action catalog"
    },
    {
        "name": "Retry",
        "description": "Error classification and retry policies"
    },
    {
        "name": "Analytics",
        "description": "Execution metrics and insights"
    }
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    container = get_container()
    container.session.start()
    container.approval_poller.start()
    log_event("app.started")
    try:
        yield
    finally:
        await container.approval_poller.stop()
        await container.session.stop()
        log_event("app.stopped")


app = FastAPI(
    title='AutoFlow',
    version='1.0.0',
    description='Prompt-driven workflow automation',
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Register all API routes
register_routes(app)
