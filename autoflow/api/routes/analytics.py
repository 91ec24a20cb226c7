from dataclasses import asdict

from fastapi import APIRouter, Depends, Query

from autoflow.api.core.auth import CurrentUser, get_current_user
from autoflow.api.core.container import Container, get_container
from autoflow.api.errors import DOMAIN_ERRORS, http_error
from autoflow.domain.analytics import (
    calculate_execution_metrics,
    format_metrics,
    generate_execution_series,
    get_insights,
)

from ._utils import items

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/{automation_id}", summary="Execution metrics, daily series and insights")
async def automation_analytics(
    automation_id: str,
    days: int = Query(default=30, ge=1, le=365),
    user: CurrentUser = Depends(get_current_user),
    container: Container = Depends(get_container),
):
    try:
        flow = await container.activepieces.automations.get(automation_id)
        logs = items(await container.activepieces.automations.executions(automation_id))
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc

    name = flow.get("name", automation_id) if isinstance(flow, dict) else automation_id
    metrics = calculate_execution_metrics(automation_id, name, logs)
    return {
        "metrics": asdict(metrics),
        "formatted": format_metrics(metrics),
        "insights": get_insights(metrics),
        "series": [asdict(p) for p in generate_execution_series(logs, days=days)],
    }
