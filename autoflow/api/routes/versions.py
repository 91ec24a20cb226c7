from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse

from autoflow.api.core.auth import CurrentUser, get_current_user
from autoflow.api.core.container import Container, get_container
from autoflow.api.core.deps import get_version_repo
from autoflow.api.errors import DOMAIN_ERRORS, http_error
from autoflow.api.schemas import ImportVersionRequest, SnapshotRequest
from autoflow.core.errors import VersionNotFoundError
from autoflow.domain.versioning import (
    VersionRepository,
    WorkflowVersion,
    calculate_storage_used,
    compare_versions,
    export_version,
    get_changelog,
    import_version,
)

router = APIRouter(prefix="/automations/{automation_id}/versions", tags=["Versions"])


def _owned(versions: VersionRepository, automation_id: str, version_id: str) -> WorkflowVersion:
    version = versions.get(version_id)
    if version.automation_id != automation_id:
        raise VersionNotFoundError(f"Version {version_id} not found")
    return version


@router.get("", response_model=list[WorkflowVersion], summary="Version history, newest first")
async def list_versions(
    automation_id: str,
    user: CurrentUser = Depends(get_current_user),
    versions: VersionRepository = Depends(get_version_repo),
):
    return versions.history(automation_id)


@router.get("/active", response_model=WorkflowVersion)
async def get_active_version(
    automation_id: str,
    user: CurrentUser = Depends(get_current_user),
    versions: VersionRepository = Depends(get_version_repo),
):
    active = versions.get_active(automation_id)
    if active is None:
        raise http_error(VersionNotFoundError("No active version"))
    return active


@router.get("/changelog", response_model=list[str])
async def changelog(
    automation_id: str,
    user: CurrentUser = Depends(get_current_user),
    versions: VersionRepository = Depends(get_version_repo),
):
    return get_changelog(versions.history(automation_id))


@router.get("/storage")
async def storage(
    automation_id: str,
    user: CurrentUser = Depends(get_current_user),
    versions: VersionRepository = Depends(get_version_repo),
):
    return asdict(calculate_storage_used(versions.history(automation_id)))


@router.get("/compare")
async def compare(
    automation_id: str,
    a: str = Query(description="Older version id"),
    b: str = Query(description="Newer version id"),
    user: CurrentUser = Depends(get_current_user),
    versions: VersionRepository = Depends(get_version_repo),
):
    try:
        diffs = compare_versions(_owned(versions, automation_id, a), _owned(versions, automation_id, b))
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc
    return [asdict(d) for d in diffs]


@router.post("/snapshot", status_code=201, response_model=WorkflowVersion)
async def snapshot(
    automation_id: str,
    body: SnapshotRequest,
    user: CurrentUser = Depends(get_current_user),
    versions: VersionRepository = Depends(get_version_repo),
):
    """Pin the active version as a checkpoint that pruning never removes."""
    active = versions.get_active(automation_id)
    if active is None:
        raise http_error(VersionNotFoundError("No active version"))
    return versions.create(
        automation_id=automation_id,
        prompt=active.prompt,
        plan=active.plan,
        config=active.config,
        created_by=user.id,
        change_note=body.change_note or f"Snapshot of v{active.version_number}",
        is_snapshot=True,
    )


@router.post("/{version_id}/activate", response_model=WorkflowVersion, summary="Roll back to a version")
async def activate(
    automation_id: str,
    version_id: str,
    user: CurrentUser = Depends(get_current_user),
    versions: VersionRepository = Depends(get_version_repo),
    container: Container = Depends(get_container),
):
    try:
        return await container.orchestrator.rollback(automation_id, version_id, versions=versions)
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc


@router.get("/{version_id}/export", response_class=PlainTextResponse)
async def export(
    automation_id: str,
    version_id: str,
    user: CurrentUser = Depends(get_current_user),
    versions: VersionRepository = Depends(get_version_repo),
):
    try:
        return export_version(_owned(versions, automation_id, version_id))
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc


@router.post("/import", status_code=201, response_model=WorkflowVersion)
async def import_(
    automation_id: str,
    body: ImportVersionRequest,
    user: CurrentUser = Depends(get_current_user),
    versions: VersionRepository = Depends(get_version_repo),
):
    try:
        imported = import_version(body.exported, automation_id, user.id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid export: {exc}") from exc
    return versions.add(imported)


@router.post("/prune")
async def prune(
    automation_id: str,
    keep_count: int = Query(default=10, ge=1),
    user: CurrentUser = Depends(get_current_user),
    versions: VersionRepository = Depends(get_version_repo),
):
    return {"removed": versions.prune(automation_id, keep_count)}
