from fastapi import APIRouter, Depends

from autoflow.api.core.auth import CurrentUser, get_current_user
from autoflow.api.core.container import Container, get_container
from autoflow.api.errors import DOMAIN_ERRORS, http_error
from autoflow.api.schemas import ConnectionCreate

from ._utils import items

router = APIRouter(prefix="/connections", tags=["Connections"])
catalog_router = APIRouter(prefix="/catalog", tags=["Connections"])


@router.get("")
async def list_connections(
    user: CurrentUser = Depends(get_current_user),
    container: Container = Depends(get_container),
):
    try:
        return items(await container.activepieces.connections.list())
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc


@router.post("", status_code=201)
async def create_connection(
    body: ConnectionCreate,
    user: CurrentUser = Depends(get_current_user),
    container: Container = Depends(get_container),
):
    try:
        return await container.activepieces.connections.create(body.name, body.app_name, body.config)
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc


@router.get("/{connection_id}")
async def get_connection(
    connection_id: str,
    user: CurrentUser = Depends(get_current_user),
    container: Container = Depends(get_container),
):
    try:
        return await container.activepieces.connections.get(connection_id)
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc


@router.put("/{connection_id}")
async def update_connection(
    connection_id: str,
    body: dict,
    user: CurrentUser = Depends(get_current_user),
    container: Container = Depends(get_container),
):
    try:
        return await container.activepieces.connections.update(connection_id, body)
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc


@router.delete("/{connection_id}", status_code=204)
async def delete_connection(
    connection_id: str,
    user: CurrentUser = Depends(get_current_user),
    container: Container = Depends(get_container),
):
    try:
        await container.activepieces.connections.delete(connection_id)
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc


@router.post("/{connection_id}/test")
async def test_connection(
    connection_id: str,
    user: CurrentUser = Depends(get_current_user),
    container: Container = Depends(get_container),
):
    try:
        return await container.activepieces.connections.test(connection_id)
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc


@catalog_router.get("/triggers")
async def list_triggers(container: Container = Depends(get_container)):
    try:
        return items(await container.activepieces.triggers.list_available())
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc


@catalog_router.get("/triggers/{name}/schema")
async def trigger_schema(name: str, container: Container = Depends(get_container)):
    try:
        return await container.activepieces.triggers.get_schema(name)
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc


@catalog_router.get("/actions")
async def list_actions(container: Container = Depends(get_container)):
    try:
        return items(await container.activepieces.actions.list_available())
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc


@catalog_router.get("/actions/{name}/schema")
async def action_schema(name: str, container: Container = Depends(get_container)):
    try:
        return await container.activepieces.actions.get_schema(name)
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc
