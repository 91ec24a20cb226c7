from fastapi import APIRouter, Depends, HTTPException, status

from autoflow.api.core.container import Container, get_container
from autoflow.api.errors import DOMAIN_ERRORS, http_error
from autoflow.api.schemas import LoginRequest, RegisterRequest, SessionStatus
from autoflow.core.errors import ActivePiecesError

router = APIRouter(prefix="/auth", tags=["Auth"])


def _credentials_error(exc: Exception) -> HTTPException:
    # A 401 here means the submitted credentials were wrong.
    if isinstance(exc, ActivePiecesError) and exc.status_code == 401:
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=exc.message)
    return http_error(exc)


@router.post("/login", summary="Sign in to ActivePieces")
async def login(body: LoginRequest, container: Container = Depends(get_container)):
    try:
        return await container.activepieces.auth.login(body.email, body.password)
    except DOMAIN_ERRORS as exc:
        raise _credentials_error(exc) from exc


@router.post("/register", summary="Create an ActivePieces account")
async def register(body: RegisterRequest, container: Container = Depends(get_container)):
    try:
        return await container.activepieces.auth.register(
            body.email, body.password, body.first_name, body.last_name
        )
    except DOMAIN_ERRORS as exc:
        raise _credentials_error(exc) from exc


@router.post("/logout", status_code=204)
async def logout(container: Container = Depends(get_container)):
    try:
        await container.activepieces.auth.logout()
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc


@router.get("/me")
async def me(container: Container = Depends(get_container)):
    try:
        return await container.activepieces.auth.me()
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc


@router.get("/session", response_model=SessionStatus)
async def session_status(container: Container = Depends(get_container)):
    """Remaining lifetime of the stored ActivePieces token."""
    session = container.session
    return SessionStatus(
        authenticated=session.token is not None,
        remaining_seconds=session.remaining_session_time(),
        should_refresh=session.should_refresh_token(),
    )
