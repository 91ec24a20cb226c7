"""ActivePieces REST API client.

Every call goes through ``ActivePiecesClient._request``, which attaches the
bearer token (the signed-in user's token, else the service API key), maps
non-2xx responses to ``ActivePiecesError`` and, on a 401 with a user token,
re-verifies the session once before giving up.
"""

from __future__ import annotations

from typing import Any, Literal

import httpx

from autoflow.config import Settings
from autoflow.core.errors import ActivePiecesError, SessionExpiredError
from autoflow.observability.tracing import log_event
from autoflow.session import SessionManager

MemberRole = Literal['admin', 'member', 'viewer']


class ActivePiecesClient:
    def __init__(
        self,
        base_url: str,
        api_key: str = '',
        session: SessionManager | None = None,
        client: httpx.AsyncClient | None = None,
        timeout_s: float = 30.0,
    ) -> None:
        """Create an ActivePieces client.

        Args:
            base_url: API root, e.g. http://localhost:3000/api.
            api_key: Service key used when no user is signed in.
            session: Session manager holding the user token.
            client: Optional injected httpx client for testing / transport control.
        """
        self._base_url = base_url.rstrip('/')
        self._api_key = api_key
        self._client = client
        self._timeout_s = timeout_s
        self.session = session

        self.auth = _Auth(self)
        self.automations = _Automations(self)
        self.connections = _Connections(self)
        self.triggers = _Catalog(self, '/triggers')
        self.actions = _Catalog(self, '/actions')
        self.webhooks = _Webhooks(self)
        self.executions = _Executions(self)
        self.approvals = _Approvals(self)
        self.teams = _Teams(self)

        if session is not None:
            session.bind_verifier(self.auth.verify)

    @staticmethod
    def from_settings(
        settings: Settings,
        session: SessionManager | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> 'ActivePiecesClient':
        return ActivePiecesClient(
            base_url=settings.activepieces_url,
            api_key=settings.activepieces_api_key,
            session=session,
            client=client,
        )

    def _headers(self, token: str | None) -> dict[str, str]:
        headers = {'Content-Type': 'application/json'}
        bearer = token or (self.session.token if self.session else None) or self._api_key
        if bearer:
            headers['Authorization'] = f'Bearer {bearer}'
        return headers

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            if self._client is not None:
                return await self._client.request(method, url, timeout=self._timeout_s, **kwargs)
            async with httpx.AsyncClient() as client:
                return await client.request(method, url, timeout=self._timeout_s, **kwargs)
        except httpx.TimeoutException as exc:
            raise ActivePiecesError(504, f'Request to ActivePieces timed out ({method} {url})') from exc
        except httpx.HTTPError as exc:
            raise ActivePiecesError(503, f'ActivePieces connection error: {exc}') from exc

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        token: str | None = None,
        retry_on_401: bool = True,
    ) -> Any:
        url = f'{self._base_url}{endpoint}'
        resp = await self._send(method, url, json=json, params=params, headers=self._headers(token))

        if resp.status_code == 401 and retry_on_401 and token is None and self.session and self.session.token:
            log_event('activepieces.unauthorized', endpoint=endpoint)
            if await self.session.refresh_access_token():
                resp = await self._send(method, url, json=json, params=params, headers=self._headers(None))
                if resp.status_code != 401:
                    return _parse(resp)
            self.session.clear_session()
            raise SessionExpiredError('Session expired. Please log in again.')

        return _parse(resp)


def _parse(resp: httpx.Response) -> Any:
    if resp.is_error:
        raise ActivePiecesError(resp.status_code, _error_message(resp))
    if not resp.content:
        return None
    return resp.json()


def _error_message(resp: httpx.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.reason_phrase or f'API Error: {resp.status_code}'
    if isinstance(payload, dict) and payload.get('message'):
        return str(payload['message'])
    return f'API Error: {resp.status_code}'


class _Resource:
    def __init__(self, api: ActivePiecesClient) -> None:
        self._api = api


class _Auth(_Resource):
    async def login(self, email: str, password: str) -> dict[str, Any]:
        resp = await self._api._request(
            'POST', '/auth/login', json={'email': email, 'password': password}, retry_on_401=False
        )
        self._remember(resp)
        return resp

    async def register(
        self,
        email: str,
        password: str,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> dict[str, Any]:
        resp = await self._api._request(
            'POST',
            '/auth/register',
            json={
                'email': email,
                'password': password,
                'firstName': first_name or email.split('@')[0],
                'lastName': last_name or '',
            },
            retry_on_401=False,
        )
        self._remember(resp)
        return resp

    async def logout(self) -> None:
        try:
            await self._api._request('POST', '/auth/logout', retry_on_401=False)
        finally:
            if self._api.session:
                self._api.session.clear_session()

    async def me(self) -> dict[str, Any]:
        return await self._api._request('GET', '/auth/me')

    async def verify(self, token: str) -> dict[str, Any]:
        """Resolve the user behind ``token``; raises when it is no longer valid."""
        return await self._api._request('GET', '/auth/me', token=token, retry_on_401=False)

    def _remember(self, resp: Any) -> None:
        session = self._api.session
        if session is None or not isinstance(resp, dict) or not resp.get('token'):
            return
        session.store_session(resp['token'], resp.get('user'), resp.get('expiresIn') or resp.get('expiresAt'))


class _Automations(_Resource):
    async def list(self) -> Any:
        return await self._api._request('GET', '/flows')

    async def get(self, flow_id: str) -> Any:
        return await self._api._request('GET', f'/flows/{flow_id}')

    async def create(self, data: dict[str, Any]) -> Any:
        return await self._api._request('POST', '/flows', json=data)

    async def update(self, flow_id: str, data: dict[str, Any]) -> Any:
        return await self._api._request('PUT', f'/flows/{flow_id}', json=data)

    async def delete(self, flow_id: str) -> Any:
        return await self._api._request('DELETE', f'/flows/{flow_id}')

    async def execute(self, flow_id: str, payload: dict[str, Any] | None = None) -> Any:
        return await self._api._request('POST', f'/flows/{flow_id}/execute', json=payload)

    async def executions(self, flow_id: str) -> Any:
        return await self._api._request('GET', f'/flows/{flow_id}/executions')


class _Connections(_Resource):
    async def list(self) -> Any:
        return await self._api._request('GET', '/connections')

    async def get(self, connection_id: str) -> Any:
        return await self._api._request('GET', f'/connections/{connection_id}')

    async def create(self, name: str, app_name: str, config: dict[str, Any]) -> Any:
        return await self._api._request(
            'POST', '/connections', json={'name': name, 'appName': app_name, 'config': config}
        )

    async def update(self, connection_id: str, data: dict[str, Any]) -> Any:
        return await self._api._request('PUT', f'/connections/{connection_id}', json=data)

    async def delete(self, connection_id: str) -> Any:
        return await self._api._request('DELETE', f'/connections/{connection_id}')

    async def test(self, connection_id: str) -> Any:
        return await self._api._request('POST', f'/connections/{connection_id}/test')


class _Catalog(_Resource):
    def __init__(self, api: ActivePiecesClient, prefix: str) -> None:
        super().__init__(api)
        self._prefix = prefix

    async def list_available(self) -> Any:
        return await self._api._request('GET', self._prefix)

    async def get_schema(self, name: str) -> Any:
        return await self._api._request('GET', f'{self._prefix}/{name}/schema')


class _Webhooks(_Resource):
    async def list(self) -> Any:
        return await self._api._request('GET', '/webhooks')

    async def create(self, name: str, url: str, events: list[str]) -> Any:
        return await self._api._request('POST', '/webhooks', json={'name': name, 'url': url, 'events': events})

    async def delete(self, webhook_id: str) -> Any:
        return await self._api._request('DELETE', f'/webhooks/{webhook_id}')

    async def test_delivery(self, webhook_id: str) -> Any:
        return await self._api._request('POST', f'/webhooks/{webhook_id}/test')


class _Executions(_Resource):
    async def list(self, filters: dict[str, Any] | None = None) -> Any:
        params = {k: str(v) for k, v in (filters or {}).items() if v}
        return await self._api._request('GET', '/executions', params=params or None)

    async def get(self, execution_id: str) -> Any:
        return await self._api._request('GET', f'/executions/{execution_id}')

    async def retry(self, execution_id: str) -> Any:
        return await self._api._request('POST', f'/executions/{execution_id}/retry')


class _Approvals(_Resource):
    async def list(self) -> Any:
        return await self._api._request('GET', '/approvals')

    async def get(self, approval_id: str) -> Any:
        return await self._api._request('GET', f'/approvals/{approval_id}')

    async def approve(self, approval_id: str, comment: str | None = None) -> Any:
        return await self._api._request('POST', f'/approvals/{approval_id}/approve', json={'comment': comment})

    async def reject(self, approval_id: str, reason: str | None = None) -> Any:
        return await self._api._request('POST', f'/approvals/{approval_id}/reject', json={'reason': reason})


class _Teams(_Resource):
    async def current(self) -> Any:
        return await self._api._request('GET', '/teams/current')

    async def members(self) -> Any:
        return await self._api._request('GET', '/teams/current/members')

    async def invite(self, email: str, role: MemberRole = 'member') -> Any:
        return await self._api._request('POST', '/teams/current/invite', json={'email': email, 'role': role})

    async def update_member_role(self, member_id: str, role: MemberRole) -> Any:
        return await self._api._request('PATCH', f'/teams/current/members/{member_id}', json={'role': role})

    async def remove_member(self, member_id: str) -> Any:
        return await self._api._request('DELETE', f'/teams/current/members/{member_id}')
