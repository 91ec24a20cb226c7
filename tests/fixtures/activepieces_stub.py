# ------------------------------------------------------------------------------
# Stubbed ActivePieces API for httpx.MockTransport
# ------------------------------------------------------------------------------
import json
import re
from datetime import datetime, timezone

from httpx import Request, Response

BASE_URL = "http://activepieces.test/api"
SERVICE_KEY = "svc_key"

_FLOW_RE = re.compile(r"^/api/flows/(?P<id>[^/]+)(?P<rest>/.*)?$")


class ActivePiecesStub:
    """In-memory ActivePieces: flows, executions and token checks.

    ``execute_failures`` is a queue of status codes returned by the next
    execute calls before they start succeeding.
    """

    def __init__(self) -> None:
        self.valid_tokens: set[str] = {"tok_1", SERVICE_KEY}
        self.flows: dict[str, dict] = {}
        self.executions: dict[str, list[dict]] = {}
        self.execute_failures: list[int] = []
        self.requests: list[Request] = []

    def _authorized(self, request: Request) -> bool:
        auth = request.headers.get("authorization", "")
        return auth.startswith("Bearer ") and auth[len("Bearer "):] in self.valid_tokens

    def __call__(self, request: Request) -> Response:
        self.requests.append(request)
        path = request.url.path
        body = json.loads(request.content) if request.content else None

        if path == "/api/auth/login":
            if body["password"] != "hunter2":
                return Response(401, json={"message": "Invalid credentials"})
            return Response(
                200,
                json={"token": "tok_1", "user": {"id": "user_1", "email": body["email"]}, "expiresIn": 3600},
            )

        if not self._authorized(request):
            return Response(401, json={"message": "Unauthorized"})

        if path == "/api/auth/me":
            return Response(200, json={"id": "user_1", "email": "ada@example.com"})

        if path == "/api/flows":
            if request.method == "POST":
                flow_id = f"flow_{len(self.flows) + 1}"
                self.flows[flow_id] = {"id": flow_id, **body}
                return Response(201, json=self.flows[flow_id])
            return Response(200, json={"data": list(self.flows.values())})

        match = _FLOW_RE.match(path)
        if match:
            return self._flow(request, match.group("id"), match.group("rest") or "", body)

        if path == "/api/connections":
            return Response(200, json={"data": [{"id": "conn_1", "appName": "slack"}]})

        if path == "/api/triggers":
            return Response(200, json=[{"name": "stripe.payment_succeeded"}])

        return Response(404, json={"message": f"No route for {request.method} {path}"})

    def _flow(self, request: Request, flow_id: str, rest: str, body) -> Response:
        if flow_id not in self.flows:
            return Response(404, json={"message": "Flow not found"})

        if rest == "/execute":
            if self.execute_failures:
                status = self.execute_failures.pop(0)
                return Response(status, json={"message": f"Upstream error {status}"})
            run = {
                "id": f"run_{len(self.executions.get(flow_id, [])) + 1}",
                "flowId": flow_id,
                "status": "success",
                "created_at": datetime.now(timezone.utc).isoformat(),
                "duration_ms": 1200,
            }
            self.executions.setdefault(flow_id, []).append(run)
            return Response(200, json=run)

        if rest == "/executions":
            return Response(200, json={"data": self.executions.get(flow_id, [])})

        if request.method == "PUT":
            self.flows[flow_id].update(body or {})
            return Response(200, json=self.flows[flow_id])
        if request.method == "DELETE":
            del self.flows[flow_id]
            return Response(204)
        return Response(200, json=self.flows[flow_id])
