# ------------------------------------------------------------------------------
# AutomationRunner double
# ------------------------------------------------------------------------------
from typing import Any


class FakeRunner:
    """Records every execute() call; raises ``error`` when one is given."""

    def __init__(self, *, error: Exception | None = None, result: Any = None) -> None:
        self._error = error
        self._result = result
        self.calls: list[tuple[str, dict[str, Any] | None]] = []

    async def execute(self, automation_id: str, payload: dict[str, Any] | None = None) -> Any:
        self.calls.append((automation_id, payload))
        if self._error is not None:
            raise self._error
        if self._result is not None:
            return self._result
        return {"id": f"run_{len(self.calls)}", "flowId": automation_id, "status": "RUNNING"}
