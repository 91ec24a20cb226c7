from unittest.mock import AsyncMock, MagicMock


def make_mock_runner(result=None, error: Exception | None = None) -> MagicMock:
    runner = MagicMock()
    runner.execute = AsyncMock(
        return_value=result or {"id": "run_mock", "status": "RUNNING"},
        side_effect=error,
    )
    return runner
