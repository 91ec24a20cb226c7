from __future__ import annotations

import pytest

from autoflow.domain.prompt_store import FilesystemPromptStore
from autoflow.domain.summaries import ExecutionSummarizer, calculate_duration
from autoflow.llm.mock import MockLLMClient

LOGS = [
    {"level": "info", "message": "Trigger stripe.payment_succeeded fired", "timestamp": "2026-03-20T12:00:00Z"},
    {"level": "info", "message": "slack.send_message executed", "timestamp": "2026-03-20T12:00:02Z"},
    {"level": "error", "message": "sheets.append_row failed: 403", "timestamp": "2026-03-20T12:00:05Z"},
]


@pytest.mark.parametrize(
    ("end", "expected"),
    [("2026-03-20T12:00:42Z", "42s"), ("2026-03-20T12:05:00Z", "5m"), ("2026-03-20T14:00:00Z", "2h")],
)
def test_calculate_duration(end: str, expected: str) -> None:
    logs = [{"timestamp": "2026-03-20T12:00:00Z"}, {"timestamp": end}]
    assert calculate_duration(logs) == expected


def test_calculate_duration_without_timestamps() -> None:
    assert calculate_duration([]) == "0s"
    assert calculate_duration([{"message": "x"}]) == "0s"


@pytest.mark.asyncio
async def test_summary_from_model_output() -> None:
    llm = MockLLMClient(
        output={
            "summary": "Slack was notified but the sheet update failed.",
            "highlightedFailures": ["Sheets returned 403"],
            "nextSteps": ["Check the Google Sheets connection"],
        }
    )
    summarizer = ExecutionSummarizer(llm=llm, prompt_store=FilesystemPromptStore())

    summary = await summarizer.summarize("Payments", "exec_1", LOGS)

    assert summary.status == "failure"
    assert summary.summary.startswith("Slack was notified")
    assert summary.highlighted_failures == ["Sheets returned 403"]
    assert summary.key_metrics.actions_executed == 1
    assert summary.key_metrics.error_count == 1
    assert summary.key_metrics.duration == "5s"

    prompt = llm.requests[0].prompt
    assert "Automation: Payments" in prompt
    assert "- sheets.append_row failed: 403" in prompt


@pytest.mark.asyncio
async def test_summary_falls_back_when_model_is_unusable() -> None:
    summarizer = ExecutionSummarizer(llm=MockLLMClient(output="Sorry, no JSON"), prompt_store=FilesystemPromptStore())

    summary = await summarizer.summarize("Payments", "exec_1", LOGS)

    assert summary.summary == "Payments finished with 1 error(s) after running 1 action(s)."
    assert summary.highlighted_failures == ["sheets.append_row failed: 403"]
    assert summary.next_steps[0] == "Review the raw logs for detailed information"


@pytest.mark.asyncio
async def test_summary_without_llm_for_clean_run() -> None:
    summarizer = ExecutionSummarizer(llm=None, prompt_store=FilesystemPromptStore())

    summary = await summarizer.summarize("Payments", "exec_1", LOGS[:2])

    assert summary.status == "success"
    assert summary.next_steps == ["No action needed"]
