from datetime import datetime
from typing import Any, Literal, Mapping

from pydantic import AliasChoices, BaseModel, Field, ValidationError

from autoflow.core.errors import LLMParseError
from autoflow.domain.plans.parsing import extract_json_object
from autoflow.domain.policies import sanitize_message
from autoflow.domain.prompt_store import PromptStore
from autoflow.llm.base import LLMClient, LLMRequest
from autoflow.observability.tracing import Span, log_event, new_trace_id
from autoflow.runtime.renderer import PromptRenderer
from autoflow.runtime.utils import normalize_usage

FALLBACK_NEXT_STEPS = [
    "Review the raw logs for detailed information",
    "Contact support if issues persist",
]


class KeyMetrics(BaseModel):
    triggers_matched: int = 0
    actions_executed: int = 0
    error_count: int = 0
    duration: str = "0s"


class ExecutionSummary(BaseModel):
    automation_name: str
    execution_id: str
    status: Literal["success", "failure", "partial"]
    summary: str
    key_metrics: KeyMetrics
    highlighted_failures: list[str] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list)


class _ModelSummary(BaseModel):
    summary: str = "Execution completed"
    highlighted_failures: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("highlighted_failures", "highlightedFailures"),
    )
    next_steps: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("next_steps", "nextSteps"),
    )


def _parse_ts(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def calculate_duration(logs: list[Mapping[str, Any]]) -> str:
    """Elapsed time between the first and last log line, rounded to s/m/h."""
    if not logs:
        return "0s"
    first, last = _parse_ts(logs[0].get("timestamp")), _parse_ts(logs[-1].get("timestamp"))
    if first is None or last is None:
        return "0s"

    seconds = round((last - first).total_seconds())
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{round(seconds / 60)}m"
    return f"{round(seconds / 3600)}h"


class ExecutionSummarizer:
    """Turns raw execution log lines into a short human-readable summary.

    Log lines are mappings with ``level``, ``message`` and ``timestamp``.
    When the model is unavailable or its output cannot be parsed, a summary
    is built from the logs alone.
    """

    def __init__(
        self,
        *,
        llm: LLMClient | None,
        prompt_store: PromptStore,
        renderer: PromptRenderer | None = None,
        version: str = "v1",
    ) -> None:
        self._llm = llm
        self._prompt_store = prompt_store
        self._renderer = renderer or PromptRenderer()
        self._version = version

    async def summarize(
        self,
        automation_name: str,
        execution_id: str,
        logs: list[Mapping[str, Any]],
        *,
        trace_id: str | None = None,
    ) -> ExecutionSummary:
        trace_id = trace_id or new_trace_id()
        errors = [log for log in logs if log.get("level") == "error"]
        succeeded = [
            log for log in logs
            if log.get("level") == "info" and "executed" in str(log.get("message") or "")
        ]
        duration = calculate_duration(logs)
        status = "success" if not errors else "failure"

        metrics = KeyMetrics(
            triggers_matched=1,
            actions_executed=len(succeeded),
            error_count=len(errors),
            duration=duration,
        )
        error_messages = [sanitize_message(str(e.get("message"))) for e in errors]

        parsed = await self._ask_model(
            trace_id,
            {
                "automation_name": automation_name,
                "status": status.capitalize(),
                "duration": duration,
                "succeeded_count": str(len(succeeded)),
                "error_count": str(len(errors)),
                "error_lines": "\n".join(f"- {m}" for m in error_messages),
                "action_lines": "\n".join(f"- {sanitize_message(str(a.get('message')))}" for a in succeeded),
            },
        )
        if parsed is None:
            parsed = _ModelSummary(
                summary=(
                    f"{automation_name} finished with {len(errors)} error(s) "
                    f"after running {len(succeeded)} action(s)."
                ),
                highlighted_failures=error_messages,
                next_steps=FALLBACK_NEXT_STEPS if errors else ["No action needed"],
            )

        return ExecutionSummary(
            automation_name=automation_name,
            execution_id=execution_id,
            status=status,
            summary=parsed.summary,
            key_metrics=metrics,
            highlighted_failures=parsed.highlighted_failures,
            next_steps=parsed.next_steps,
        )

    async def _ask_model(self, trace_id: str, variables: dict[str, str]) -> _ModelSummary | None:
        if self._llm is None:
            return None

        template = self._prompt_store.get_prompt(
            workflow="automation", module="summary", version=self._version
        )
        span = Span(name="llm.summarize", trace_id=trace_id)
        resp = None
        try:
            resp = await self._llm.generate(
                LLMRequest(
                    prompt=self._renderer.render(template, variables),
                    temperature=0.3,
                    max_tokens=512,
                    metadata={"trace_id": trace_id, "module": "summary", "version": self._version},
                )
            )
        except (RuntimeError, ValueError) as exc:
            log_event("execution.summary.llm_failed", trace_id=trace_id, error=str(exc))
            return None
        finally:
            span.end()
            log_event(
                "span.end",
                trace_id=trace_id,
                span=span,
                usage=normalize_usage(resp.usage) if resp is not None else None,
            )

        try:
            return _ModelSummary.model_validate(extract_json_object(resp.output_text))
        except (LLMParseError, ValidationError) as exc:
            log_event("execution.summary.invalid", trace_id=trace_id, error=str(exc))
            return None
