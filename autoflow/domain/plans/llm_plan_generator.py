from pydantic import ValidationError

from autoflow.core.errors import LLMParseError, PlanningError
from autoflow.domain.policies import sanitize_user_text
from autoflow.domain.prompt_store import PromptStore
from autoflow.llm.base import LLMClient, LLMRequest
from autoflow.observability.tracing import Span, log_event, new_trace_id
from autoflow.runtime.repair import build_repair_prompt
from autoflow.runtime.utils import normalize_usage

from .entities import AutomationPlan
from .parsing import extract_json_object

PLAN_WORKFLOW = "automation"
PLAN_MODULE = "plan"


class LLMPlanGenerator:
    """
    Turns a natural-language description into an AutomationPlan.

    The planner prompt is sent as the system message and the sanitized user
    request as the user message. Invalid output gets ``max_retries`` repair
    attempts before a PlanningError is raised.
    """

    def __init__(
        self,
        *,
        llm: LLMClient | None,
        prompt_store: PromptStore,
        version: str = "v1",
        max_retries: int = 1,
        temperature: float = 0.1,
        max_tokens: int = 1000,
    ) -> None:
        self._llm = llm
        self._prompt_store = prompt_store
        self._version = version
        self._max_retries = max_retries
        self._temperature = temperature
        self._max_tokens = max_tokens

    async def generate(
        self,
        *,
        user_request: str,
        user_id: str | None = None,
        trace_id: str | None = None,
    ) -> AutomationPlan:
        trace_id = trace_id or new_trace_id()
        if self._llm is None:
            raise PlanningError("Groq API key not configured")
        safe_user_request = sanitize_user_text(user_request)
        if not safe_user_request:
            raise PlanningError("Prompt is required")

        system_prompt = self._prompt_store.get_prompt(
            workflow=PLAN_WORKFLOW,
            module=PLAN_MODULE,
            version=self._version,
        )

        current_prompt = safe_user_request
        last_error: Exception | None = None

        for attempt in range(self._max_retries + 1):
            plan_span = Span(name="llm.plan", trace_id=trace_id)
            resp = None
            try:
                resp = await self._llm.generate(
                    LLMRequest(
                        prompt=current_prompt,
                        system_prompt=system_prompt,
                        temperature=self._temperature,
                        max_tokens=self._max_tokens,
                        metadata={
                            "trace_id": trace_id,
                            "module": PLAN_MODULE,
                            "version": self._version,
                            "attempt": attempt,
                            "user_id": user_id,
                        },
                    )
                )
            except (RuntimeError, ValueError) as exc:
                raise PlanningError(str(exc)) from exc
            finally:
                plan_span.end()
                log_event(
                    "span.end",
                    trace_id=trace_id,
                    span=plan_span,
                    usage=normalize_usage(resp.usage) if resp is not None else None,
                )

            try:
                obj = extract_json_object(resp.output_text)
            except LLMParseError as exc:
                last_error = exc
            else:
                if "error" in obj and "actions" not in obj:
                    # The model declined; repairing would only invent a plan.
                    log_event("workflow.plan.declined", trace_id=trace_id, reason=obj["error"])
                    raise PlanningError(str(obj["error"]))
                try:
                    plan = AutomationPlan.model_validate(obj)
                except ValidationError as exc:
                    last_error = exc
                else:
                    log_event("workflow.plan.ok", trace_id=trace_id, actions=len(plan.actions))
                    return plan

            log_event(
                "workflow.plan.invalid",
                trace_id=trace_id,
                attempt=attempt,
                error=str(last_error),
                raw_output=resp.output_text,
            )
            if attempt >= self._max_retries:
                break
            current_prompt = build_repair_prompt(
                original_prompt=safe_user_request,
                invalid_output_text=resp.output_text,
                error_message=str(last_error),
                attempt=attempt,
                max_retries=self._max_retries,
            )

        raise PlanningError(f"Failed to parse automation plan: {last_error}")
