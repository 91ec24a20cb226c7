from pydantic import ValidationError

from autoflow.core.errors import LLMParseError, PlanningError
from autoflow.domain.policies import sanitize_user_text
from autoflow.domain.prompt_store import PromptStore
from autoflow.llm.base import LLMClient, LLMRequest
from autoflow.observability.tracing import log_event

from .entities import AutomationAnalysis
from .parsing import extract_json_object


class AutomationAnalyzer:
    """Asks the model for risks and improvements of a described automation."""

    def __init__(self, *, llm: LLMClient | None, prompt_store: PromptStore, version: str = "v1") -> None:
        self._llm = llm
        self._prompt_store = prompt_store
        self._version = version

    async def analyze(self, description: str) -> AutomationAnalysis:
        if self._llm is None:
            raise PlanningError("Groq API key not configured")
        system_prompt = self._prompt_store.get_prompt(
            workflow="automation", module="analyze", version=self._version
        )
        try:
            resp = await self._llm.generate(
                LLMRequest(
                    prompt=sanitize_user_text(description),
                    system_prompt=system_prompt,
                    temperature=0.5,
                    max_tokens=512,
                    metadata={"module": "analyze", "version": self._version},
                )
            )
        except (RuntimeError, ValueError) as exc:
            raise PlanningError("Failed to analyze automation") from exc

        try:
            return AutomationAnalysis.model_validate(extract_json_object(resp.output_text))
        except (LLMParseError, ValidationError) as exc:
            log_event("automation.analyze.invalid", error=str(exc))
            return AutomationAnalysis()
