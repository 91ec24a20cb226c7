# --------------------------------
# DI container
# --------------------------------
from functools import lru_cache

from autoflow.clients.activepieces import ActivePiecesClient
from autoflow.config import Settings, settings
from autoflow.db.connection import SessionLocal
from autoflow.domain.approval import ApprovalPoller
from autoflow.domain.plans import ApiKeyAdvisor, AutomationAnalyzer, LLMPlanGenerator
from autoflow.domain.prompt_store import FilesystemPromptStore
from autoflow.domain.retry import RetryingExecutor
from autoflow.domain.summaries import ExecutionSummarizer
from autoflow.domain.webhooks import FixedWindowRateLimiter
from autoflow.llm import GroqChatLLMClient
from autoflow.runtime.orchestrator import AutomationOrchestrator, RetryingAutomationRunner
from autoflow.session import FileTokenStore, SessionManager


class Container:
    def __init__(self, config: Settings = settings):
        self.settings = config

        self.session = SessionManager(
            FileTokenStore(config.token_store_path),
            check_interval_s=config.session_check_interval_s,
        )
        self.activepieces = ActivePiecesClient.from_settings(config, session=self.session)

        # Planning features answer 400 until a Groq key is configured.
        llm = GroqChatLLMClient.from_settings(config) if config.groq_api_key.strip() else None
        prompt_store = FilesystemPromptStore()
        self.planner = LLMPlanGenerator(llm=llm, prompt_store=prompt_store)
        self.analyzer = AutomationAnalyzer(llm=llm, prompt_store=prompt_store)
        self.api_key_advisor = ApiKeyAdvisor(llm=llm, prompt_store=prompt_store)
        self.summarizer = ExecutionSummarizer(llm=llm, prompt_store=prompt_store)

        self.runner = RetryingAutomationRunner(self.activepieces, RetryingExecutor())
        self.orchestrator = AutomationOrchestrator(
            planner=self.planner,
            client=self.activepieces,
            runner=self.runner,
        )
        self.rate_limiter = FixedWindowRateLimiter(
            limit=config.webhook_rate_limit,
            window_s=config.webhook_rate_window_s,
        )
        self.approval_poller = ApprovalPoller(
            session_factory=SessionLocal,
            runner=self.runner,
            interval_s=config.approval_poll_interval_s,
        )


@lru_cache
def get_container() -> Container:
    return Container()
