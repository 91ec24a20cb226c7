"""Natural-language automation planning."""
from .entities import (
    AutomationAction,
    AutomationAnalysis,
    AutomationPlan,
    ApprovalSettings,
    PlanCondition,
)
from .parsing import extract_json_object
from .plan_diff import PlanDiff, DiffablePlan, compute_plan_diff, plan_to_diffable, format_plan_for_review
from .llm_plan_generator import LLMPlanGenerator
from .analyzer import AutomationAnalyzer
from .api_key_advisor import ApiKeyAdvisor, get_default_instructions
