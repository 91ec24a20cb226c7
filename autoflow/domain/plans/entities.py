"""Plan models.

A plan is what the planner model proposes for a described automation, before
anything is persisted in ActivePieces.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class AutomationAction(BaseModel):
    """One step executed when the trigger fires."""

    model_config = ConfigDict(extra='ignore')

    service: str = Field(min_length=1, description='ActivePieces piece name, e.g. slack.')
    action: str = Field(min_length=1, description='Action name within the piece, e.g. send_message.')
    config: dict[str, Any] = Field(default_factory=dict)

    @property
    def qualified_name(self) -> str:
        return f'{self.service}.{self.action}'


class PlanCondition(BaseModel):
    field: str
    operator: str
    value: Any = None


class ApprovalSettings(BaseModel):
    """Human-in-the-loop gate configuration attached to a plan."""

    require_approval: bool = False
    approval_timeout_ms: int = Field(default=3_600_000, gt=0)
    approval_channels: list[str] = Field(default_factory=list)
    approval_recipients: list[str] = Field(default_factory=list)


class AutomationPlan(BaseModel):
    """Planner output for a described automation."""

    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    name: str = Field(min_length=1)
    description: str = ''
    trigger: str = Field(min_length=1)
    trigger_config: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices('trigger_config', 'triggerConfig'),
    )
    schedule: str | None = None
    conditions: list[PlanCondition] = Field(default_factory=list)
    filters: list[PlanCondition] = Field(default_factory=list)
    actions: list[AutomationAction] = Field(min_length=1)
    required_auth: list[str] = Field(default_factory=list)
    approval: ApprovalSettings | None = None

    @property
    def requires_approval(self) -> bool:
        return bool(self.approval and self.approval.require_approval)

    def to_flow_payload(self) -> dict[str, Any]:
        """Body accepted by the ActivePieces ``POST /flows`` endpoint."""
        return {
            'name': self.name,
            'trigger': self.trigger,
            'triggerConfig': self.trigger_config,
            'actions': [a.model_dump() for a in self.actions],
        }


class AutomationAnalysis(BaseModel):
    risks: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    estimated_time: str = Field(
        default='Unknown',
        validation_alias=AliasChoices('estimated_time', 'estimatedTime'),
    )
    complexity: Literal['low', 'medium', 'high'] = 'medium'
