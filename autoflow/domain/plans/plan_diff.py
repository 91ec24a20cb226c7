"""Plan diffing and review formatting.

Plans are compared in a "diffable" shape: triggers and actions are lists of
``{"type": ..., "config": {...}}`` items. Two items are the same when their
type matches and their configs serialize to the same canonical JSON.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from .entities import AutomationPlan

NO_CHANGES_SUMMARY = 'No changes detected (automation already current)'


@dataclass(frozen=True)
class DiffablePlan:
    name: str
    description: str = ''
    triggers: list[dict[str, Any]] = field(default_factory=list)
    actions: list[dict[str, Any]] = field(default_factory=list)
    approval: dict[str, Any] | None = None


@dataclass(frozen=True)
class PlanDiff:
    old_plan: DiffablePlan
    new_plan: DiffablePlan
    name_changed: bool
    description_changed: bool
    triggers_added: list[dict[str, Any]]
    triggers_removed: list[dict[str, Any]]
    actions_added: list[dict[str, Any]]
    actions_removed: list[dict[str, Any]]
    approval_settings_changed: bool
    has_major_changes: bool
    readable_summary: str

    @property
    def is_empty(self) -> bool:
        return self.readable_summary == NO_CHANGES_SUMMARY


def _canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(',', ':'), default=str)


def _same_item(a: dict[str, Any], b: dict[str, Any]) -> bool:
    return a.get('type') == b.get('type') and _canonical(a.get('config')) == _canonical(b.get('config'))


def _missing_from(items: list[dict[str, Any]], others: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [item for item in items if not any(_same_item(item, other) for other in others)]


def plan_to_diffable(plan: AutomationPlan) -> DiffablePlan:
    return DiffablePlan(
        name=plan.name,
        description=plan.description,
        triggers=[{'type': plan.trigger, 'config': plan.trigger_config}],
        actions=[{'type': a.qualified_name, 'config': a.config} for a in plan.actions],
        approval=plan.approval.model_dump() if plan.approval else None,
    )


def compute_plan_diff(old_plan: DiffablePlan, new_plan: DiffablePlan) -> PlanDiff:
    triggers_added = _missing_from(new_plan.triggers, old_plan.triggers)
    triggers_removed = _missing_from(old_plan.triggers, new_plan.triggers)
    actions_added = _missing_from(new_plan.actions, old_plan.actions)
    actions_removed = _missing_from(old_plan.actions, new_plan.actions)

    name_changed = old_plan.name != new_plan.name
    description_changed = old_plan.description != new_plan.description
    approval_settings_changed = _canonical(old_plan.approval) != _canonical(new_plan.approval)

    has_major_changes = bool(triggers_removed or actions_removed or approval_settings_changed)

    changes: list[str] = []
    if name_changed:
        changes.append(f'Name changed: "{old_plan.name}" -> "{new_plan.name}"')
    if description_changed:
        changes.append('Description updated')
    if triggers_added:
        changes.append(f'Added {len(triggers_added)} trigger(s)')
    if triggers_removed:
        changes.append(f'Removed {len(triggers_removed)} trigger(s)')
    if actions_added:
        changes.append(f'Added {len(actions_added)} action(s)')
    if actions_removed:
        changes.append(f'Removed {len(actions_removed)} action(s)')
    if approval_settings_changed:
        changes.append('Approval settings changed')

    return PlanDiff(
        old_plan=old_plan,
        new_plan=new_plan,
        name_changed=name_changed,
        description_changed=description_changed,
        triggers_added=triggers_added,
        triggers_removed=triggers_removed,
        actions_added=actions_added,
        actions_removed=actions_removed,
        approval_settings_changed=approval_settings_changed,
        has_major_changes=has_major_changes,
        readable_summary='\n'.join(changes) if changes else NO_CHANGES_SUMMARY,
    )


def format_plan_for_review(plan: DiffablePlan) -> str:
    trigger_lines = '\n'.join(
        f"  - {t.get('type')} ({(t.get('config') or {}).get('event') or 'manual'})" for t in plan.triggers
    )
    action_lines = '\n'.join(f"  - {a.get('type')}" for a in plan.actions)
    approval_required = bool(plan.approval and plan.approval.get('require_approval'))
    return (
        f'**{plan.name}**\n'
        f'{plan.description}\n\n'
        f'**Triggers:** {len(plan.triggers)}\n'
        f'{trigger_lines}\n\n'
        f'**Actions:** {len(plan.actions)}\n'
        f'{action_lines}\n\n'
        f"**Approval Required:** {'Yes' if approval_required else 'No'}"
    )
