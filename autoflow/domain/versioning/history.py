"""Pure helpers over lists of workflow versions."""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from typing import Any

from .entities import StorageUsage, VersionDiff, WorkflowVersion

_MISSING = object()


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def payload_size(prompt: str, plan: Any, config: Any) -> int:
    return len(json.dumps({"prompt": prompt, "plan": plan, "config": config}, default=str))


def create_version(
    automation_id: str,
    version_number: int,
    prompt: str,
    plan: Any,
    config: Any,
    user_id: str,
    change_note: str | None = None,
    is_snapshot: bool = False,
) -> WorkflowVersion:
    return WorkflowVersion(
        version_id=str(uuid.uuid4()),
        automation_id=automation_id,
        version_number=version_number,
        prompt=prompt,
        plan=plan,
        config=config,
        created_at=_now(),
        created_by=user_id,
        change_note=change_note,
        is_active=False,
        is_snapshot=is_snapshot,
        size=payload_size(prompt, plan, config),
    )


def _compare_objects(old: Any, new: Any, path: str) -> list[VersionDiff]:
    diffs: list[VersionDiff] = []
    old = old if isinstance(old, dict) else {}
    new = new if isinstance(new, dict) else {}

    for key in list(old) + [k for k in new if k not in old]:
        field = f"{path}.{key}"
        a = old.get(key, _MISSING)
        b = new.get(key, _MISSING)
        if a is _MISSING:
            diffs.append(VersionDiff(field, None, b, "added"))
        elif b is _MISSING:
            diffs.append(VersionDiff(field, a, None, "removed"))
        elif isinstance(a, dict) and isinstance(b, dict):
            diffs.extend(_compare_objects(a, b, field))
        elif a != b:
            diffs.append(VersionDiff(field, a, b, "modified"))
    return diffs


def compare_versions(version_a: WorkflowVersion, version_b: WorkflowVersion) -> list[VersionDiff]:
    diffs: list[VersionDiff] = []

    if version_a.prompt != version_b.prompt:
        diffs.append(VersionDiff("Prompt", version_a.prompt, version_b.prompt, "modified"))

    if _canonical(version_a.plan) != _canonical(version_b.plan):
        diffs.append(VersionDiff("Plan", version_a.plan, version_b.plan, "modified"))

    if _canonical(version_a.config) != _canonical(version_b.config):
        diffs.extend(_compare_objects(version_a.config, version_b.config, "config"))

    return diffs


def get_version_history(versions: list[WorkflowVersion]) -> list[WorkflowVersion]:
    """Newest first."""
    return sorted(versions, key=lambda v: (v.created_at, v.version_number), reverse=True)


def get_active_version(versions: list[WorkflowVersion]) -> WorkflowVersion | None:
    return next((v for v in versions if v.is_active), None)


def activate_version(versions: list[WorkflowVersion], version_id: str) -> list[WorkflowVersion]:
    return [v.model_copy(update={"is_active": v.version_id == version_id}) for v in versions]


def prune_versions(versions: list[WorkflowVersion], keep_count: int = 10) -> list[WorkflowVersion]:
    """Keep every snapshot plus the newest regular versions up to ``keep_count`` in total."""
    ordered = get_version_history(versions)
    snapshots = [v for v in ordered if v.is_snapshot]
    regular = [v for v in ordered if not v.is_snapshot][: max(0, keep_count - len(snapshots))]
    return snapshots + regular


def export_version(version: WorkflowVersion) -> str:
    data = version.model_dump(mode="json")
    data["exported_at"] = _now().isoformat()
    return json.dumps(data, indent=2)


def import_version(raw: str, automation_id: str, user_id: str) -> WorkflowVersion:
    """Rebuild a version from an export, re-homed to ``automation_id`` and inactive."""
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("Export must be a JSON object")
    data.pop("exported_at", None)
    data.update(
        version_id=str(uuid.uuid4()),
        automation_id=automation_id,
        created_at=_now(),
        created_by=user_id,
        is_active=False,
    )
    return WorkflowVersion.model_validate(data)


def get_changelog(versions: list[WorkflowVersion]) -> list[str]:
    return [
        f"v{v.version_number} ({v.created_at.date().isoformat()}): {v.change_note}"
        for v in get_version_history(versions)
        if v.change_note
    ]


def calculate_storage_used(versions: list[WorkflowVersion]) -> StorageUsage:
    by_version = {f"v{v.version_number}": v.size for v in versions}
    return StorageUsage(total=sum(v.size for v in versions), by_version=by_version)
