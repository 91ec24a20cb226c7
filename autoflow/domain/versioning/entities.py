from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class WorkflowVersion(BaseModel):
    """Snapshot of an automation's prompt, plan and config."""

    model_config = ConfigDict(from_attributes=True)

    version_id: str
    automation_id: str
    version_number: int = Field(ge=1)
    prompt: str = ""
    plan: Any = None
    config: Any = None
    created_at: datetime
    created_by: str
    change_note: str | None = None
    is_active: bool = False
    is_snapshot: bool = False
    size: int = 0


@dataclass(frozen=True)
class VersionDiff:
    field: str
    old_value: Any
    new_value: Any
    type: Literal["added", "removed", "modified"]


@dataclass(frozen=True)
class StorageUsage:
    total: int
    by_version: dict[str, int]
