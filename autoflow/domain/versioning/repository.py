# ============================================================
# DB access layer
# ============================================================
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from autoflow.core.errors import VersionNotFoundError
from autoflow.db.base import utcnow
from autoflow.domain.versioning.entities import WorkflowVersion
from autoflow.domain.versioning.history import payload_size, prune_versions
from autoflow.domain.versioning.models import WorkflowVersionRecord


class VersionRepository:
    """Persists workflow versions.

    Version numbers grow monotonically per automation and at most one version
    per automation is active at any time.
    """

    def __init__(self, db: Session):
        self.db = db

    def _record(self, version_id: str) -> WorkflowVersionRecord:
        record = self.db.get(WorkflowVersionRecord, version_id)
        if record is None:
            raise VersionNotFoundError(f"Version {version_id} not found")
        return record

    def _next_number(self, automation_id: str) -> int:
        current = self.db.execute(
            select(func.max(WorkflowVersionRecord.version_number)).where(
                WorkflowVersionRecord.automation_id == automation_id
            )
        ).scalar_one()
        return (current or 0) + 1

    def create(
            self,
            automation_id: str,
            prompt: str,
            plan: Any,
            config: Any,
            created_by: str,
            change_note: str | None = None,
            is_snapshot: bool = False,
            activate: bool = False,
    ) -> WorkflowVersion:
        record = WorkflowVersionRecord(
            automation_id=automation_id,
            version_number=self._next_number(automation_id),
            prompt=prompt,
            plan=plan,
            config=config,
            created_at=utcnow(),
            created_by=created_by,
            change_note=change_note,
            is_active=False,
            is_snapshot=is_snapshot,
            size=payload_size(prompt, plan, config),
        )
        self.db.add(record)
        self.db.commit()
        if activate:
            return self.activate(record.version_id)
        self.db.refresh(record)
        return WorkflowVersion.model_validate(record)

    def add(self, version: WorkflowVersion) -> WorkflowVersion:
        """Persist an imported version under the next free number."""
        return self.create(
            automation_id=version.automation_id,
            prompt=version.prompt,
            plan=version.plan,
            config=version.config,
            created_by=version.created_by,
            change_note=version.change_note,
            is_snapshot=version.is_snapshot,
        )

    def get(self, version_id: str) -> WorkflowVersion:
        return WorkflowVersion.model_validate(self._record(version_id))

    def history(self, automation_id: str) -> list[WorkflowVersion]:
        """Versions of an automation, newest first."""
        rows = self.db.execute(
            select(WorkflowVersionRecord)
            .where(WorkflowVersionRecord.automation_id == automation_id)
            .order_by(WorkflowVersionRecord.version_number.desc())
        ).scalars()
        return [WorkflowVersion.model_validate(r) for r in rows]

    def get_active(self, automation_id: str) -> WorkflowVersion | None:
        record = self.db.execute(
            select(WorkflowVersionRecord).where(
                WorkflowVersionRecord.automation_id == automation_id,
                WorkflowVersionRecord.is_active.is_(True),
            )
        ).scalars().first()
        return WorkflowVersion.model_validate(record) if record else None

    def activate(self, version_id: str) -> WorkflowVersion:
        record = self._record(version_id)
        self.db.execute(
            update(WorkflowVersionRecord)
            .where(WorkflowVersionRecord.automation_id == record.automation_id)
            .values(is_active=WorkflowVersionRecord.version_id == version_id)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        self.db.expire_all()
        return self.get(version_id)

    def prune(self, automation_id: str, keep_count: int = 10) -> list[str]:
        """Delete versions beyond ``keep_count``; snapshots and the active version stay."""
        versions = self.history(automation_id)
        keep = {v.version_id for v in prune_versions(versions, keep_count)}
        removed = [v.version_id for v in versions if v.version_id not in keep and not v.is_active]
        for version_id in removed:
            self.db.delete(self._record(version_id))
        self.db.commit()
        return removed
