"""Workflow version history and rollback."""
from .entities import WorkflowVersion, VersionDiff, StorageUsage
from .history import (
    create_version,
    compare_versions,
    get_version_history,
    get_active_version,
    activate_version,
    prune_versions,
    export_version,
    import_version,
    get_changelog,
    calculate_storage_used,
)
from .repository import VersionRepository
