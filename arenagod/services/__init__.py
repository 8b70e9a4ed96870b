from arenagod.services.progress import (
    CompletionSummary,
    apply_new_matches,
    completion_summary,
    count_first_places,
    effective_first_place,
    project_progress,
    toggle_manual_first_place,
)
from arenagod.services.scheduler import (
    BatchFetchScheduler,
    SchedulerConfig,
    batch_delay_for_budget,
    partition,
)
from arenagod.services.sync_engine import (
    SyncConfig,
    SyncEngine,
    build_backfill_windows,
    merge_history,
)

__all__ = [
    "BatchFetchScheduler",
    "CompletionSummary",
    "SchedulerConfig",
    "SyncConfig",
    "SyncEngine",
    "apply_new_matches",
    "batch_delay_for_budget",
    "build_backfill_windows",
    "completion_summary",
    "count_first_places",
    "effective_first_place",
    "merge_history",
    "partition",
    "project_progress",
    "toggle_manual_first_place",
]
