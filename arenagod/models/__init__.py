from arenagod.models.failure import (
    FailureDetail,
    FailureKind,
    InvalidRegionError,
    KnownError,
    PlayerNotFoundError,
    RateLimitedError,
    StorageError,
    SyncInProgressError,
    TransientApiError,
)
from arenagod.models.match import (
    DEFAULT_REGION,
    REGION_TO_CONTINENT,
    ArenaProgress,
    FetchedMatch,
    ManualOverrides,
    MatchParticipant,
    MatchResult,
    PlayerIdentity,
    Region,
    RiotId,
    SyncOutcome,
    SyncProgress,
    SyncState,
    SyncStrategy,
    parse_region,
    reduce_to_result,
)

__all__ = [
    "ArenaProgress",
    "DEFAULT_REGION",
    "FailureDetail",
    "FailureKind",
    "FetchedMatch",
    "InvalidRegionError",
    "KnownError",
    "ManualOverrides",
    "MatchParticipant",
    "MatchResult",
    "PlayerIdentity",
    "PlayerNotFoundError",
    "REGION_TO_CONTINENT",
    "RateLimitedError",
    "Region",
    "RiotId",
    "StorageError",
    "SyncInProgressError",
    "SyncOutcome",
    "SyncProgress",
    "SyncState",
    "SyncStrategy",
    "TransientApiError",
    "parse_region",
    "reduce_to_result",
]
