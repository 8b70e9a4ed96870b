"""
Progress projection.

Derives champion completion sets from match history. Everything here is
pure: callers persist the results.

Automatic progress (derived from history) and manual overrides (champions
the player marked by hand) are kept as separate sources. The effective
first-place set is their union, so a sync never erases a manual mark and
a manual toggle never rewrites history-derived state.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from arenagod.models.match import ArenaProgress, ManualOverrides, MatchResult

TOP_FOUR_PLACEMENT = 4


def project_progress(history: Iterable[MatchResult]) -> ArenaProgress:
    """
    Recompute progress from the full history.

    Deterministic and idempotent; first-place and top-four sets are
    always subsets of the played set.
    """
    progress = ArenaProgress()
    for match in history:
        progress.played_champions.add(match.champion)
        if match.placement <= TOP_FOUR_PLACEMENT:
            progress.top_four_champions.add(match.champion)
        if match.placement == 1:
            progress.first_place_champions.add(match.champion)
    return progress


def apply_new_matches(progress: ArenaProgress, new_matches: Iterable[MatchResult]) -> ArenaProgress:
    """
    Union newly ingested matches into existing progress.

    Equivalent to recomputation because match detail never changes after
    ingestion. Returns a new ArenaProgress; the input is not modified.
    """
    delta = project_progress(new_matches)
    return ArenaProgress(
        played_champions=progress.played_champions | delta.played_champions,
        first_place_champions=progress.first_place_champions | delta.first_place_champions,
        top_four_champions=progress.top_four_champions | delta.top_four_champions,
    )


def count_first_places(matches: Iterable[MatchResult]) -> int:
    """Number of first-place finishes among the given matches."""
    return sum(1 for m in matches if m.is_first_place)


def toggle_manual_first_place(overrides: ManualOverrides, champion: str) -> ManualOverrides:
    """Flip a champion's manual first-place mark."""
    marked = set(overrides.first_place_champions)
    if champion in marked:
        marked.discard(champion)
    else:
        marked.add(champion)
    return ManualOverrides(first_place_champions=marked)


def effective_first_place(progress: ArenaProgress, overrides: ManualOverrides) -> set[str]:
    """First-place champions from either source."""
    return progress.first_place_champions | overrides.first_place_champions


@dataclass(frozen=True)
class CompletionSummary:
    """Counts used by the tracker view."""

    completed: int
    top_four_only: int
    played_only: int
    total: int | None

    @property
    def completion_percentage(self) -> float | None:
        if not self.total:
            return None
        return self.completed / self.total * 100


def completion_summary(
    progress: ArenaProgress,
    overrides: ManualOverrides | None = None,
    roster: Iterable[str] | None = None,
) -> CompletionSummary:
    """
    Summarize progress into the tracker's three groups.

    A champion is counted in the highest group it reaches: first place,
    then top four, then played.

    Args:
        progress: Automatic progress
        overrides: Manual marks, merged into the first-place group
        roster: Full champion list; enables a completion percentage
    """
    first = effective_first_place(progress, overrides or ManualOverrides())
    top_four_only = progress.top_four_champions - first
    played_only = progress.played_champions - progress.top_four_champions - first
    total = len(set(roster)) if roster is not None else None

    return CompletionSummary(
        completed=len(first),
        top_four_only=len(top_four_only),
        played_only=len(played_only),
        total=total,
    )
