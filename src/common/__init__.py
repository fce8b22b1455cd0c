# ABOUTME: Makes the shared common package importable by the rollup engine and scripts.
# ABOUTME: Re-exports schema types and the attempt adapters for convenience.

from .schemas import AttemptView, CompactDetail, RichDetail, RollupResult
from .attempts import resolve_score, to_attempt_view
from .summary import compact_attempt, summarize_assessment

__all__ = [
    "AttemptView",
    "CompactDetail",
    "RichDetail",
    "RollupResult",
    "resolve_score",
    "to_attempt_view",
    "compact_attempt",
    "summarize_assessment",
]
