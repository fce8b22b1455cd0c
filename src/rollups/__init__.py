# ABOUTME: Exposes the practice-attempt rollup engine entrypoints.
# ABOUTME: Groups the orchestrator, options, priority scoring, practice planning, and exporters.

from .config import RollupOptions, load_rollup_config
from .engine import compute_rollups
from .frames import export_rollup, rollup_to_frames
from .next_practice import NextPracticePlan, build_next_practice_plan
from .priority import priority

__all__ = [
    "RollupOptions",
    "load_rollup_config",
    "compute_rollups",
    "export_rollup",
    "rollup_to_frames",
    "NextPracticePlan",
    "build_next_practice_plan",
    "priority",
]
