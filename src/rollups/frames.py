# ABOUTME: Converts rollup results into pandas tables and writes report artifacts.
# ABOUTME: Emits parquet files plus a JSON summary consumed by dashboards and notebooks.

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Dict

import pandas as pd

from src.common.schemas import RollupResult

TREND_COLUMNS = ["day", "avg"]
METRIC_COLUMNS = ["metric", "label", "day", "avg"]
PHONEME_COLUMNS = ["ipa", "count", "avg", "days", "priority", "examples", "low_count"]
WORD_COLUMNS = ["word", "count", "avg", "days", "priority"]
SESSION_COLUMNS = ["session_id", "passage_key", "count", "avg_score", "ts_min", "ts_max", "has_ai"]


def _frame(rows, columns) -> pd.DataFrame:
    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows, columns=columns)


def rollup_to_frames(result: RollupResult) -> Dict[str, pd.DataFrame]:
    """Tabulate each list-shaped part of a rollup; empty parts keep their columns."""

    metric_rows = [
        {"metric": key, "label": metric.label, "day": point.day, "avg": point.avg}
        for key, metric in result.metrics.items()
        for point in metric.trend
    ]
    sessions = _frame([asdict(s) for s in result.sessions], SESSION_COLUMNS)
    if not sessions.empty:
        sessions["started_at"] = pd.to_datetime(sessions["ts_min"], unit="ms", utc=True)
        sessions["ended_at"] = pd.to_datetime(sessions["ts_max"], unit="ms", utc=True)

    return {
        "trend": _frame([asdict(p) for p in result.trend], TREND_COLUMNS),
        "metric_trends": _frame(metric_rows, METRIC_COLUMNS),
        "trouble_phonemes": _frame([asdict(p) for p in result.trouble.phonemes_all], PHONEME_COLUMNS),
        "trouble_words": _frame([asdict(w) for w in result.trouble.words_all], WORD_COLUMNS),
        "sessions": sessions,
    }


def export_rollup(result: RollupResult, output_dir: Path) -> Dict[str, Path]:
    """Write one parquet per table plus rollup.json; returns the written paths."""

    output_dir.mkdir(parents=True, exist_ok=True)
    written: Dict[str, Path] = {}
    for name, frame in rollup_to_frames(result).items():
        path = output_dir / f"{name}.parquet"
        frame.to_parquet(path, index=False)
        written[name] = path

    summary_path = output_dir / "rollup.json"
    summary_path.write_text(json.dumps(result.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    written["rollup"] = summary_path
    return written
