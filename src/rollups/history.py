# ABOUTME: Loads stored attempt histories from JSON, history-API envelopes, or JSON Lines.
# ABOUTME: Keeps file handling out of the pure rollup engine and writes compacted histories back.

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List


def _rows_from_payload(payload: Any, path: Path) -> List[Dict[str, Any]]:
    if isinstance(payload, dict) and isinstance(payload.get("rows"), list):
        payload = payload["rows"]
    if not isinstance(payload, list):
        raise ValueError(f"Expected a JSON array or an object with 'rows' in {path}.")
    return [row for row in payload if isinstance(row, dict)]


def load_attempts(path: Path) -> List[Dict[str, Any]]:
    """
    Read attempt records from disk.

    Accepts a JSON array, an object with a ``rows`` array, or JSON Lines.
    Non-object rows are skipped.
    """

    text = Path(path).read_text(encoding="utf-8")
    if not text.strip():
        return []
    try:
        return _rows_from_payload(json.loads(text), path)
    except json.JSONDecodeError:
        pass

    rows: List[Dict[str, Any]] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            row = json.loads(line)
        except json.JSONDecodeError as exc:
            raise ValueError(f"{path}:{lineno}: not valid JSON or JSON Lines ({exc.msg}).") from exc
        if isinstance(row, dict):
            rows.append(row)
    return rows


def write_attempts(rows: List[Dict[str, Any]], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(rows, indent=2, ensure_ascii=False), encoding="utf-8")
