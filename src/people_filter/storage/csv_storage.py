"""CSV candidate source and result sink."""

import csv
import io
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from loguru import logger

from people_filter.schema import Candidate

PRIORITY_COLUMNS = ("name", "title", "match_rating")


def parse_candidates(text: str) -> list[Candidate]:
    """Rows of a CSV document with a header line; blank lines are skipped."""
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    rows = []
    for row in reader:
        if not any((v or "").strip() for v in row.values() if isinstance(v, str)):
            continue
        rows.append({k: v or "" for k, v in row.items() if k is not None})
    return rows


def read_candidates(path: Path) -> list[Candidate]:
    candidates = parse_candidates(path.read_text(encoding="utf-8-sig"))
    logger.info(f"Read {len(candidates)} candidates from {path}")
    return candidates


def order_columns(records: Sequence[dict[str, Any]]) -> list[str]:
    """``name``, ``title``, ``match_rating`` first when present, then the rest in order."""
    if not records:
        return []
    keys = list(records[0].keys())
    return [c for c in PRIORITY_COLUMNS if c in keys] + [k for k in keys if k not in PRIORITY_COLUMNS]


def render_results(records: Sequence[dict[str, Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=order_columns(records), extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    writer.writerows(records)
    return buffer.getvalue()


def write_results(path: Path, records: Sequence[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_results(records), encoding="utf-8")
    logger.info(f"Results saved to {path} ({len(records)} rows)")
