"""Durable record of an in-progress re-dating run.

The journal is written before any folder is renamed and updated after every
phase change, so an interrupted run can be resumed from it instead of from a
fresh directory scan (which would miss folders left under quarantine names).
"""

from __future__ import annotations

import json
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

from date_mapper import MappingEntry

JOURNAL_FILENAME = ".redate-journal.json"

PHASE_PENDING = "pending"
PHASE_QUARANTINED = "quarantined"
PHASE_DONE = "done"
PHASE_SKIPPED = "skipped"
PHASES = (PHASE_PENDING, PHASE_QUARANTINED, PHASE_DONE, PHASE_SKIPPED)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def journal_path(root: Path) -> Path:
    return root / JOURNAL_FILENAME


def new_journal(mapping: list[MappingEntry], end_date: date) -> dict[str, Any]:
    return {
        "status": "running",
        "end_date": end_date.isoformat(),
        "created_at": utc_now_iso(),
        "entries": [
            {
                "old_folder": entry.old_folder,
                "new_folder": entry.new_folder,
                "new_date": entry.new_date,
                "phase": PHASE_PENDING,
            }
            for entry in mapping
        ],
    }


def load_journal(root: Path) -> dict[str, Any] | None:
    path = journal_path(root)
    if not path.exists():
        return None
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict) or not isinstance(payload.get("entries"), list):
        raise ValueError(f"Malformed journal: {path}")
    for row in payload["entries"]:
        if row.get("phase") not in PHASES:
            raise ValueError(f"Unknown phase {row.get('phase')!r} in journal: {path}")
    return payload


def save_journal(root: Path, payload: dict[str, Any]) -> None:
    path = journal_path(root)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    payload["updated_at"] = utc_now_iso()
    tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    tmp_path.replace(path)


def remove_journal(root: Path) -> None:
    journal_path(root).unlink(missing_ok=True)


def mapping_from_journal(payload: dict[str, Any]) -> list[MappingEntry]:
    return [
        MappingEntry(
            old_folder=row["old_folder"],
            new_folder=row["new_folder"],
            new_date=row["new_date"],
        )
        for row in payload["entries"]
    ]


def set_phase(payload: dict[str, Any], index: int, phase: str) -> None:
    payload["entries"][index]["phase"] = phase
