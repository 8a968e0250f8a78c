from __future__ import annotations

import errno
import json
import logging
import os
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

from date_mapper import MappingEntry, compute_mapping, is_date_folder_name
from field_data import FIELD_DATA_FILENAME, COLLISION_POLICIES, find_collisions, rewrite_field_data_file
from migration_journal import (
    PHASE_DONE,
    PHASE_PENDING,
    PHASE_QUARANTINED,
    PHASE_SKIPPED,
    load_journal,
    mapping_from_journal,
    new_journal,
    remove_journal,
    save_journal,
    set_phase,
)
from redate_errors import (
    DirectoryNotFoundError,
    JournalMismatchError,
    KeyCollisionError,
    NoDateFoldersError,
)

MANIFEST_FILENAME = "dates.json"
QUARANTINE_PREFIX = "temp_"

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RewriteResult:
    mapping: list[MappingEntry]
    manifest_path: Path
    resumed: bool = False
    renamed: int = 0
    rewritten: int = 0
    keys_fixed: int = 0
    skipped: list[str] = field(default_factory=list)


def validate_root(root: Path | str) -> Path:
    # Symlinks are not followed: the root keeps the caller's last segment.
    path = Path(os.path.abspath(root))
    if not path.exists():
        raise DirectoryNotFoundError(f"Directory does not exist: {path}")
    if not path.is_dir():
        raise NotADirectoryError(f"Not a directory: {path}")
    return path


def discover_date_folders(root: Path) -> list[str]:
    folders = [
        entry.name for entry in sorted(root.iterdir()) if entry.is_dir() and is_date_folder_name(entry.name)
    ]
    if not folders:
        raise NoDateFoldersError(f"No date folders (8-digit format like 20250101) found in {root}")
    return folders


def quarantine_name(folder: str) -> str:
    # The prefix keeps quarantine names outside the 8-digit namespace.
    return f"{QUARANTINE_PREFIX}{folder}"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_manifest(root: Path, dates: list[str]) -> dict[str, Any]:
    return {
        "dates": list(dates),
        "last_updated": utc_timestamp(),
        "customer_id": root.name,
        "total_dates": len(dates),
    }


def write_manifest(root: Path, dates: list[str]) -> Path:
    path = root / MANIFEST_FILENAME
    path.write_text(json.dumps(build_manifest(root, dates), indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def unfinished_journal(root: Path, end_date: date) -> dict[str, Any] | None:
    """Return the journal of an interrupted run that can be resumed with ``end_date``.

    A journal recorded for another end date raises ``JournalMismatchError``.
    """
    journal = load_journal(root)
    if journal is None:
        return None
    if journal.get("end_date") != end_date.isoformat():
        raise JournalMismatchError(
            f"An unfinished run for end date {journal.get('end_date')} exists in {root}; "
            f"finish it with that end date or discard the journal (--discard-journal)"
        )
    return journal


def _resumable_journal(root: Path, end_date: date, discard_journal: bool) -> dict[str, Any] | None:
    if discard_journal:
        if load_journal(root) is not None:
            logger.warning("Discarding unfinished journal in %s", root)
            remove_journal(root)
        return None
    return unfinished_journal(root, end_date)


def plan_dataset(root: Path | str, end_date: date, *, use_journal: bool = True) -> list[MappingEntry]:
    """Return the mapping a run would apply, without touching the filesystem."""
    root = validate_root(root)
    journal = unfinished_journal(root, end_date) if use_journal else None
    if journal is not None:
        return mapping_from_journal(journal)
    return compute_mapping(discover_date_folders(root), end_date)


def _current_location(root: Path, entry: MappingEntry, phase: str) -> Path | None:
    if phase == PHASE_PENDING:
        candidates = [root / entry.old_folder]
    elif phase == PHASE_QUARANTINED:
        candidates = [root / quarantine_name(entry.old_folder), root / entry.new_folder]
    else:
        candidates = [root / entry.new_folder]
    for candidate in candidates:
        if candidate.is_dir():
            return candidate
    return None


def _check_key_collisions(root: Path, mapping: list[MappingEntry], journal: dict[str, Any]) -> None:
    for entry, row in zip(mapping, journal["entries"]):
        if row["phase"] in (PHASE_DONE, PHASE_SKIPPED):
            continue
        folder = _current_location(root, entry, row["phase"])
        if folder is None:
            continue
        field_path = folder / FIELD_DATA_FILENAME
        if not field_path.is_file():
            continue
        record = json.loads(field_path.read_text(encoding="utf-8"))
        if not isinstance(record, dict):
            continue
        collisions = find_collisions(list(record))
        if collisions:
            raise KeyCollisionError(field_path, collisions)


def _quarantine(root: Path, mapping: list[MappingEntry], journal: dict[str, Any], result: RewriteResult) -> None:
    for index, entry in enumerate(mapping):
        if journal["entries"][index]["phase"] != PHASE_PENDING:
            continue
        old_path = root / entry.old_folder
        temp_path = root / quarantine_name(entry.old_folder)
        if old_path.is_dir():
            old_path.rename(temp_path)
            logger.info("%s -> %s", entry.old_folder, temp_path.name)
        elif temp_path.is_dir():
            logger.info("%s already quarantined as %s", entry.old_folder, temp_path.name)
        else:
            logger.warning("Skipping %s: folder no longer exists", entry.old_folder)
            result.skipped.append(entry.old_folder)
            set_phase(journal, index, PHASE_SKIPPED)
            save_journal(root, journal)
            continue
        set_phase(journal, index, PHASE_QUARANTINED)
        save_journal(root, journal)


def _finalize(
    root: Path,
    mapping: list[MappingEntry],
    journal: dict[str, Any],
    result: RewriteResult,
    on_collision: str,
) -> None:
    for index, entry in enumerate(mapping):
        if journal["entries"][index]["phase"] != PHASE_QUARANTINED:
            continue
        temp_path = root / quarantine_name(entry.old_folder)
        new_path = root / entry.new_folder
        if temp_path.is_dir():
            if new_path.exists():
                raise FileExistsError(errno.EEXIST, "Target folder already exists", str(new_path))
            temp_path.rename(new_path)
            result.renamed += 1
            logger.info("%s -> %s", temp_path.name, entry.new_folder)
        elif new_path.is_dir():
            # Renamed by an interrupted run before its journal was updated.
            logger.info("%s already renamed to %s", temp_path.name, entry.new_folder)
        else:
            logger.warning("Skipping %s: quarantined folder %s is missing", entry.old_folder, temp_path.name)
            result.skipped.append(entry.old_folder)
            set_phase(journal, index, PHASE_SKIPPED)
            save_journal(root, journal)
            continue

        field_path = new_path / FIELD_DATA_FILENAME
        if field_path.is_file():
            if rewrite_field_data_file(field_path, entry.new_date, on_collision=on_collision):
                result.keys_fixed += 1
            result.rewritten += 1
            logger.info("Updated %s for %s", FIELD_DATA_FILENAME, entry.new_folder)

        set_phase(journal, index, PHASE_DONE)
        save_journal(root, journal)


def rewrite_dataset(
    root: Path | str,
    end_date: date,
    *,
    on_collision: str = "overwrite",
    discard_journal: bool = False,
) -> RewriteResult:
    """Re-date every date folder under ``root`` so they end on ``end_date``.

    Folders are first moved to quarantine names and only then to their final
    names, so a new name may freely equal another folder's old name. Progress
    is journaled; an interrupted run is resumed by calling this again with the
    same end date. Errors propagate and stop the run where it stands.
    """
    if on_collision not in COLLISION_POLICIES:
        raise ValueError(f"Unknown collision policy: {on_collision}")

    root = validate_root(root)
    journal = _resumable_journal(root, end_date, discard_journal)
    resumed = journal is not None
    if journal is None:
        mapping = compute_mapping(discover_date_folders(root), end_date)
        journal = new_journal(mapping, end_date)
    else:
        mapping = mapping_from_journal(journal)
        logger.info("Resuming unfinished run for end date %s", journal["end_date"])

    if on_collision == "error":
        _check_key_collisions(root, mapping, journal)

    result = RewriteResult(mapping=mapping, manifest_path=root / MANIFEST_FILENAME, resumed=resumed)
    save_journal(root, journal)

    _quarantine(root, mapping, journal, result)
    _finalize(root, mapping, journal, result, on_collision)

    result.manifest_path = write_manifest(root, [entry.new_folder for entry in mapping])
    remove_journal(root)
    return result
