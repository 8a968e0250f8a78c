from __future__ import annotations

import json
import logging
import re
from collections import defaultdict
from pathlib import Path
from typing import Any

from redate_errors import KeyCollisionError

FIELD_DATA_FILENAME = "field-data.json"
MARKER_PATTERN = re.compile(r"^(?:x_|x(?=\d))+")
OLD_SEPARATOR = "_"
NEW_SEPARATOR = "-"
COLLISION_POLICIES = ("overwrite", "error")

logger = logging.getLogger(__name__)


def normalize_field_key(key: str) -> str:
    stripped = MARKER_PATTERN.sub("", key, count=1)
    return stripped.replace(OLD_SEPARATOR, NEW_SEPARATOR)


def find_collisions(keys: list[str]) -> dict[str, list[str]]:
    sources: dict[str, list[str]] = defaultdict(list)
    for key in keys:
        sources[normalize_field_key(key)].append(key)
    return {target: originals for target, originals in sources.items() if len(originals) > 1}


def rebuild_field_record(
    record: dict[str, Any],
    new_date: str,
    on_collision: str = "overwrite",
    source: object = "<record>",
) -> dict[str, Any]:
    if on_collision not in COLLISION_POLICIES:
        raise ValueError(f"Unknown collision policy: {on_collision}")

    collisions = find_collisions(list(record))
    if collisions:
        if on_collision == "error":
            raise KeyCollisionError(source, collisions)
        for target, originals in collisions.items():
            logger.warning(
                "Field keys %s in %s all normalize to %r; keeping %r",
                originals,
                source,
                target,
                originals[-1],
            )

    rebuilt: dict[str, Any] = {}
    for key, value in record.items():
        if isinstance(value, dict) and value.get("date"):
            value = {**value, "date": new_date}
        rebuilt[normalize_field_key(key)] = value
    return rebuilt


def rewrite_field_data_file(path: Path, new_date: str, on_collision: str = "overwrite") -> bool:
    """Set every field's date and normalize field keys in place.

    Returns True when at least one key was renamed.
    """
    record = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(record, dict):
        raise ValueError(f"Expected a JSON object in {path}")

    rebuilt = rebuild_field_record(record, new_date, on_collision=on_collision, source=path)
    path.write_text(json.dumps(rebuilt, ensure_ascii=False, separators=(",", ":")), encoding="utf-8")
    return any(normalize_field_key(key) != key for key in record)
