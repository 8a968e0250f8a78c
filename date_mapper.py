"""Map date-stamped folder names onto a contiguous run of days ending at an end date."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable

import pandas as pd

from redate_errors import EmptyInputError, InvalidDateFormatError

DATE_FOLDER_PATTERN = re.compile(r"^[0-9]{8}$")
END_DATE_PATTERN = re.compile(r"^(?P<day>[0-9]{2})(?P<month>[0-9]{2})(?P<year>[0-9]{2})$")
FOLDER_DATE_FORMAT = "%Y%m%d"
DISPLAY_DATE_FORMAT = "%Y-%m-%d"


@dataclass(slots=True, frozen=True)
class MappingEntry:
    old_folder: str
    new_folder: str
    new_date: str


def is_date_folder_name(name: str) -> bool:
    return DATE_FOLDER_PATTERN.fullmatch(name) is not None


def folder_name(value: date) -> str:
    return value.strftime(FOLDER_DATE_FORMAT)


def display_date(value: date) -> str:
    return value.strftime(DISPLAY_DATE_FORMAT)


def parse_end_date(text: str) -> date:
    """Parse a ``DDMMYY`` end date.

    Only the component ranges are checked. A day past the end of its month
    rolls forward into the following month, so ``310225`` is 2025-03-03.
    """
    match = END_DATE_PATTERN.match(text.strip())
    if not match:
        raise InvalidDateFormatError("Date must be in DDMMYY format (6 digits)")

    day = int(match.group("day"))
    month = int(match.group("month"))
    year = 2000 + int(match.group("year"))

    if not 1 <= day <= 31:
        raise InvalidDateFormatError(f"Invalid day: {day}")
    if not 1 <= month <= 12:
        raise InvalidDateFormatError(f"Invalid month: {month}")
    if not 2000 <= year <= 2099:
        raise InvalidDateFormatError(f"Invalid year: {year}")

    return date(year, month, 1) + timedelta(days=day - 1)


def compute_mapping(existing_folders: Iterable[str], end_date: date) -> list[MappingEntry]:
    folders = sorted(set(existing_folders))
    if not folders:
        raise EmptyInputError("Cannot compute a date mapping without folders")

    # Names are zero-padded YYYYMMDD, so lexicographic order is chronological.
    targets = pd.date_range(end=pd.Timestamp(end_date), periods=len(folders), freq="D")

    mapping: list[MappingEntry] = []
    for old_folder, target in zip(folders, targets):
        target_date = target.date()
        mapping.append(
            MappingEntry(
                old_folder=old_folder,
                new_folder=folder_name(target_date),
                new_date=display_date(target_date),
            )
        )
    return mapping
