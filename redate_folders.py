#!/usr/bin/env python3
"""
Re-date YYYYMMDD dataset folders so they form a contiguous run of days ending
on a chosen end date, updating each folder's field-data.json and the root
dates.json manifest.

Usage:
    python redate_folders.py --root ./data/customer-42 --end-date 231025
    python redate_folders.py --dry-run
    python redate_folders.py            # prompts for everything
"""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

from date_mapper import display_date, parse_end_date
from dataset_rewriter import (
    discover_date_folders,
    plan_dataset,
    rewrite_dataset,
    unfinished_journal,
    validate_root,
)
from redate_errors import RedateError

DEFAULT_ROOT = os.getenv("REDATE_ROOT", "")
RULE = "=" * 60


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Re-date YYYYMMDD folders into a contiguous run of days ending on an end date."
    )
    parser.add_argument(
        "--root",
        "-r",
        default=DEFAULT_ROOT or None,
        help="Directory holding the date folders (default: $REDATE_ROOT, otherwise prompt).",
    )
    parser.add_argument(
        "--end-date",
        "-e",
        help="End date in DDMMYY format, e.g. 231025 for Oct 23, 2025 (prompted when omitted).",
    )
    parser.add_argument("--yes", "-y", action="store_true", help="Skip the confirmation prompt.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the folder mapping without renaming or rewriting anything.",
    )
    parser.add_argument(
        "--strict-keys",
        action="store_true",
        help="Abort before any change if two field keys normalize to the same key.",
    )
    parser.add_argument(
        "--discard-journal",
        action="store_true",
        help="Ignore an unfinished run's journal instead of resuming it.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log every rename.")
    return parser


def resolve_root(value: str | None) -> Path:
    if value is None:
        value = input("Enter the path to your data folder (or press Enter for current directory): ")
    return validate_root(value.strip() or Path.cwd())


def confirm(prompt: str) -> bool:
    answer = input(prompt).strip().lower()
    return answer in ("yes", "y")


def run(args: argparse.Namespace) -> None:
    root = resolve_root(args.root)

    end_date_text = args.end_date
    if end_date_text is None:
        end_date_text = input("\nEnter end date in DDMMYY format (e.g., 231025 for Oct 23, 2025): ")
    end_date = parse_end_date(end_date_text)

    journal = None if args.discard_journal else unfinished_journal(root, end_date)
    if journal is not None:
        print(f"\nUnfinished run found (end date {journal['end_date']}); it will be resumed.")
    else:
        folders = discover_date_folders(root)
        print(f"\nFound {len(folders)} date folders:")
        for folder in folders:
            print(f"  - {folder}")

    mapping = plan_dataset(root, end_date, use_journal=not args.discard_journal)
    print("\n" + "-" * 60)
    print(f"Working Directory: {root}")
    print(f"End Date: {display_date(end_date)}")
    print(f"Date Range: {mapping[0].new_date} to {mapping[-1].new_date}")
    print(f"Total Days: {len(mapping)}")
    print("-" * 60)

    if args.dry_run:
        for entry in mapping:
            print(f"  {entry.old_folder} -> {entry.new_folder}")
        print("\nDry run: no changes made.")
        return

    if not args.yes and not confirm("\nProceed with update? (yes/no): "):
        print("\nUpdate cancelled by user.")
        return

    result = rewrite_dataset(
        root,
        end_date,
        on_collision="error" if args.strict_keys else "overwrite",
        discard_journal=args.discard_journal,
    )

    print("\n" + RULE)
    print("Cloud data update complete!" + (" (resumed)" if result.resumed else ""))
    print(RULE)
    print(f"Date Range: {result.mapping[0].new_date} to {result.mapping[-1].new_date}")
    print(f"Total Folders: {len(result.mapping)}")
    print(f"Folders renamed: {result.renamed}")
    print(f"Field data files updated: {result.rewritten} ({result.keys_fixed} with fixed field IDs)")
    if result.skipped:
        print(f"Skipped (missing): {', '.join(result.skipped)}")
    print(f"Manifest: {result.manifest_path}")
    print(RULE)


def main(argv: list[str] | None = None) -> None:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        run(args)
    except (RedateError, OSError, ValueError) as exc:
        raise SystemExit(f"Error: {exc}") from None


if __name__ == "__main__":
    main()
