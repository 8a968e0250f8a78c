from __future__ import annotations

from datetime import date

import pytest

import redate_folders
from conftest import read_json
from date_mapper import compute_mapping
from migration_journal import new_journal, save_journal


def feed_input(monkeypatch, answers):
    replies = iter(answers)
    monkeypatch.setattr("builtins.input", lambda prompt="": next(replies))


def test_non_interactive_run(dataset_root, capsys):
    redate_folders.main(["--root", str(dataset_root), "--end-date", "231025", "--yes"])

    out = capsys.readouterr().out
    assert "Found 3 date folders" in out
    assert "Date Range: 2025-10-21 to 2025-10-23" in out
    assert read_json(dataset_root / "dates.json")["dates"] == ["20251021", "20251022", "20251023"]


def test_prompts_for_missing_inputs(dataset_root, monkeypatch):
    feed_input(monkeypatch, [str(dataset_root), "231025", "y"])

    redate_folders.main([])

    assert (dataset_root / "20251023").is_dir()


def test_cancel_leaves_tree_untouched(dataset_root, monkeypatch, capsys):
    feed_input(monkeypatch, ["no"])

    redate_folders.main(["--root", str(dataset_root), "--end-date", "231025"])

    assert "cancelled" in capsys.readouterr().out
    assert (dataset_root / "20250101").is_dir()
    assert not (dataset_root / "dates.json").exists()


def test_dry_run_lists_mapping_only(dataset_root, capsys):
    redate_folders.main(["--root", str(dataset_root), "--end-date", "231025", "--dry-run"])

    out = capsys.readouterr().out
    assert "20250101 -> 20251021" in out
    assert (dataset_root / "20250101").is_dir()
    assert not (dataset_root / "dates.json").exists()


def test_invalid_end_date_exits_with_message(dataset_root):
    with pytest.raises(SystemExit) as excinfo:
        redate_folders.main(["--root", str(dataset_root), "--end-date", "320125", "--yes"])

    assert "Invalid day" in str(excinfo.value.code)
    assert (dataset_root / "20250101").is_dir()


def test_missing_root_exits_with_message(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        redate_folders.main(["--root", str(tmp_path / "missing"), "--end-date", "231025", "--yes"])

    assert "Directory does not exist" in str(excinfo.value.code)


def test_empty_root_exits_with_message(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        redate_folders.main(["--root", str(tmp_path), "--end-date", "231025", "--yes"])

    assert "No date folders" in str(excinfo.value.code)


def test_strict_keys_flag_reports_collision(dataset_root):
    (dataset_root / "20250103" / "field-data.json").write_text(
        '{"x_rain": {"date": "2025-01-03"}, "rain": {"date": "2025-01-03"}}', encoding="utf-8"
    )

    with pytest.raises(SystemExit) as excinfo:
        redate_folders.main(["--root", str(dataset_root), "--end-date", "231025", "--yes", "--strict-keys"])

    assert "collide" in str(excinfo.value.code)
    assert (dataset_root / "20250103").is_dir()


def test_journal_for_other_end_date_is_reported(dataset_root):
    for name in ("20250101", "20250102", "20250103"):
        (dataset_root / name).rename(dataset_root / f"temp_{name}")
    save_journal(
        dataset_root,
        new_journal(compute_mapping(["20250101", "20250102", "20250103"], date(2025, 1, 31)), date(2025, 1, 31)),
    )

    with pytest.raises(SystemExit) as excinfo:
        redate_folders.main(["--root", str(dataset_root), "--end-date", "231025", "--yes"])

    message = str(excinfo.value.code)
    assert "2025-01-31" in message
    assert "--discard-journal" in message
    assert (dataset_root / "temp_20250101").is_dir()
