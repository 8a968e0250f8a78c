from __future__ import annotations

import json
from pathlib import Path

import pytest


def write_field_data(folder: Path, record: dict) -> Path:
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / "field-data.json"
    path.write_text(json.dumps(record), encoding="utf-8")
    return path


def read_json(path: Path):
    return json.loads(path.read_text(encoding="utf-8"))


@pytest.fixture
def dataset_root(tmp_path: Path) -> Path:
    root = tmp_path / "customer-42"
    root.mkdir()
    write_field_data(
        root / "20250101",
        {"x_soil_moisture": {"date": "2025-01-01", "values": [1, 2]}, "rain": {"date": "2025-01-01"}},
    )
    write_field_data(root / "20250102", {"x12_34": {"date": "2025-01-02", "unit": "mm"}})
    (root / "20250103").mkdir()
    (root / "notes").mkdir()
    (root / "20250104.txt").write_text("not a folder", encoding="utf-8")
    return root
