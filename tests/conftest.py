from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Sequence

import pytest

from defectstat.models import DefectRecord

STANDARD_HEADER = "Defect Type,Severity,Location,Inspection Method,Repair Cost ($)"

SAMPLE_ROWS = [
    "Scratch,Minor,Panel A,Visual,120.50",
    "Dent,Major,Panel B,Manual,450",
    "Scratch,Minor,Panel A,Visual,80",
    "Crack,Critical,Frame,X-Ray,1200",
    "Scratch,Moderate,Panel C,Visual,95.25",
    "Misalignment,Major,Frame,Automated,300",
]


@pytest.fixture
def csv_factory(tmp_path: Path) -> Callable[[Sequence[str], str], Path]:
    def _create(rows: Sequence[str], header: str = STANDARD_HEADER) -> Path:
        path = tmp_path / "defects.csv"
        path.write_text("\n".join([header, *rows]) + "\n", encoding="utf-8")
        return path

    return _create


@pytest.fixture
def sample_csv(csv_factory) -> Path:
    return csv_factory(SAMPLE_ROWS)


@pytest.fixture
def sample_records() -> List[DefectRecord]:
    raw = [
        ("Scratch", "Minor", "Panel A", "Visual", 120.5),
        ("Dent", "Major", "Panel B", "Manual", 450.0),
        ("Scratch", "Minor", "Panel A", "Visual", 80.0),
        ("Crack", "Critical", "Frame", "X-Ray", 1200.0),
    ]
    return [
        DefectRecord(
            id=f"record_{idx}",
            defect_type=defect_type,
            severity=severity,
            defect_location=location,
            inspection_method=method,
            repair_cost=cost,
        )
        for idx, (defect_type, severity, location, method, cost) in enumerate(raw)
    ]
