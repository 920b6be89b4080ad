from __future__ import annotations

import pytest

from defectstat.defects_io import DefectImportError, load_defects, parse_cost


def test_load_defects_standard_headers(sample_csv):
    result = load_defects(sample_csv)

    assert result.errors == []
    assert result.partial is False
    assert [r.id for r in result.records] == [f"record_{i}" for i in range(6)]
    first = result.records[0]
    assert first.defect_type == "Scratch"
    assert first.severity == "Minor"
    assert first.defect_location == "Panel A"
    assert first.inspection_method == "Visual"
    assert first.repair_cost == 120.5
    assert [r.repair_cost for r in result.records][-1] == 300.0


def test_load_defects_supports_alias_headers(csv_factory):
    path = csv_factory(
        ["Porosity,High,Weld Seam,Ultrasonic,610"],
        header="defect_type, severity, defect_location, inspection_method, repair cost",
    )
    result = load_defects(path)
    assert len(result.records) == 1
    assert result.records[0].defect_location == "Weld Seam"
    assert result.records[0].repair_cost == 610.0


def test_missing_headers_are_named(csv_factory):
    path = csv_factory(["Scratch,Minor,Visual,12"], header="Defect Type,Severity,Inspection Method,Repair Cost ($)")
    with pytest.raises(DefectImportError) as excinfo:
        load_defects(path)
    assert "Location" in str(excinfo.value)


def test_invalid_cost_rows_are_skipped_and_reported(csv_factory):
    path = csv_factory(
        [
            "Scratch,Minor,Panel A,Visual,10",
            "Dent,Major,Panel B,Manual,abc",
            "Crack,Critical,Frame,X-Ray,-5",
            "Crack,Critical,Frame,X-Ray,20",
        ]
    )
    result = load_defects(path)

    assert result.partial is True
    assert [r.id for r in result.records] == ["record_0", "record_3"]
    assert result.errors == [
        "Row 3: Invalid repair cost value 'abc'.",
        "Row 4: Invalid repair cost value '-5'.",
    ]


def test_all_rows_invalid_raises(csv_factory):
    path = csv_factory(["Scratch,Minor,Panel A,Visual,n/a"])
    with pytest.raises(DefectImportError, match="Failed to parse any data rows"):
        load_defects(path)


def test_header_only_file_raises(csv_factory):
    path = csv_factory([])
    with pytest.raises(DefectImportError):
        load_defects(path)


def test_currency_formatted_costs(csv_factory):
    path = csv_factory(['Scratch,Minor,Panel A,Visual,"$1,250.50"'])
    result = load_defects(path)
    assert result.records[0].repair_cost == 1250.5


def test_parse_cost():
    assert parse_cost("42") == 42.0
    assert parse_cost(" $3,000 ") == 3000.0
    assert parse_cost("") is None
    assert parse_cost("nan") is None
    assert parse_cost("-1") is None
    assert parse_cost(None) is None


def test_rows_with_extra_columns_are_skipped(csv_factory):
    path = csv_factory(
        [
            "Scratch,Minor,Panel A,Visual,10",
            "Dent,Major,Panel B,Manual,20,extra",
            "Crack,Critical,Frame,X-Ray,30",
        ]
    )
    result = load_defects(path)

    assert [r.id for r in result.records] == ["record_0", "record_2"]
    assert [r.repair_cost for r in result.records] == [10.0, 30.0]
    assert result.errors == ["Row 3: Incorrect number of columns. Expected 5, got 6."]


def test_first_data_row_with_extra_columns_does_not_shift_columns(csv_factory):
    path = csv_factory(
        [
            "Scratch,Minor,Panel A,Visual,10,extra",
            "Dent,Major,Panel B,Manual,20",
        ]
    )
    result = load_defects(path)

    assert [r.id for r in result.records] == ["record_1"]
    assert result.records[0].defect_type == "Dent"
    assert result.records[0].repair_cost == 20.0
    assert result.errors == ["Row 2: Incorrect number of columns. Expected 5, got 6."]


def test_short_rows_are_rejected_even_when_cost_is_present(csv_factory):
    path = csv_factory(
        ["10,Scratch,Minor,Panel A,Visual", "20,Dent"],
        header="Repair Cost ($),Defect Type,Severity,Location,Inspection Method",
    )
    result = load_defects(path)

    assert [r.id for r in result.records] == ["record_0"]
    assert result.records[0].defect_type == "Scratch"
    assert result.errors == ["Row 3: Incorrect number of columns. Expected 5, got 2."]


def test_only_malformed_rows_raises_with_first_error(csv_factory):
    path = csv_factory(["Scratch,Minor,Panel A"])
    with pytest.raises(DefectImportError, match="Row 2: Incorrect number of columns. Expected 5, got 3."):
        load_defects(path)
