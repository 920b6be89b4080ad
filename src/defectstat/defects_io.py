from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .models import DefectRecord

logger = logging.getLogger(__name__)

# Canonical field -> (display header, accepted aliases)
HEADER_ALIASES: Dict[str, Sequence[str]] = {
    "defect_type": ("Defect Type", "defect_type"),
    "severity": ("Severity", "severity"),
    "defect_location": ("Location", "defect_location"),
    "inspection_method": ("Inspection Method", "inspection_method"),
    "repair_cost": ("Repair Cost ($)", "repair_cost", "repair cost"),
}

CATEGORICAL_FIELDS: Sequence[str] = ("defect_type", "severity", "defect_location", "inspection_method")

_OVERLONG_ROW_MARKER = "\x00overlong-row:"


class DefectImportError(ValueError):
    """Raised when a defect CSV cannot be turned into any records."""


@dataclass
class ImportResult:
    records: List[DefectRecord]
    errors: List[str] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.errors) and bool(self.records)


def _match_columns(columns: Sequence[str]) -> Dict[str, int]:
    lookup: Dict[str, int] = {}
    for position, col in enumerate(columns):
        lookup.setdefault(str(col).strip().lower(), position)
    matched: Dict[str, int] = {}
    for field_name, aliases in HEADER_ALIASES.items():
        for alias in aliases:
            position = lookup.get(alias.strip().lower())
            if position is not None:
                matched[field_name] = position
                break
    return matched


def _keep_bad_line(fields: List[str]) -> List[str]:
    # Overlong rows stay in place as a single marker cell carrying their width.
    return [f"{_OVERLONG_ROW_MARKER}{len(fields)}"]


def _field_count(row: Sequence[object]) -> int:
    first = row[0] if row else None
    if isinstance(first, str) and first.startswith(_OVERLONG_ROW_MARKER):
        return int(first[len(_OVERLONG_ROW_MARKER):])
    return sum(1 for value in row if not pd.isna(value))


def parse_cost(value: object) -> Optional[float]:
    if value is None:
        return None
    text = str(value).replace("$", "").replace(",", "").strip()
    if not text:
        return None
    try:
        numeric = float(text)
    except ValueError:
        return None
    if not math.isfinite(numeric) or numeric < 0:
        return None
    return numeric


def records_from_frame(df: pd.DataFrame) -> ImportResult:
    """Map a raw CSV frame onto :class:`DefectRecord` rows.

    Rows with the wrong number of fields or an unusable repair cost are
    skipped and reported; ids keep the original data-row index so they stay
    stable across partial imports.
    """

    header = [str(col) for col in df.columns]
    matched = _match_columns(header)
    missing = [aliases[0] for key, aliases in HEADER_ALIASES.items() if key not in matched]
    if missing:
        expected = ", ".join(f'"{aliases[0]}"' for aliases in HEADER_ALIASES.values())
        raise DefectImportError(
            f"Missing required CSV headers: {', '.join(missing)}. Expected columns: {expected}."
        )

    width = len(header)
    records: List[DefectRecord] = []
    errors: List[str] = []
    for index, row in enumerate(df.itertuples(index=False, name=None)):
        line_no = index + 2
        got = _field_count(row)
        if got != width:
            errors.append(f"Row {line_no}: Incorrect number of columns. Expected {width}, got {got}.")
            continue
        values = {key: str(row[position]).strip() for key, position in matched.items()}
        raw_cost = values["repair_cost"]
        cost = parse_cost(raw_cost)
        if cost is None:
            errors.append(f"Row {line_no}: Invalid repair cost value '{raw_cost}'.")
            continue
        records.append(
            DefectRecord(
                id=f"record_{index}",
                defect_type=values["defect_type"],
                severity=values["severity"],
                defect_location=values["defect_location"],
                inspection_method=values["inspection_method"],
                repair_cost=cost,
            )
        )

    if errors and not records:
        raise DefectImportError(f"Failed to parse any data rows. First error: {errors[0]}")
    for message in errors:
        logger.warning(message)
    return ImportResult(records=records, errors=errors)


def load_defects(path: str | Path) -> ImportResult:
    """Read a defect CSV export into records."""

    csv_path = Path(path)
    try:
        raw = pd.read_csv(
            csv_path,
            header=None,
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
            engine="python",
            on_bad_lines=_keep_bad_line,
        )
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as exc:
        raise DefectImportError(f"Unable to read {csv_path}: {exc}") from exc
    if len(raw.index) < 2:
        raise DefectImportError("CSV must have a header and at least one data row.")
    body = raw.iloc[1:].reset_index(drop=True)
    body.columns = [str(value).strip() for value in raw.iloc[0]]
    result = records_from_frame(body)
    logger.info("Loaded %d defect records from %s", len(result.records), csv_path.name)
    return result


__all__ = [
    "CATEGORICAL_FIELDS",
    "HEADER_ALIASES",
    "DefectImportError",
    "ImportResult",
    "load_defects",
    "parse_cost",
    "records_from_frame",
]
