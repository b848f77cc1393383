"""Turns uploaded promotion sheets and JSON rows into ProposedPromotion objects.

Date cells may hold real dates, ISO strings or raw Excel serial numbers; all
of them go through ``coerce_date`` so the import engine only sees
``datetime.date`` values.
"""

from __future__ import annotations

import zipfile
from typing import Any, BinaryIO, Iterable, Mapping, Union

import pandas as pd

from ..common.datetime_utils import coerce_date
from ..common.validators import optional_text, require_int, require_non_empty
from ..core.constants import (
    DEFAULT_IMPORT_MAX_ROWS,
    PROMOTION_SHEET_OPTIONAL_COLUMNS,
    PROMOTION_SHEET_REQUIRED_COLUMNS,
    REMARKS_MAX_LENGTH,
)
from ..core.exceptions import ValidationError
from .model import ProposedPromotion

SheetSource = Union[str, BinaryIO]


def _blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def proposal_from_record(record: Mapping[str, Any], *, row: int) -> ProposedPromotion:
    def cell(name: str) -> Any:
        value = record.get(name)
        return None if _blank(value) else value

    for name in PROMOTION_SHEET_REQUIRED_COLUMNS:
        if cell(name) is None:
            raise ValidationError(f"{name} is required")

    return ProposedPromotion(
        employee_id=require_int(cell("employee_id"), "employee_id", minimum=1),
        to_designation=require_non_empty(str(cell("to_designation")), "to_designation"),
        effective_date=coerce_date(cell("effective_date")),
        level=require_int(cell("level"), "level", minimum=0),
        remarks=optional_text(cell("remarks"), "remarks", max_length=REMARKS_MAX_LENGTH),
        row=row,
    )


def proposals_from_records(
    records: Iterable[Mapping[str, Any]],
    *,
    first_row: int = 1,
) -> tuple[list[ProposedPromotion], list[str]]:
    """Parse every record; bad rows are reported, not raised."""
    proposals: list[ProposedPromotion] = []
    errors: list[str] = []
    for offset, record in enumerate(records):
        row = first_row + offset
        if not isinstance(record, Mapping):
            errors.append(f"Row {row}: expected an object")
            continue
        try:
            proposals.append(proposal_from_record(record, row=row))
        except ValidationError as e:
            errors.append(f"Row {row}: {e}")
    return proposals, errors


def read_promotion_sheet(
    source: SheetSource,
    *,
    max_rows: int = DEFAULT_IMPORT_MAX_ROWS,
) -> tuple[list[ProposedPromotion], list[str]]:
    """Read the first sheet of an .xlsx upload.

    Row numbers in messages match what the user sees in Excel (header is row 1).
    """
    try:
        df = pd.read_excel(source, engine="openpyxl", dtype=object)
    except (ValueError, zipfile.BadZipFile) as e:
        raise ValidationError(f"Cannot read spreadsheet: {e}")

    df.columns = [str(c).strip().lower() for c in df.columns]
    missing = [c for c in PROMOTION_SHEET_REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValidationError(f"Missing columns: {', '.join(missing)}")

    df = df.dropna(how="all")
    if len(df) > max_rows:
        raise ValidationError(f"Too many rows ({len(df)}), the limit is {max_rows}")

    keep = [c for c in PROMOTION_SHEET_REQUIRED_COLUMNS + PROMOTION_SHEET_OPTIONAL_COLUMNS if c in df.columns]
    proposals: list[ProposedPromotion] = []
    errors: list[str] = []
    for index, record in zip(df.index, df[keep].to_dict("records")):
        parsed, row_errors = proposals_from_records([record], first_row=int(index) + 2)
        proposals.extend(parsed)
        errors.extend(row_errors)
    return proposals, errors
