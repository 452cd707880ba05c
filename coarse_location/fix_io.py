"""Reading and writing fixes as CSV or Excel tables.

Used by the command line tools only; the fudgers never touch files.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd

from .errors import FixFormatError
from .models import Fix, FixBatch

PathLike = Union[str, Path]

_LAT_COL = "latitude"
_LON_COL = "longitude"
_PROVIDER_COL = "provider"
_REQUIRED_COLS = {_LAT_COL, _LON_COL}

# Optional numeric columns and the Fix field each one fills.
_OPTIONAL_FLOAT_COLS: Dict[str, str] = {
    "accuracy": "accuracy_m",
    "bearing": "bearing_deg",
    "speed": "speed_mps",
    "altitude": "altitude_m",
    "time": "timestamp_s",
}

COLUMN_ORDER = [_LAT_COL, _LON_COL, *_OPTIONAL_FLOAT_COLS, _PROVIDER_COL]

_EXCEL_SUFFIXES = {".xlsx", ".xlsm"}


def _is_blank(value: object) -> bool:
    return value is None or pd.isna(value) or str(value).strip() == ""


def _required_float(value: object, column: str, row_label: str) -> float:
    if _is_blank(value):
        raise FixFormatError(f"Missing {column} in {row_label}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise FixFormatError(
            f"Invalid {column} '{value}' in {row_label} (expected a number)"
        ) from exc


def _optional_float(value: object, column: str, row_label: str) -> Optional[float]:
    if _is_blank(value):
        return None
    return _required_float(value, column, row_label)


def _load_frame(path: Path) -> pd.DataFrame:
    if path.suffix.lower() in _EXCEL_SUFFIXES:
        return pd.read_excel(path, engine="openpyxl")
    return pd.read_csv(path)


def read_fixes(path: PathLike) -> FixBatch:
    """Load fixes from ``path`` in file order.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        FixFormatError: If required columns are missing or values are invalid.
    """

    source = Path(path)
    df = _load_frame(source)
    df.columns = [str(col).strip().lower() for col in df.columns]
    missing = _REQUIRED_COLS - set(df.columns)
    if missing:
        raise FixFormatError(
            f"Fixes file '{source}' missing required columns: {', '.join(sorted(missing))}"
        )

    fixes: List[Fix] = []
    for position, (_, row) in enumerate(df.iterrows()):
        row_label = f"row {position + 2}"
        optional = {
            field: _optional_float(row.get(column), column, row_label)
            for column, field in _OPTIONAL_FLOAT_COLS.items()
        }
        provider = row.get(_PROVIDER_COL)
        fixes.append(
            Fix(
                latitude=_required_float(row[_LAT_COL], _LAT_COL, row_label),
                longitude=_required_float(row[_LON_COL], _LON_COL, row_label),
                provider=None if _is_blank(provider) else str(provider).strip(),
                **optional,
            )
        )
    return FixBatch.create(fixes)


def fixes_to_frame(batch: FixBatch) -> pd.DataFrame:
    """Tabulate ``batch`` with one row per fix, in order."""

    rows = []
    for fix in batch:
        row = {_LAT_COL: fix.latitude, _LON_COL: fix.longitude}
        for column, field in _OPTIONAL_FLOAT_COLS.items():
            row[column] = getattr(fix, field)
        row[_PROVIDER_COL] = fix.provider
        rows.append(row)
    return pd.DataFrame(rows, columns=COLUMN_ORDER)


def write_fixes(batch: FixBatch, path: PathLike) -> Path:
    """Write ``batch`` to ``path`` (Excel for .xlsx/.xlsm, CSV otherwise)."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    df = fixes_to_frame(batch)
    if target.suffix.lower() in _EXCEL_SUFFIXES:
        df.to_excel(target, index=False, engine="openpyxl")
    else:
        df.to_csv(target, index=False)
    return target


__all__ = ["COLUMN_ORDER", "read_fixes", "fixes_to_frame", "write_fixes"]
