"""
Loader for client CSV/Excel uploads.

Every upload is a header row followed by data rows. Cells are kept as text
so the engine sees exactly what the client exported; blank cells become
empty strings and fully blank lines are skipped. Excel workbooks are read
from their first sheet.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

from ..config import DATASETS

logger = logging.getLogger(__name__)

_EXCEL_SUFFIXES = {".xlsx", ".xlsm"}


@dataclass
class Upload:
    """Rows and headers read from one uploaded file."""

    dataset: str
    rows: list[dict] = field(default_factory=list)
    headers: list[str] = field(default_factory=list)


def read_table(path: str | Path) -> pd.DataFrame:
    """Read a CSV or Excel file into a DataFrame of strings."""
    path = Path(path)
    try:
        if path.suffix.lower() in _EXCEL_SUFFIXES:
            df = pd.read_excel(
                path,
                sheet_name=0,
                dtype=str,
                keep_default_na=False,
                engine="openpyxl",
            )
        else:
            df = pd.read_csv(
                path,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                encoding="utf-8-sig",
            )
    except Exception:
        logger.exception("Failed to read upload: %s", path)
        raise

    df.columns = [str(c).strip() for c in df.columns]
    # Drop rows where every cell is blank (Excel leaves these behind)
    if not df.empty:
        blank = df.apply(lambda col: col.str.strip() == "").all(axis=1)
        df = df[~blank].reset_index(drop=True)
    return df


def load_upload(path: str | Path, dataset: str) -> Upload:
    """Load one upload for a dataset category.

    Returns
    -------
    Upload with one dict per data row (header -> text) and the header list,
    which the mapping editor offers as source columns.
    """
    if dataset not in DATASETS:
        raise ValueError(f"Unknown dataset category: {dataset!r}")

    df = read_table(path)
    rows = df.to_dict(orient="records")
    headers = list(df.columns)

    if not rows:
        logger.warning("Upload %s for '%s' has no data rows", path, dataset)

    logger.info("Loaded %d '%s' rows from %s", len(rows), dataset, path)
    return Upload(dataset=dataset, rows=rows, headers=headers)


def rows_to_frame(rows: list[dict]) -> pd.DataFrame:
    """DataFrame view of a record list, columns in first-seen order."""
    if not rows:
        return pd.DataFrame()
    return pd.DataFrame.from_records(rows)
