"""Upload ingestion for the client dashboard datasets."""

from .uploads import Upload, load_upload, read_table, rows_to_frame
from .utils import has_value, parse_date, safe_float, to_num

__all__ = [
    "Upload",
    "load_upload",
    "read_table",
    "rows_to_frame",
    "has_value",
    "parse_date",
    "safe_float",
    "to_num",
]
