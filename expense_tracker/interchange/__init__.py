"""Interchange (quoted CSV) import and export package."""

from expense_tracker.interchange.csv_codec import (
    CSV_COLUMNS,
    HEADER_LINE,
    DecodeResult,
    decode,
    export_filename,
    from_text,
    merge,
    split_row,
    to_text,
)

__all__ = [
    "CSV_COLUMNS",
    "HEADER_LINE",
    "DecodeResult",
    "decode",
    "export_filename",
    "from_text",
    "merge",
    "split_row",
    "to_text",
]
