"""
Turn a CSV export of search results into ``ID <n>:`` abstracts text.
No LLM calls - pure structural transformation.
"""

from pathlib import Path
from typing import Optional, Union

import pandas as pd

from slr_extract.errors import IngestionError

# Accepted column names per field, matched case-insensitively, first hit wins
COLUMN_ALIASES = {
    "id": ("id",),
    "title": ("title", "name"),
    "abstract": ("abstract", "description"),
}


def resolve_columns(columns) -> dict:
    """
    Map our fields to the CSV's actual column names.

    'Title' -> title, 'DESCRIPTION' -> abstract, unknown columns are ignored.
    """
    lookup = {}
    for column in columns:
        lookup.setdefault(str(column).strip().lower(), column)

    resolved = {}
    for field, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in lookup:
                resolved[field] = lookup[alias]
                break
    return resolved


def format_record(record_id, title: str, abstract: str) -> str:
    """One paper in the splitter's input format."""
    return f"ID {record_id}: Title: {title}\nAbstract: {abstract}"


def _cell(row: pd.Series, column: Optional[str]) -> str:
    if column is None:
        return ""
    return str(row[column]).strip()


def records_from_dataframe(df: pd.DataFrame) -> list:
    """
    Convert rows to records. Rows with neither title nor abstract are dropped;
    a missing id falls back to the 1-based row number.
    """
    columns = resolve_columns(df.columns)
    records = []

    for index, (_, row) in enumerate(df.iterrows(), start=1):
        record_id = _cell(row, columns.get("id")) or index
        title = _cell(row, columns.get("title"))
        abstract = _cell(row, columns.get("abstract"))

        if not title and not abstract:
            continue
        records.append(format_record(record_id, title, abstract))

    return records


def parse_csv(source: Union[Path, str]) -> str:
    """
    Read a CSV file and return abstracts text ready for the splitter.

    Raises:
        IngestionError: unreadable CSV, or no row with a title/abstract
    """
    try:
        df = pd.read_csv(source, dtype=str, keep_default_na=False, skip_blank_lines=True)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise IngestionError(f"Error parsing CSV: {e}") from e

    records = records_from_dataframe(df)
    if not records:
        raise IngestionError("Could not find recognizable columns (ID, Title, Abstract) in the CSV.")

    return "\n\n".join(records)
