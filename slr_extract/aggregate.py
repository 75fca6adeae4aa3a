"""
Export the accumulated markdown table to CSV, Excel and clipboard text.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from slr_extract.errors import ParseError
from slr_extract.table import is_separator


def _split_cells(line: str) -> list:
    """Cells between the outer pipes, trimmed."""
    return [cell.strip() for cell in line.strip().split("|")[1:-1]]


def parse_markdown_table(markdown: str) -> pd.DataFrame:
    """
    Reshape a markdown table into a DataFrame.

    The first non-separator row gives the columns; later rows are matched to
    them by position. Short rows are padded with "", extra cells dropped.

    Raises:
        ParseError: fewer than two table lines (header plus one row)
    """
    table_lines = [
        line for line in markdown.strip().split("\n")
        if line.strip().startswith("|") and line.strip().endswith("|")
    ]
    data_lines = [line for line in table_lines if not is_separator(line)]
    if len(data_lines) < 2:
        raise ParseError("Could not parse the analysis result into a CSV format.")

    headers = [h for h in _split_cells(data_lines[0]) if h != ""]

    rows = []
    for line in data_lines[1:]:
        cells = _split_cells(line)
        rows.append([cells[i] if i < len(cells) else "" for i in range(len(headers))])

    return pd.DataFrame(rows, columns=headers)


def default_export_name(extension: str = "csv", date: Optional[datetime] = None) -> str:
    """Date-stamped filename, e.g. slr_analysis_2024-05-01.csv"""
    date = date or datetime.now()
    return f"slr_analysis_{date.strftime('%Y-%m-%d')}.{extension}"


def export_csv(markdown: str, output_path: Path) -> Path:
    """Write the table as CSV (header row + one row per data line)."""
    df = parse_markdown_table(markdown)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, index=False, encoding="utf-8")
    return output_path


def export_excel(markdown: str, output_path: Path) -> Path:
    """Write the table as a single-sheet Excel workbook."""
    df = parse_markdown_table(markdown)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_excel(output_path, index=False, engine="openpyxl")
    return output_path


def export_markdown(markdown: str, output_path: Path) -> Path:
    """Write the table verbatim."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(markdown)
    return output_path


def clipboard_text(markdown: str) -> str:
    """Text to place on the clipboard: the markdown as-is."""
    return markdown
