"""
Pull table rows out of model replies and accumulate them into one table.
"""

from typing import Optional

DEFAULT_HEADER = "| Study ID | Paper title | Data |\n|---|---|---|"
HEADER_TOKEN = "study id"


def is_separator(line: str) -> bool:
    """Markdown header separator, e.g. ``|---|:---:|``."""
    return "---" in line


def extract_rows(raw_text: str, header_token: str = HEADER_TOKEN) -> list:
    """
    Keep only the data rows of the markdown table(s) in a model reply.

    Drops prose, separator lines and any re-emitted header (a line mentioning
    ``header_token``). Rows are not checked for column count.
    """
    token = header_token.lower()
    rows = []
    for line in raw_text.split("\n"):
        if not line.strip().startswith("|"):
            continue
        if is_separator(line):
            continue
        if token and token in line.lower():
            continue
        rows.append(line)
    return rows


def derive_header(instruction: str) -> str:
    """
    Find the table template in the instruction.

    The header is the first ``| ... |`` line directly followed by a separator
    line. Falls back to DEFAULT_HEADER when the instruction has no table.
    """
    lines = instruction.split("\n")
    for i, line in enumerate(lines[1:], start=1):
        previous = lines[i - 1]
        if "|" in line and is_separator(line) and previous.strip().startswith("|"):
            if not is_separator(previous):
                return f"{previous.strip()}\n{line.strip()}"
    return DEFAULT_HEADER


def append_rows(current: str, rows: list) -> str:
    """Append row lines to the table text. No dedup, no reordering."""
    if not rows:
        return current
    return current + "\n" + "\n".join(rows)


class ResultTable:
    """Cumulative markdown table: a fixed header plus rows in arrival order."""

    def __init__(self, header: Optional[str] = None):
        self.header = header or DEFAULT_HEADER
        self.rows = []

    @classmethod
    def from_instruction(cls, instruction: str) -> "ResultTable":
        return cls(derive_header(instruction))

    def append(self, rows: list) -> None:
        self.rows.extend(rows)

    @property
    def markdown(self) -> str:
        return append_rows(self.header, self.rows)

    def __len__(self) -> int:
        return len(self.rows)
