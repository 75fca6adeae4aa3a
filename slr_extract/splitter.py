"""
Split raw input into units of work for the model.

Text mode: abstracts in ``ID <n>: ...`` format are grouped into batches.
File mode: each PDF is its own unit.
"""

import re
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Union

RECORD_START = re.compile(r"(?=ID \d+:)")
RECORD_HEADER = re.compile(r"ID \d+:")

DEFAULT_BATCH_SIZE = 10


@dataclass(frozen=True)
class TextBatch:
    """One batch of consecutive text records."""
    index: int
    records: tuple

    kind = "text"

    @property
    def unit_id(self) -> str:
        return f"batch-{self.index + 1}"

    @property
    def size(self) -> int:
        return len(self.records)

    @property
    def text(self) -> str:
        return "\n\n".join(self.records)


@dataclass(frozen=True)
class FileUnit:
    """One uploaded file (PDF)."""
    name: str
    payload: bytes = field(repr=False)
    mime_type: str = "application/pdf"
    unit_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    kind = "file"
    size = 1


WorkUnit = Union[TextBatch, FileUnit]


def split_records(text: str) -> list:
    """
    Split a text blob into records, each starting at ``ID <n>:``.

    Whitespace-only pieces are dropped. Any non-blank preamble before the
    first ``ID`` header is kept as its own record.
    """
    return [piece for piece in RECORD_START.split(text) if piece.strip()]


def count_records(text: str) -> int:
    """Number of papers in a text blob, as shown next to the input."""
    return len([piece for piece in RECORD_HEADER.split(text) if piece.strip()])


def batch_records(records: list, batch_size: int = DEFAULT_BATCH_SIZE) -> list:
    """Group records into consecutive batches of at most ``batch_size``."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    return [
        TextBatch(index=i, records=tuple(records[start:start + batch_size]))
        for i, start in enumerate(range(0, len(records), batch_size))
    ]


def split_text(text: str, batch_size: int = DEFAULT_BATCH_SIZE) -> list:
    """Split a text blob straight into batches."""
    return batch_records(split_records(text), batch_size)


def units_from_files(files: Iterable[tuple]) -> list:
    """
    Build file units from ``(name, payload)`` pairs, keeping upload order.
    """
    return [FileUnit(name=name, payload=payload) for name, payload in files]


def units_from_paths(paths: Iterable[Path]) -> list:
    """Read PDFs from disk into file units, in the order given."""
    return units_from_files((path.name, path.read_bytes()) for path in paths)
