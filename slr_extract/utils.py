"""
Shared utilities for the abstract/PDF table extraction pipeline.
"""

import os
from pathlib import Path
from typing import Iterable, Optional

PLACEHOLDER_API_KEY = "your_gemini_api_key_here"


def get_api_key(env_var: str = "GEMINI_API_KEY") -> Optional[str]:
    """
    Get API key from environment variable.

    Returns:
        API key string, or None if missing or still the .env placeholder
    """
    key = os.getenv(env_var)
    if not key or key == PLACEHOLDER_API_KEY:
        return None
    return key


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """
    Truncate text to a maximum length, adding suffix if truncated.

    Args:
        text: The text to truncate
        max_length: Maximum length including suffix
        suffix: String to append if truncated

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix


def format_file_size(size_bytes: float) -> str:
    """Format file size in human-readable format."""
    for unit in ["B", "KB", "MB", "GB"]:
        if size_bytes < 1024:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024
    return f"{size_bytes:.1f} TB"


def validate_pdf_file(pdf_path: Path) -> tuple[bool, str]:
    """
    Validate that a file is a PDF.

    Args:
        pdf_path: Path to the file

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not pdf_path.exists():
        return False, f"File not found: {pdf_path}"

    if not pdf_path.is_file():
        return False, f"Not a file: {pdf_path}"

    if pdf_path.suffix.lower() != ".pdf":
        return False, f"Not a PDF file: {pdf_path}"

    # Inline upload limit is far below 100MB, but keep the sanity bounds
    size = pdf_path.stat().st_size
    if size < 1024:
        return False, f"File too small (may be empty): {pdf_path}"
    if size > 100 * 1024 * 1024:
        return False, f"File too large (>100MB): {pdf_path}"

    with open(pdf_path, "rb") as f:
        header = f.read(5)
    if header != b"%PDF-":
        return False, f"Invalid PDF header: {pdf_path}"

    return True, ""


def collect_pdf_paths(inputs: Iterable[Path]) -> list:
    """
    Expand folders to their PDFs (sorted by name); files are kept as given.
    Order follows the inputs, like an upload queue.
    """
    paths = []
    for item in inputs:
        if item.is_dir():
            paths.extend(sorted(item.glob("*.pdf"), key=lambda p: p.name.lower()))
        else:
            paths.append(item)
    return paths
