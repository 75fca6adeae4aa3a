#!/usr/bin/env python3
"""
Systematic Review Table Extraction Pipeline

Usage:
    python run_pipeline.py --text input/abstracts.txt      # Abstracts in "ID <n>:" format
    python run_pipeline.py --csv input/search_results.csv  # CSV with id/title/abstract columns
    python run_pipeline.py --pdfs input/pdfs paper.pdf     # PDF folders and/or files
    python run_pipeline.py --text abstracts.txt --yes      # Skip confirmation
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path

import yaml
from dotenv import load_dotenv

from slr_extract.aggregate import default_export_name, export_csv, export_excel, export_markdown
from slr_extract.checkpoints import (
    ProgressPrinter,
    banner,
    checkpoint_confirm_run,
    console,
    display_error,
    display_run_summary
)
from slr_extract.config import DEFAULT_PROMPT_PATH, DEFAULT_SETTINGS_PATH, load_instruction, load_settings
from slr_extract.errors import IngestionError, InputError, ParseError
from slr_extract.extract import GeminiExtractor
from slr_extract.ingest import parse_csv
from slr_extract.orchestrator import ExtractionPipeline, RunState
from slr_extract.splitter import count_records, split_text, units_from_paths
from slr_extract.table import derive_header
from slr_extract.utils import collect_pdf_paths, format_file_size, get_api_key, validate_pdf_file


def main():
    parser = argparse.ArgumentParser(description="Systematic Review Table Extraction Pipeline")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--text", type=Path,
                        help="Text file with abstracts in 'ID <n>: Title: ...' format")
    source.add_argument("--csv", type=Path,
                        help="CSV file with id/title/abstract (or name/description) columns")
    source.add_argument("--pdfs", type=Path, nargs="+",
                        help="PDF files and/or folders containing PDFs")
    parser.add_argument("--prompt", type=Path, default=DEFAULT_PROMPT_PATH,
                        help="Instruction file containing the markdown table template")
    parser.add_argument("--config", type=Path, default=DEFAULT_SETTINGS_PATH,
                        help="Path to settings YAML")
    parser.add_argument("--batch-size", type=int, default=None,
                        help="Papers per request in text mode (overrides config)")
    parser.add_argument("--output", type=Path, default=Path("output"),
                        help="Folder for the result table and exports")
    parser.add_argument("--excel", action="store_true",
                        help="Also write an Excel workbook")
    parser.add_argument("--yes", "-y", action="store_true",
                        help="Skip confirmation prompt")
    args = parser.parse_args()

    # Load environment
    load_dotenv()
    api_key = get_api_key()
    if not api_key:
        print("ERROR: GEMINI_API_KEY not found or not configured in .env file")
        print("Please edit .env and add your Gemini API key")
        return 1

    try:
        settings = load_settings(args.config)
    except (ValueError, TypeError, yaml.YAMLError) as e:
        print(f"ERROR: Invalid config file {args.config}: {e}")
        return 1
    batch_size = args.batch_size if args.batch_size is not None else settings.batch_size
    if batch_size < 1:
        print(f"ERROR: Batch size must be at least 1, got {batch_size}")
        return 1

    if not args.prompt.exists():
        print(f"ERROR: Prompt file not found: {args.prompt}")
        return 1
    instruction = load_instruction(args.prompt)

    extractor = GeminiExtractor(
        api_key,
        model_name=settings.extraction_model,
        temperature=settings.temperature,
        max_retries=settings.max_retries,
        backoff_base=settings.backoff_base_seconds
    )
    pipeline = ExtractionPipeline(
        extractor,
        batch_size=batch_size,
        unit_delay=settings.unit_delay_seconds,
        header_token=settings.header_token
    )

    # ===========================================================================
    # INPUT
    # ===========================================================================

    banner("INPUT")

    if args.pdfs:
        paths = []
        for path in collect_pdf_paths(args.pdfs):
            is_valid, message = validate_pdf_file(path)
            if not is_valid:
                console.print(f"  [yellow][SKIPPED][/yellow] {message}")
                continue
            console.print(f"  {path.name} ({format_file_size(path.stat().st_size)})")
            paths.append(path)
        pipeline.add_files(units_from_paths(paths))
        units = list(pipeline.files)
        paper_count = len(units)
    else:
        if args.csv:
            console.print(f"  Parsing {args.csv}...")
            try:
                text = parse_csv(args.csv)
            except IngestionError as e:
                display_error(str(e))
                return 1
        else:
            if not args.text.exists():
                display_error(f"Text file not found: {args.text}")
                return 1
            text = args.text.read_text(encoding="utf-8")
        pipeline.set_text(text)
        units = split_text(text, batch_size)
        paper_count = count_records(text)
        console.print(f"  {paper_count} papers, {len(text):,} characters")

    if not args.yes:
        choice = checkpoint_confirm_run(
            mode=pipeline.mode,
            units=units,
            paper_count=paper_count,
            header=derive_header(instruction),
            settings=settings
        )
        if choice == 'q':
            print("\n  Aborted by user.")
            return 0

    # ===========================================================================
    # EXTRACT
    # ===========================================================================

    banner("EXTRACT")
    pipeline.subscribe(ProgressPrinter())

    try:
        snap = pipeline.run(instruction)
    except InputError as e:
        display_error(str(e))
        return 1
    except KeyboardInterrupt:
        snap = pipeline.snapshot()

    # ===========================================================================
    # EXPORT (partial results too)
    # ===========================================================================

    output_files = {}
    if snap.result:
        timestamp = datetime.now().strftime("%Y-%m-%d_%H%M%S")
        run_folder = args.output / timestamp

        output_files["Markdown table"] = export_markdown(snap.result, run_folder / default_export_name("md"))
        try:
            output_files["CSV"] = export_csv(snap.result, run_folder / default_export_name("csv"))
            if args.excel:
                output_files["Excel"] = export_excel(snap.result, run_folder / default_export_name("xlsx"))
        except ParseError as e:
            console.print(f"  [yellow][!] {e}[/yellow]")

    display_run_summary(snap, output_files)

    if snap.state == RunState.CANCELLED:
        return 130
    return 0 if snap.state == RunState.SUCCEEDED else 1


if __name__ == "__main__":
    sys.exit(main())
