"""Command-line tests for run_pipeline.main with a fake model gateway."""

# pylint: disable=missing-class-docstring,missing-function-docstring

import sys
from datetime import datetime

import pandas as pd
import pytest

import run_pipeline
from slr_extract.aggregate import default_export_name
from slr_extract.errors import ModelError

PROMPT = "One row per paper.\n\n| Study ID | Title | Result |\n|---|---|---|\n"
ABSTRACTS = "ID 1: Title: A\nAbstract: a\n\nID 2: Title: B\nAbstract: b"


class FakeGateway:
    """Replaces GeminiExtractor; replies come from the class-level script."""

    script = []

    def __init__(self, *args, **kwargs):
        self.replies = list(type(self).script)

    def invoke(self, unit, instruction):
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Prompt, fast settings, abstracts and an API key; no real .env."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(run_pipeline, "load_dotenv", lambda *a, **k: None)
    monkeypatch.setattr(run_pipeline, "GeminiExtractor", FakeGateway)
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")

    (tmp_path / "prompt.md").write_text(PROMPT, encoding="utf-8")
    (tmp_path / "settings.yaml").write_text("settings:\n  unit_delay_seconds: 0\n", encoding="utf-8")
    (tmp_path / "abstracts.txt").write_text(ABSTRACTS, encoding="utf-8")
    return tmp_path


def run_cli(monkeypatch, *args):
    argv = ["run_pipeline.py", "--prompt", "prompt.md", "--config", "settings.yaml",
            "--output", "out", "--yes", *args]
    monkeypatch.setattr(sys, "argv", argv)
    return run_pipeline.main()


def exported(workspace, extension):
    return list((workspace / "out").glob(f"*/slr_analysis_*.{extension}"))


class TestRuns:

    def test_success_writes_exports(self, workspace, monkeypatch):
        FakeGateway.script = ["| 1 | A | ok |\n| 2 | B | ok |"]

        assert run_cli(monkeypatch, "--text", "abstracts.txt", "--excel") == 0

        (csv_path,) = exported(workspace, "csv")
        assert csv_path.name == default_export_name("csv", datetime.now())
        df = pd.read_csv(csv_path, dtype=str)
        assert list(df.columns) == ["Study ID", "Title", "Result"]
        assert len(df) == 2
        assert len(exported(workspace, "xlsx")) == 1

    def test_failed_run_keeps_partial_results(self, workspace, monkeypatch):
        FakeGateway.script = ["| 1 | A | ok |", ModelError("500 INTERNAL")]

        assert run_cli(monkeypatch, "--text", "abstracts.txt", "--batch-size", "1") == 1

        (md_path,) = exported(workspace, "md")
        assert md_path.read_text(encoding="utf-8").endswith("| 1 | A | ok |")
        (csv_path,) = exported(workspace, "csv")
        assert len(pd.read_csv(csv_path, dtype=str)) == 1

    def test_ctrl_c_exits_130(self, workspace, monkeypatch):
        FakeGateway.script = ["| 1 | A | ok |", KeyboardInterrupt()]
        assert run_cli(monkeypatch, "--text", "abstracts.txt", "--batch-size", "1") == 130
        assert len(exported(workspace, "md")) == 1

    def test_csv_input(self, workspace, monkeypatch):
        (workspace / "papers.csv").write_text("id,title,abstract\n9,T,A\n", encoding="utf-8")
        FakeGateway.script = ["| 9 | T | ok |"]
        assert run_cli(monkeypatch, "--csv", "papers.csv") == 0


class TestRejectedInput:

    @pytest.mark.parametrize("value", [None, "your_gemini_api_key_here"])
    def test_missing_or_placeholder_key(self, workspace, monkeypatch, value):
        if value is None:
            monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        else:
            monkeypatch.setenv("GEMINI_API_KEY", value)
        assert run_cli(monkeypatch, "--text", "abstracts.txt") == 1

    def test_unrecognised_csv_columns(self, workspace, monkeypatch):
        (workspace / "papers.csv").write_text("authors,year\nSmith,2020\n", encoding="utf-8")
        assert run_cli(monkeypatch, "--csv", "papers.csv") == 1
        assert not (workspace / "out").exists()

    def test_malformed_yaml(self, workspace, monkeypatch):
        (workspace / "settings.yaml").write_text("settings: [unclosed\n", encoding="utf-8")
        assert run_cli(monkeypatch, "--text", "abstracts.txt") == 1

    @pytest.mark.parametrize("size", ["0", "-3"])
    def test_batch_size_below_one(self, workspace, monkeypatch, size):
        assert run_cli(monkeypatch, "--text", "abstracts.txt", "--batch-size", size) == 1

    def test_empty_text_file(self, workspace, monkeypatch):
        (workspace / "abstracts.txt").write_text("   \n", encoding="utf-8")
        assert run_cli(monkeypatch, "--text", "abstracts.txt") == 1

    def test_sources_are_exclusive(self, workspace, monkeypatch):
        with pytest.raises(SystemExit):
            run_cli(monkeypatch, "--text", "abstracts.txt", "--csv", "papers.csv")
