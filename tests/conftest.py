"""Shared test fixtures: a scripted Gemini client and a recording clock."""

from types import SimpleNamespace

import pytest

from slr_extract.extract import GeminiExtractor


class FakeModels:
    """Stands in for ``client.models``; replays a script of replies/errors."""

    def __init__(self, script, log):
        self.script = list(script)
        self.calls = []
        self.log = log

    def generate_content(self, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        self.log.append(("call", len(self.calls)))
        if not self.script:
            raise AssertionError("Model called more times than scripted")
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return SimpleNamespace(text=item)


class FakeClient:
    def __init__(self, script, log=None):
        self.log = log if log is not None else []
        self.models = FakeModels(script, self.log)


class RecordingSleep:
    """Clock stand-in: records requested delays instead of waiting."""

    def __init__(self, log=None):
        self.delays = []
        self.log = log if log is not None else []

    def __call__(self, seconds):
        self.delays.append(seconds)
        self.log.append(("sleep", seconds))


@pytest.fixture
def event_log():
    return []


@pytest.fixture
def clock(event_log):
    return RecordingSleep(event_log)


@pytest.fixture
def make_extractor(clock, event_log):
    """Build a GeminiExtractor over a scripted fake client."""

    def _make(script, **kwargs):
        client = FakeClient(script, event_log)
        return GeminiExtractor(client=client, sleep=clock, **kwargs)

    return _make
