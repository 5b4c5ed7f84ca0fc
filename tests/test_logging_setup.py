"""Tests for the JSONL logging bootstrap."""

import json
import logging

import pytest

from scoped_import.logging_setup import JsonlHandler
from scoped_import.logging_setup import init_json_logging
from scoped_import.module_cache import ModuleCache


@pytest.fixture
def restore_root():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)


def _lines(path):
    return [json.loads(line) for line in path.read_text().splitlines()]


def test_records_written_as_jsonl(tmp_path, restore_root):
    log_path = tmp_path / "logs" / "out.jsonl"
    init_json_logging(str(log_path), "debug")

    logging.getLogger("scoped_import.test").debug("[import:cache] hit %s", "mod.py", extra={"path": "mod.py"})

    line = _lines(log_path)[-1]
    assert line["lvl"] == "DEBUG"
    assert line["logger"] == "scoped_import.test"
    assert line["event"] == "import:cache"
    assert line["message"] == "hit mod.py"
    assert line["data"] == {"path": "mod.py"}


def test_untagged_record_has_no_event(tmp_path, restore_root):
    log_path = tmp_path / "out.jsonl"
    init_json_logging(str(log_path), "info")

    logging.getLogger("scoped_import.test").info("Ran script.py")

    line = _lines(log_path)[-1]
    assert "event" not in line
    assert "data" not in line
    assert line["message"] == "Ran script.py"


def test_exception_is_formatted(tmp_path, restore_root):
    log_path = tmp_path / "out.jsonl"
    init_json_logging(str(log_path), "info")

    try:
        raise ValueError("boom")
    except ValueError:
        logging.getLogger("scoped_import.test").exception("failed")

    assert "ValueError: boom" in _lines(log_path)[-1]["exc"]


def test_cache_loads_carry_module_path(tmp_path, restore_root, evaluator, write_module):
    log_path = tmp_path / "out.jsonl"
    init_json_logging(str(log_path), "debug")
    path = write_module("mod.py", "value = 1\n")
    cache = ModuleCache(evaluator=evaluator)

    cache.get_or_load(path)
    cache.get_or_load(path)

    cache_events = [line["data"]["event"] for line in _lines(log_path) if line.get("event") == "import:cache"]
    assert cache_events == ["miss", "evaluated", "hit"]
    miss = next(line for line in _lines(log_path) if line.get("data", {}).get("event") == "miss")
    assert miss["data"]["path"] == str(path)
    assert miss["data"]["fingerprint"].startswith("sha256:")


def test_reinit_does_not_duplicate_handlers(tmp_path, restore_root):
    init_json_logging(str(tmp_path / "a.jsonl"), "INFO")
    init_json_logging(str(tmp_path / "b.jsonl"), "INFO")

    handlers = [h for h in restore_root.handlers if isinstance(h, JsonlHandler)]
    assert len(handlers) == 1
    assert handlers[0].path == tmp_path / "b.jsonl"
