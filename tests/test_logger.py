import json
import logging
import sys

from powerkey_core.logger import JsonFormatter, get_logger


def _record(msg, exc_info=None):
    return logging.LogRecord("powerkey.test", logging.INFO, __file__, 1, msg, None, exc_info)


def test_formatter_escapes_message():
    line = JsonFormatter().format(_record('source "Solar"\nline two'))
    entry = json.loads(line)

    assert entry["msg"] == 'source "Solar"\nline two'
    assert entry["level"] == "INFO"
    assert entry["name"] == "powerkey.test"
    assert entry["ts"].endswith("Z")
    assert "exc" not in entry


def test_formatter_includes_exception():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        entry = json.loads(JsonFormatter().format(_record("failed", sys.exc_info())))

    assert "RuntimeError: boom" in entry["exc"]


def _flush(logger):
    for h in logger.handlers:
        h.flush()


def test_get_logger_writes_json_lines_to_file(tmp_path):
    path = tmp_path / "logs" / "powerkey.log"
    log = get_logger("powerkey.test.file", level="DEBUG", to_file=str(path))
    log.debug("hello")
    _flush(log)

    entry = json.loads(path.read_text().splitlines()[-1])
    assert entry["msg"] == "hello"
    assert entry["level"] == "DEBUG"


def test_get_logger_reads_env(tmp_path, monkeypatch):
    path = tmp_path / "env.log"
    monkeypatch.setenv("POWERKEY_LOG_FILE", str(path))
    monkeypatch.setenv("POWERKEY_LOG_LEVEL", "warning")

    log = get_logger("powerkey.test.env")
    log.info("dropped")
    log.warning("kept")
    _flush(log)

    lines = [json.loads(l)["msg"] for l in path.read_text().splitlines()]
    assert lines == ["kept"]
    assert log.level == logging.WARNING


def test_get_logger_attaches_handlers_once():
    first = get_logger("powerkey.test.once")
    count = len(first.handlers)
    assert get_logger("powerkey.test.once") is first
    assert len(first.handlers) == count == 1
