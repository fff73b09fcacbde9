import json

import pytest

from procman.loggers import LogFuncs, Logger
from procman.logcollection.factory import (
    LoggerConfig,
    SimpleLoggerWrapper,
    default_logger_config,
    development_logger,
    new_structured_logger,
    new_structured_logger_with_config,
    production_logger,
    quick_logger,
    validate_logger_config,
    wrap_existing_logger,
)
from procman.logcollection.fields import int_field, str_field
from procman.logcollection.types import LogLevel


class Recorder:
    def __init__(self):
        self.calls = []

    def _record(self, level, msg, args):
        self.calls.append((level, msg % args if args else msg))

    def debug(self, msg, *args):
        self._record("debug", msg, args)

    def info(self, msg, *args):
        self._record("info", msg, args)

    def warn(self, msg, *args):
        self._record("warn", msg, args)

    def error(self, msg, *args):
        self._record("error", msg, args)


def stdout_records(capsys):
    out = capsys.readouterr().out
    return [json.loads(line) for line in out.splitlines() if line.startswith("{")]


@pytest.mark.parametrize("backend", ["zap", ""])
def test_new_structured_logger_default_backend(capsys, backend):
    logger = new_structured_logger(backend, LogLevel.DEBUG)
    logger.debug("value %d", 5)
    (entry,) = stdout_records(capsys)
    assert entry["msg"] == "value 5"
    assert entry["level"] == "debug"


@pytest.mark.parametrize("backend", ["logrus", "slog"])
def test_unavailable_backends_raise(backend):
    with pytest.raises(ValueError, match=backend):
        new_structured_logger(backend, LogLevel.INFO)
    with pytest.raises(ValueError, match=backend):
        new_structured_logger_with_config(LoggerConfig(backend=backend))


def test_unknown_backend_raises():
    with pytest.raises(ValueError, match="unknown backend type: nope"):
        new_structured_logger("nope", LogLevel.INFO)


def test_level_respected(capsys):
    logger = new_structured_logger("zap", LogLevel.WARN)
    logger.info("hidden")
    logger.warn("shown")
    assert [e["msg"] for e in stdout_records(capsys)] == ["shown"]


def test_default_logger_config():
    cfg = default_logger_config()
    assert cfg.backend == "zap"
    assert cfg.level is LogLevel.INFO
    assert (cfg.format, cfg.output) == ("json", "stdout")
    assert cfg.caller and cfg.stacktrace
    validate_logger_config(cfg)


def test_quick_logger_logs_info(capsys):
    logger = quick_logger(LogLevel.INFO)
    logger.info("quick")
    assert stdout_records(capsys)[0]["msg"] == "quick"


def test_production_logger_omits_caller(capsys):
    logger = production_logger("stdout")
    logger.info("prod")
    (entry,) = stdout_records(capsys)
    assert entry["msg"] == "prod"
    assert "caller" not in entry


def test_development_logger_console_debug(capsys):
    logger = development_logger()
    logger.debug("dev message")
    line = capsys.readouterr().out.splitlines()[0]
    parts = line.split("\t")
    assert parts[1] == "debug"
    assert parts[-1] == "dev message"


def test_with_config_console_format(capsys):
    cfg = LoggerConfig(backend="zap", level=LogLevel.INFO, format="console", output="stdout")
    new_structured_logger_with_config(cfg).info("plain")
    assert capsys.readouterr().out.splitlines()[0].split("\t")[1:] == ["info", "plain"]


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"backend": "other"}, "invalid backend: other"),
        ({"format": "xml"}, "invalid format: xml"),
        ({"output": ""}, "output cannot be empty"),
    ],
)
def test_validate_logger_config_errors(overrides, message):
    cfg = default_logger_config()
    for key, value in overrides.items():
        setattr(cfg, key, value)
    with pytest.raises(ValueError, match=message):
        validate_logger_config(cfg)


def test_wrapper_forwards_printf_calls():
    recorder = Recorder()
    wrapper = wrap_existing_logger(recorder)
    wrapper.info("a %s", "b")
    wrapper.error("c")
    assert recorder.calls == [("info", "a b"), ("error", "c")]


def test_wrapper_formats_fields():
    recorder = Recorder()
    wrapper = SimpleLoggerWrapper(recorder)
    wrapper.log_with_fields(LogLevel.WARN, "m", str_field("a", "b"), int_field("n", 1))
    wrapper.log_with_context({"request_id": "r"}, LogLevel.DEBUG, "bare")
    assert recorder.calls == [("warn", "m [a=b n=1]"), ("debug", "bare")]


def test_wrapper_over_prefixing_logger():
    out = []
    base = Logger("p: ", LogFuncs(info=lambda msg, *args: out.append(msg % args)))
    wrap_existing_logger(base).log_with_fields(LogLevel.INFO, "hello", str_field("k", "v"))
    assert out == ["p: hello [k=v]"]