from procman import loggers
from procman.loggers import LogFuncs, Logger, null_logger


def _recorder(sink, name):
    def record(msg, *args):
        sink.append((name, msg, args))

    return record


def _full_funcs(sink):
    return LogFuncs(
        debug=_recorder(sink, "debug"),
        info=_recorder(sink, "info"),
        warn=_recorder(sink, "warn"),
        error=_recorder(sink, "error"),
    )


def test_dispatch_by_level_with_prefix():
    sink = []
    logger = Logger("pre: ", _full_funcs(sink))
    logger.debug("d %s", 1)
    logger.info("i")
    logger.warn("w")
    logger.error("e %s %s", "a", "b")
    assert [entry[0] for entry in sink] == ["debug", "info", "warn", "error"]
    assert sink[0] == ("debug", "pre: d %s", (1,))
    assert sink[3] == ("error", "pre: e %s %s", ("a", "b"))


def test_level_func_takes_precedence():
    sink = []
    calls = []
    funcs = LogFuncs(
        log_level=lambda level, msg, *args: calls.append((level, msg, args)),
        info=_recorder(sink, "info"),
    )
    logger = Logger("", funcs)
    logger.info("hello %s", "x")
    logger.log(loggers.WARN, "w")
    assert sink == []
    assert calls == [(loggers.INFO, "hello %s", ("x",)), (loggers.WARN, "w", ())]


def test_missing_function_is_skipped():
    sink = []
    logger = Logger("", LogFuncs(info=_recorder(sink, "info")))
    logger.debug("dropped")
    logger.error("dropped")
    logger.info("kept")
    assert sink == [("info", "kept", ())]


def test_unknown_level_is_ignored():
    sink = []
    logger = Logger("", _full_funcs(sink))
    logger.log(99, "nothing")
    assert sink == []


def test_empty_prefix_leaves_message_unchanged():
    sink = []
    Logger("", _full_funcs(sink)).warn("plain")
    assert sink == [("warn", "plain", ())]


def test_null_logger_discards():
    logger = null_logger()
    logger.info("anything %s", 1)
    assert logger.prefix == ""
    assert logger.funcs == LogFuncs()