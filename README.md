# procman

Building blocks for a process manager, using only the standard library:

- **Domain errors** (`procman.domain_errors`): `DomainError` is an exception
  carrying an `ErrorType`, a message, an optional cause and a context dict
  (`with_context(key, value)` adds to it and returns the same error).
  Helpers such as `validation_error(message, cause)` build one, and
  `is_validation_error(err)` / `is_error_type(err, error_type)` look at the
  first `DomainError` in the cause chain. `ErrorCollection` gathers the errors
  of a bulk operation; `to_error()` returns it, or `None` when it is empty.
- **Simple loggers** (`procman.loggers`, `procman.sprintf_logger`):
  `Logger(prefix, LogFuncs(...))` adds the prefix to each message and sends it
  to the functions you supply; a `log_level` function, if given, receives
  every message and the per-level functions are then not used.
  `null_logger()` drops every message. `StdSprintfLogger` formats messages
  with `%`-style arguments, writes them with a timestamp to a stream
  (standard error by default), and `with_(key, value, ...)` returns a logger
  whose prefix also holds `key: value` parts.
- **Restart settings** (`procman.restart`): `RestartPolicy`,
  `RestartTriggerType`, `RestartContext`, `RestartConfig` and
  `ContextAwareRestartConfig`. `validate_restart_config` and
  `validate_context_aware_restart_config` raise `ValueError` for negative
  retries or durations and for non-positive backoff rates or multipliers.
- **Process state** (`procman.process_state`): `ProcessState`,
  `ErrorCategory`, `ProcessError` and `ProcessDiagnostics` records.
- **Log collection** (`procman.logcollection`):
  - `config`: dataclasses for the whole configuration, with `validate()`
    methods that raise `ValueError`, plus `default_log_collection_config()`
    and `default_process_log_config()`.
  - `fields`: typed `LogField`s (`str_field`, `int_field`, `duration_field`,
    `error_field`, `managed_process`, ...), `to_map`, `from_map` and the
    chainable `Fields` list.
  - `types`: `LogLevel`, `StreamType`, log entry and status dataclasses, and
    the `StructuredLogger` and `LogOutputWriter` protocols.
  - `structured`: `StdlibAdapter`, a structured logger on top of the standard
    `logging` module that writes JSON or tab-separated console lines.
  - `factory`: `new_structured_logger`, `new_structured_logger_with_config`,
    `quick_logger`, `development_logger`, `production_logger`,
    `validate_logger_config`, and `wrap_existing_logger`, which gives any
    object with `debug`/`info`/`warn`/`error` methods the structured interface.
  - `service`: `LogCollectionService`, which reads the output streams of
    registered processes line by line in background threads, counts lines and
    bytes, and writes each line to the configured outputs (`StdoutWriter`,
    `FileWriter`).

## Installation

```
pip install .
```

Install the test extra with `pip install .[test]`, then run `pytest`.

## Collecting logs from a stream

```python
import io

from procman.logcollection.config import default_log_collection_config, default_process_log_config
from procman.logcollection.factory import quick_logger
from procman.logcollection.service import LogCollectionService, PathResolver
from procman.logcollection.types import LogLevel, StreamType

logger = quick_logger(LogLevel.INFO)
service = LogCollectionService(
    default_log_collection_config(), logger, PathResolver(log_directory="logs")
)
service.start()
try:
    service.register_process("web-server", default_process_log_config())
    service.collect_from_stream(
        "web-server", io.StringIO("ready\nserving\n"), StreamType.STDOUT
    )
    service.wait_idle(1.0)
    status = service.get_process_status("web-server")
    print(status.lines_processed, status.bytes_processed)  # 2 12
finally:
    service.stop()
```

A stream is any iterable of lines, `str` or `bytes`. Each line is written to
every global output as `[timestamp][process id][stream] message`.

Relative file targets, such as the default `aggregated.log`, are resolved
against the `PathResolver`'s log directory (`~/.procman/logs` unless another is
given); the directory is created on the first write. Absolute paths and
non-file targets are used as they are, and target types other than `file` all
write to standard output.

`collect_from_process(process_id, stdout, stderr)` starts readers for both
streams, as far as the process config captures them. `forward_logs(targets)`
adds a writer from each target's `create_writer()` to the outputs.
`get_system_status()` reports totals over all registered processes.

## Structured logging

```python
from procman.logcollection.factory import development_logger
from procman.logcollection.fields import managed_process, int_field
from procman.logcollection.types import LogLevel

log = development_logger()
log.log_with_fields(LogLevel.WARN, "Health check failed",
                    managed_process("db"), int_field("retry_count", 5))
log.with_process("db").info("restarting in %d seconds", 3)
```

`new_structured_logger` accepts the backend names `"zap"` and `""`; `"logrus"`
and `"slog"` raise `ValueError` as not available, and any other name raises
`ValueError` as unknown. The logger writes to standard error when the output
is `"stderr"` and to standard output otherwise, including when the output is
a file path.

## Errors

```python
from procman.domain_errors import not_found_error, is_not_found_error

err = not_found_error("process not registered", None).with_context("process_id", "web")
assert is_not_found_error(err)
print(err)  # not_found: process not registered: map[process_id:web]
```

## What this package does not do

It does not start, stop, attach to or supervise processes, run health checks
or apply restart policies: the restart and process state modules hold only
settings, records and validation. It has no command-line program. Log
collection writes plain lines only; the parsing, filtering, enhancement,
per-process files and rotation described in the configuration are not carried
out.