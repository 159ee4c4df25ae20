# logging setup shared by every entry point (cli, http server)
# modules log event names ("reload_finished") and pass details through extra= with
# dotted keys ("file.path", "reload.cities"); the formatter appends them to the line

from __future__ import annotations
import logging
from typing import List, Optional

# attributes every LogRecord carries, anything else came in through extra=
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime", "component"}

# third-party loggers that are too noisy at INFO level
NOISY_LOGGERS = ["uvicorn.access", "urllib3", "httpx", "httpcore"]

class ExtraFieldsFormatter(logging.Formatter):
    # shortens the logger name to a component and appends extra fields

    def format(self, record: logging.LogRecord) -> str:
        parts = record.name.split(".")
        record.component = parts[1] if len(parts) >= 2 and parts[0] == "tempavg" else parts[0]
        line = super().format(record)
        fields = {k: v for k, v in vars(record).items() if k not in _RESERVED}
        if fields:
            line += " | " + " ".join(f"{k}={v}" for k, v in sorted(fields.items()))
        return line

def configure_logging(level: Optional[str] = "INFO") -> None:
    # installs one console handler on the root logger, call once at startup
    # unknown level names fall back to INFO
    level = (level or "INFO").upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        level = "INFO"

    handler = logging.StreamHandler()
    handler.setFormatter(
        ExtraFieldsFormatter(
            "%(asctime)s | %(levelname)-8s | %(component)s | %(message)s",
            datefmt="%H:%M:%S",
        )
    )

    root = logging.getLogger()
    # replace earlier handlers so repeated calls do not duplicate lines
    for old in list(root.handlers):
        root.removeHandler(old)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level))

    quiet: List[str] = NOISY_LOGGERS if level != "DEBUG" else []
    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)
