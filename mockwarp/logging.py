import logging
import sys
import json
from typing import Dict, Any
from datetime import datetime, timezone


# Custom JSON formatter for structured logging
class JsonFormatter(logging.Formatter):
    """
    Renders mockwarp log records as one JSON object per line.

    Request handling logs resolved mock directories, parsed status lines,
    headers and delays at debug level, and missing or broken mock files at
    error level. Each object carries the timestamp, level, logger name,
    message, pathname and line number, plus the traceback for errors raised
    while compiling or dispatching a mock.
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Serializes one record, e.g. a "Delay Set 500" debug line from the
        compiler or a "No suitable mock file found" error.
        """
        log_record: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "pathname": record.pathname,
            "lineno": record.lineno,
        }
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record)


def setup_logging(level: str = "DEBUG") -> logging.Logger:
    """
    Configures the "mockwarp" logger shared by the engine and the app.

    Logs go to stdout as JSON. The module import sets up DEBUG so that mock
    parsing is traceable from the first request; the app lifespan calls this
    again with `Settings.log_level`, replacing the handler rather than
    adding a second one.
    """
    logger = logging.getLogger("mockwarp")
    logger.setLevel(level.upper())

    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JsonFormatter())
    logger.addHandler(console_handler)

    return logger


logger = setup_logging()
