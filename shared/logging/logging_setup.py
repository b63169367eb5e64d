from datetime import datetime
from pytz import timezone
import logging.config
import logging
import os


debug_mode = os.getenv("LOG_LEVEL", "info").lower() == "debug"
loglevel = logging.DEBUG if debug_mode else logging.INFO

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

_ANSI_RESET = "\033[0m"
_ANSI_COLORS: dict[str, str] = {
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "red": "\033[31m",
    "magenta": "\033[35m",
    "blue": "\033[34m",
    "white": "\033[37m",
}
# used on the console when a record carries no explicit color
_LEVEL_COLORS: dict[int, str] = {
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "red",
}


def _level_marker(levelno: int) -> str:
    if levelno >= logging.ERROR:
        return "⛔ "
    if levelno == logging.WARNING:
        return "⚠️ "
    return ""


class PdfParserFilter(logging.Filter):
    """Drops PyPDF2 chatter below ERROR (it warns on every slightly malformed object)."""

    def filter(self, record: logging.LogRecord) -> bool:
        return not (record.name.startswith("PyPDF2") and record.levelno < logging.ERROR)


class TimezoneFormatter(logging.Formatter):
    """Renders timestamps in ``tz_name`` and prefixes warnings and errors with a marker."""

    def __init__(self, tz_name: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, self.tz)
        return dt.strftime(datefmt) if datefmt else dt.isoformat()

    def format(self, record: logging.LogRecord) -> str:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # broken format args, keep the raw template instead of losing the record
            message = str(record.msg)
        # every handler formats the same record, so work on a copy
        rendered = logging.makeLogRecord({**record.__dict__, "msg": _level_marker(record.levelno) + message, "args": ()})
        return super().format(rendered)


class ColoredFormatter(TimezoneFormatter):
    """Console formatter. Uses the record's ``color`` attribute, else a per-level default."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        color_name = getattr(record, "color", None) or _LEVEL_COLORS.get(record.levelno)
        ansi = _ANSI_COLORS.get(color_name or "")
        return f"{ansi}{line}{_ANSI_RESET}" if ansi else line


class ColorLogger(logging.LoggerAdapter):
    """Logger adapter accepting an optional ``color=`` keyword on every log call.

    Usage::

        logger.info("document stored", color="green")

    The color only reaches the console handler; the log file stays plain text.
    """

    def __init__(self, logger: logging.Logger):
        super().__init__(logger, extra=None)

    def process(self, msg, kwargs):
        color = kwargs.pop("color", None)
        if color:
            kwargs["extra"] = {**(kwargs.get("extra") or {}), "color": color}
        return msg, kwargs


def _build_config(log_file: str, tz_name: str) -> dict:
    def formatter(cls: type) -> dict:
        return {"()": cls, "format": LOG_FORMAT, "datefmt": LOG_DATEFMT, "tz_name": tz_name}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": formatter(TimezoneFormatter),
            "colored": formatter(ColoredFormatter),
        },
        "filters": {
            "pdf_parser": {"()": PdfParserFilter},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "colored",
                "level": loglevel,
                "stream": "ext://sys.stdout",
                "filters": ["pdf_parser"],
            },
            "file": {
                "class": "logging.FileHandler",
                "formatter": "plain",
                "level": loglevel,
                "filename": log_file,
                "encoding": "utf-8",
                "filters": ["pdf_parser"],
            },
        },
        "root": {
            "handlers": ["console", "file"],
            "level": loglevel,
        },
    }


def setup_logging() -> ColorLogger:
    """Configure console and file logging and return the application logger.

    Logs go to stdout and to ``$ROOT_DIR/logs/app.log``.
    """
    log_dir = os.path.join(os.getenv("ROOT_DIR") or os.getcwd(), "logs")
    os.makedirs(log_dir, exist_ok=True)

    logging.config.dictConfig(
        _build_config(os.path.join(log_dir, "app.log"), os.getenv("TIMEZONE", "Europe/Berlin"))
    )

    # httpx logs every request at info level
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug_mode else logging.WARNING)

    return ColorLogger(logging.getLogger("doc_qa_bridge"))
