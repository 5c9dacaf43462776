"""Diagnostics — per-piece log context, JSON log file, crash dumps.

While a piece is being generated, every log record carries the piece's
short id and canvas size, plus the layer being composed once the pipeline
reaches the layers. An exception escaping a generation is tagged with the
same context, so both the log line and the crash dump name the piece that
triggered it.

Files live under ~/.commit-shards:
    logs/shards.log          JSON lines, rotated
    logs/shards_fault.log    faulthandler output (never rotated)
    crash_reports/           one PII-stripped JSON file per unhandled exception
"""

import contextlib
import contextvars
import datetime
import faulthandler
import json
import logging
import logging.handlers
import os
import sys
import time
import traceback
from dataclasses import dataclass
from pathlib import Path

from _version import __version__
from security import strip_pii

logger = logging.getLogger(__name__)

APP_HOME = "~/.commit-shards"
LOG_NAME = "shards.log"
FAULT_LOG_NAME = "shards_fault.log"
CRASH_PREFIX = "crash_"

MAX_CRASH_REPORTS = 5
MAX_LOG_AGE_DAYS = 7
LOG_MAX_BYTES = 10_000_000
LOG_BACKUPS = 7

# Record attributes copied into each JSON line when set
PIECE_FIELDS = (
    "short_id",
    "canvas_size",
    "layer_id",
    "draws",
    "elements",
    "elapsed_ms",
)

_piece: contextvars.ContextVar[dict | None] = contextvars.ContextVar(
    "shard_piece", default=None
)


def app_home() -> str:
    return os.path.expanduser(APP_HOME)


# --- Piece context ---


@contextlib.contextmanager
def piece_context(short_id: str, canvas_size: int):
    """Tag logs, and any exception that escapes, with the piece being generated.

    Context is per thread (and per asyncio task), so concurrent generations
    never see each other's ids.
    """
    ctx = {"short_id": short_id, "canvas_size": canvas_size}
    token = _piece.set(ctx)
    try:
        yield ctx
    except Exception as e:
        # Innermost context wins; nested generations keep the first tag
        if getattr(e, "shard_piece", None) is None:
            e.shard_piece = dict(ctx)
        raise
    finally:
        _piece.reset(token)


def current_piece() -> dict | None:
    ctx = _piece.get()
    return dict(ctx) if ctx is not None else None


def set_current_layer(layer_id: str | None):
    """Record which layer the current piece is composing (None when done)."""
    ctx = _piece.get()
    if ctx is not None:
        ctx["layer_id"] = layer_id


def piece_of(exc: BaseException) -> dict:
    """Context attached by piece_context, or {} for exceptions raised elsewhere."""
    return dict(getattr(exc, "shard_piece", None) or {})


class PieceContextFilter(logging.Filter):
    """Copy the current piece context onto records that don't set it themselves."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = _piece.get()
        if ctx:
            for key, value in ctx.items():
                if not hasattr(record, key):
                    setattr(record, key, value)
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with piece fields when present."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.datetime.fromtimestamp(
                record.created, tz=datetime.timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in PIECE_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value
        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            entry["exception"] = {
                "type": type(exc).__name__,
                "traceback": self.formatException(record.exc_info),
            }
            for key, value in piece_of(exc).items():
                entry.setdefault(key, value)
        return json.dumps(entry, default=str)


# --- Files ---


@dataclass(frozen=True)
class LogSettings:
    """Where and how verbosely to log. Read from APP_LOG_DIR / APP_LOG_LEVEL."""

    log_dir: str
    level: int = logging.INFO

    @classmethod
    def from_env(cls, environ=None) -> "LogSettings":
        environ = os.environ if environ is None else environ
        level = logging.getLevelName(environ.get("APP_LOG_LEVEL", "INFO").upper())
        if not isinstance(level, int):
            level = logging.INFO
        log_dir = resolve_log_dir(environ.get("APP_LOG_DIR", ""))
        return cls(log_dir=log_dir, level=level)


def resolve_log_dir(requested: str) -> str:
    """The requested dir if it lies inside the app home, otherwise <home>/logs."""
    home = os.path.realpath(app_home())
    if requested:
        resolved = os.path.realpath(requested)
        if resolved == home or resolved.startswith(home + os.sep):
            return resolved
        logger.warning("APP_LOG_DIR outside %s, using default", APP_HOME)
    return os.path.join(home, "logs")


def _prune(directory: str, pattern: str, keep: int | None = None, max_age_days=None):
    """Delete matching files beyond the newest `keep`, or older than max_age_days."""
    try:
        files = sorted(
            Path(directory).glob(pattern), key=lambda f: f.stat().st_mtime, reverse=True
        )
        doomed = files[keep:] if keep is not None else []
        if max_age_days is not None:
            cutoff = time.time() - max_age_days * 86400
            doomed += [f for f in files if f.stat().st_mtime < cutoff]
        for f in doomed:
            f.unlink(missing_ok=True)
    except OSError as e:
        logger.debug("Pruning %s in %s skipped: %s", pattern, directory, e)


def build_log_handler(settings: LogSettings) -> logging.Handler:
    os.makedirs(settings.log_dir, mode=0o700, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        os.path.join(settings.log_dir, LOG_NAME),
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUPS,
    )
    handler.setFormatter(JSONFormatter())
    handler.addFilter(PieceContextFilter())
    return handler


def setup_structured_logging(settings: LogSettings | None = None) -> str:
    """Attach the JSON file handler to the root logger. Returns the log dir."""
    settings = settings or LogSettings.from_env()
    root = logging.getLogger()
    root.setLevel(settings.level)
    root.addHandler(build_log_handler(settings))
    _prune(settings.log_dir, f"{LOG_NAME}*", max_age_days=MAX_LOG_AGE_DAYS)
    return settings.log_dir


def setup_faulthandler(log_dir: str):
    """C-level crash tracebacks, in their own file so rotation can't close the fd."""
    fault_path = os.path.join(log_dir, FAULT_LOG_NAME)
    try:
        fault_file = open(fault_path, "a", buffering=1)  # noqa: SIM115
        os.chmod(fault_path, 0o600)
        faulthandler.enable(file=fault_file, all_threads=True)
    except OSError as e:
        print(f"WARNING: Could not enable faulthandler: {e}", file=sys.stderr)


# --- Crash dumps ---


def build_crash_report(exc_type, exc_value, exc_tb, timestamp: str) -> dict:
    """PII-stripped crash data for one unhandled exception."""
    crash_data = {
        "timestamp": timestamp,
        "app_version": __version__,
        "exception_type": exc_type.__name__ if exc_type else "Unknown",
        "exception_message": str(exc_value),
        "piece": piece_of(exc_value) if exc_value is not None else {},
        "traceback": traceback.format_exception(exc_type, exc_value, exc_tb),
        "python_version": sys.version,
        "platform": sys.platform,
    }
    # strip_pii works on Sentry events; wrap the dict as an event's extra
    sanitized = strip_pii({"extra": crash_data}, {})
    return sanitized.get("extra", crash_data)


def crash_report_name(timestamp: str, piece: dict) -> str:
    short_id = piece.get("short_id")
    suffix = f"_{short_id}" if short_id else ""
    return f"{CRASH_PREFIX}{timestamp}{suffix}.json"


def write_crash_report(crash_dir: str, exc_type, exc_value, exc_tb) -> str:
    """Write one crash dump (mode 0600), prune old ones, return its path."""
    os.makedirs(crash_dir, mode=0o700, exist_ok=True)
    timestamp = datetime.datetime.now(tz=datetime.timezone.utc).strftime(
        "%Y%m%dT%H%M%SZ"
    )
    report = build_crash_report(exc_type, exc_value, exc_tb, timestamp)
    crash_path = os.path.join(crash_dir, crash_report_name(timestamp, report["piece"]))

    old_umask = os.umask(0o077)
    try:
        with open(crash_path, "w") as f:
            json.dump(report, f, indent=2)
    finally:
        os.umask(old_umask)

    _prune(crash_dir, f"{CRASH_PREFIX}*.json", keep=MAX_CRASH_REPORTS)
    return crash_path


def setup_excepthook(crash_dir: str | None = None):
    """Install sys.excepthook that writes a crash dump, then defers to the default."""
    crash_dir = crash_dir or os.path.join(app_home(), "crash_reports")

    def _crash_excepthook(exc_type, exc_value, exc_tb):
        try:
            write_crash_report(crash_dir, exc_type, exc_value, exc_tb)
        except Exception as e:
            print(f"WARNING: Could not write crash report: {e}", file=sys.stderr)
        sys.__excepthook__(exc_type, exc_value, exc_tb)

    sys.excepthook = _crash_excepthook


def init_diagnostics(settings: LogSettings | None = None):
    """Initialize logging, faulthandler and crash dumps. Call from main.py."""
    log_dir = setup_structured_logging(settings)
    setup_faulthandler(log_dir)
    setup_excepthook()
    logger.info("Diagnostics initialized: logging=%s, version=%s", log_dir, __version__)
