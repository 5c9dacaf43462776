"""Batch export manager — background rendering of many pieces with progress and cancel."""

import json
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import sentry_sdk

from diagnostics import piece_of
from engine.config import ShardConfig
from engine.generator import generate_from_config
from engine.metadata import build_metadata

logger = logging.getLogger(__name__)


class ExportStatus(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    ERROR = "error"


def output_stem(config: ShardConfig) -> str:
    return f"shard-{config.short_id}"


@dataclass
class ExportJob:
    """Tracks state of a background batch export."""

    status: ExportStatus = ExportStatus.IDLE
    current_item: int = 0
    total_items: int = 0
    error: str | None = None
    output_dir: str = ""
    written: list[str] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock)
    _cancel_event: threading.Event = field(default_factory=threading.Event)
    _thread: threading.Thread | None = field(default=None, repr=False)

    @property
    def progress(self) -> float:
        if self.total_items == 0:
            return 0.0
        return self.current_item / self.total_items

    def cancel(self):
        self._cancel_event.set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the worker thread exits. Returns False on timeout."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()


class ExportManager:
    """Manages background export jobs. One job at a time."""

    def __init__(self):
        self._job: ExportJob | None = None

    @property
    def job(self) -> ExportJob | None:
        return self._job

    def start(self, configs: list[ShardConfig], output_dir: str) -> ExportJob:
        """Start a background export. Returns the job for status tracking.

        Each piece gets `shard-<sha8>.svg` and `shard-<sha8>.json` in
        output_dir. Configs must already be validated.

        Raises:
            RuntimeError: If an export is already running.
        """
        if self._job is not None and self._job.status == ExportStatus.RUNNING:
            raise RuntimeError("Export already in progress")

        job = ExportJob(output_dir=output_dir, total_items=len(configs))
        self._job = job

        thread = threading.Thread(
            target=self._run_export,
            args=(job, list(configs), Path(output_dir)),
            daemon=True,
        )
        job._thread = thread
        job.status = ExportStatus.RUNNING
        thread.start()

        return job

    def _run_export(self, job: ExportJob, configs: list[ShardConfig], out: Path):
        current: ShardConfig | None = None
        try:
            for i, config in enumerate(configs):
                current = config
                if job._cancel_event.is_set():
                    with job._lock:
                        job.status = ExportStatus.CANCELLED
                    logger.info("Export cancelled after %d/%d", i, len(configs))
                    return

                result = generate_from_config(config)
                metadata = build_metadata(config, result.traits)

                stem = output_stem(config)
                svg_path = out / f"{stem}.svg"
                json_path = out / f"{stem}.json"
                payload = json.dumps(metadata, indent=2, ensure_ascii=False)
                svg_path.write_text(result.document, encoding="utf-8")
                try:
                    json_path.write_text(payload, encoding="utf-8")
                except OSError:
                    # A piece is written as a pair or not at all
                    svg_path.unlink(missing_ok=True)
                    raise

                with job._lock:
                    job.current_item = i + 1
                    job.written.append(str(svg_path))

            with job._lock:
                job.status = ExportStatus.COMPLETE
            logger.info("Exported %d pieces to %s", len(configs), out)

        except Exception as e:
            sentry_sdk.capture_exception(e)
            piece = piece_of(e)
            if current is not None:
                piece.setdefault("short_id", current.short_id)
            logger.exception("Export failed", extra=piece)
            with job._lock:
                job.status = ExportStatus.ERROR
                job.error = f"Export failed: {type(e).__name__}"

    def get_status(self) -> dict:
        """Return serializable status dict."""
        if self._job is None:
            return {
                "status": ExportStatus.IDLE.value,
                "progress": 0.0,
                "current_item": 0,
                "total_items": 0,
            }
        with self._job._lock:
            return {
                "status": self._job.status.value,
                "progress": round(self._job.progress, 4),
                "current_item": self._job.current_item,
                "total_items": self._job.total_items,
                "output_dir": self._job.output_dir,
                "error": self._job.error,
            }

    def cancel(self) -> bool:
        """Cancel the running export. Returns True if a job was cancelled."""
        if self._job is None:
            return False
        with self._job._lock:
            if self._job.status == ExportStatus.RUNNING:
                self._job.cancel()
                return True
        return False
