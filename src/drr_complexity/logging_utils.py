"""
JSONL structured logging for the analysis scripts.

Each script run gets a run ID and its own log file under logs/, so every
exported table and figure can be traced back to the run that produced it.
"""
import json
import logging
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from drr_complexity.paths import LOGS_DIR

PACKAGE_LOGGER = "drr_complexity"


def generate_run_id() -> str:
    """Generate unique run ID: YYYYMMDD_HHMMSS_<8-char-uuid>"""
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    short_uuid = uuid.uuid4().hex[:8]
    return f"{timestamp}_{short_uuid}"


class JSONLHandler(logging.Handler):
    """Logging handler that appends one JSON object per record."""

    def __init__(self, log_path: Path, run_id: str):
        super().__init__()
        self.log_path = log_path
        self.run_id = run_id
        self._file = None

    def _ensure_file(self):
        if self._file is None:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.log_path, "a", encoding="utf-8")

    def emit(self, record: logging.LogRecord):
        try:
            self._ensure_file()
            entry = {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "run_id": self.run_id,
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
            }
            for field in ("event_type", "context"):
                if hasattr(record, field):
                    entry[field] = getattr(record, field)

            self._file.write(json.dumps(entry, default=str) + "\n")
            self._file.flush()
        except Exception:
            self.handleError(record)

    def close(self):
        if self._file:
            self._file.close()
            self._file = None
        super().close()


# Set once per script execution
_RUN_ID: str | None = None


def get_run_id() -> str:
    global _RUN_ID
    if _RUN_ID is None:
        _RUN_ID = generate_run_id()
    return _RUN_ID


def get_logger(script_name: str) -> logging.Logger:
    """
    Get or create the logger for a pipeline script.

    Handlers sit on the package logger, so records from library modules
    (drr_complexity.cleaning, ...) land in the same run log. INFO and above
    go to stdout; everything goes to logs/<script>_<run_id>.jsonl.
    """
    run_id = get_run_id()
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(logging.DEBUG)

    if not package_logger.handlers:
        console = logging.StreamHandler(sys.stdout)
        console.setLevel(logging.INFO)
        console.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        package_logger.addHandler(console)

        jsonl_handler = JSONLHandler(LOGS_DIR / f"{script_name}_{run_id}.jsonl", run_id)
        jsonl_handler.setLevel(logging.DEBUG)
        package_logger.addHandler(jsonl_handler)

    return logging.getLogger(f"{PACKAGE_LOGGER}.{script_name}")


def _event(logger: logging.Logger, level: int, msg: str, event_type: str, **context: Any) -> None:
    logger.log(level, msg, extra={"event_type": event_type, "context": context})


def log_step_start(logger: logging.Logger, step_name: str, **context: Any) -> None:
    """Log the start of a processing step."""
    _event(logger, logging.INFO, f"Starting: {step_name}", "step_start", step_name=step_name, **context)


def log_step_end(logger: logging.Logger, step_name: str, **context: Any) -> None:
    """Log the completion of a processing step."""
    _event(logger, logging.INFO, f"Completed: {step_name}", "step_end", step_name=step_name, **context)


def log_output_written(
    logger: logging.Logger, path: Path, row_count: int | None = None, **context: Any
) -> None:
    """Log that a table or figure was written."""
    msg = f"Output written: {path}"
    if row_count:
        msg += f" ({row_count:,} rows)"
    _event(logger, logging.INFO, msg, "output_written", path=str(path), row_count=row_count, **context)


def log_qa_check(
    logger: logging.Logger, check_name: str, passed: bool, details: str | None = None
) -> None:
    """Log a QA check result (ERROR level when it fails)."""
    status = "PASSED" if passed else "FAILED"
    msg = f"QA Check [{check_name}]: {status}"
    if details:
        msg += f" - {details}"
    _event(
        logger,
        logging.INFO if passed else logging.ERROR,
        msg,
        "qa_check",
        check_name=check_name,
        passed=passed,
        details=details,
    )


def log_test_result(
    logger: logging.Logger,
    test_name: str,
    statistic: float,
    p_value: float,
    **context: Any,
) -> None:
    """Log the outcome of a statistical test."""
    _event(
        logger,
        logging.INFO,
        f"{test_name}: statistic={statistic:.4f}, p={p_value:.4g}",
        "stat_test",
        test_name=test_name,
        statistic=statistic,
        p_value=p_value,
        **context,
    )
