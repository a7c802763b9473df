from __future__ import annotations

import os
import sys
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from loguru import Logger

from loguru import logger

DEFAULT_LOG_DIR = os.environ.get("STAGEGEN_LOG_DIR")

# Note: TRACE level already exists in loguru at level 5 (below DEBUG which is 10)


def _should_log_record_dump(record) -> bool:
    """Hide full option record dumps unless tracing."""
    tags = record["extra"].get("tags", [])
    if "dump" in tags:
        return record["level"].no <= logger.level("TRACE").no
    return True


def setup_logging(
    *,
    debug: bool = False,
    trace: bool = False,
    log_dir: Path | None = None,
) -> Logger:
    """
    Setup logging for the stage generator CLI.

    Logging Tiers:
    - CRITICAL: Invariant violations, generation aborted
    - ERROR: Rejected build requests
    - SUCCESS/INFO: Stages rendered
    - DEBUG: Per-generator decisions (boot partition, prefix, EFI tokens)
    - TRACE: Full option records

    Log Files (only when a log directory is configured):
    - operations.log: INFO+ events (7 day retention)
    - structured.jsonl: Structured JSON logs for analysis (7 day retention)

    Args:
        debug: Enable DEBUG level logging
        trace: Enable TRACE level logging (very verbose)
        log_dir: Log directory (defaults to $STAGEGEN_LOG_DIR, unset means
            console only)
    """
    logger.remove()
    logger.configure(extra={"job_id": "-", "tags": [], "source": "APP"})

    if trace:
        console_level = "TRACE"
    elif debug:
        console_level = "DEBUG"
    else:
        console_level = "INFO"

    # SINK 1: Console (stderr), stdout is reserved for rendered stages
    logger.add(
        sys.stderr,
        level=console_level,
        backtrace=False,
        diagnose=False,
        filter=_should_log_record_dump,
        colorize=True,
        format=(
            "<green>{time:HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[source]: <12}</cyan> | "
            "<blue>{extra[job_id]: <15}</blue> | "
            "{message}"
        ),
    )

    if log_dir is None and DEFAULT_LOG_DIR:
        log_dir = Path(DEFAULT_LOG_DIR)
    if log_dir is None:
        return logger
    log_dir.mkdir(parents=True, exist_ok=True)

    # SINK 2: Operations Log - Important events only (INFO+)
    logger.add(
        log_dir / "operations.log",
        level="INFO",
        rotation="5 MB",
        retention="7 days",
        compression="zip",
        backtrace=False,
        diagnose=False,
        format=(
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
            "{level: <8} | "
            "{extra[source]: <12} | "
            "{extra[job_id]: <15} | "
            "{message}"
        ),
    )

    # SINK 3: Structured JSON Log - For analysis tools (INFO+)
    logger.add(
        log_dir / "structured.jsonl",
        level="INFO",
        rotation="10 MB",
        retention="7 days",
        compression="zip",
        serialize=True,
        format="{message}",
    )

    return logger


def get_logger(
    *,
    job_id: str | None = None,
    tags: Iterable[str] | None = None,
    source: str | None = None,
) -> Logger:
    """
    Get a logger with bound context.

    Args:
        job_id: Job identifier for tracking a render run
        tags: Tags for filtering (e.g., ["disk", "mounts"])
        source: Source component (e.g., "disk", "iso", "cli")

    Returns:
        Logger with bound context
    """
    extras: dict[str, object] = {}
    if job_id is not None:
        extras["job_id"] = job_id
    if tags is not None:
        extras["tags"] = list(tags)
    if source is not None:
        extras["source"] = source
    return logger.bind(**extras)


@contextmanager
def operation_context(operation: str, **details):
    """
    Context manager for tracking an operation with automatic timing.

    Logs operation start, completion, and failure with duration tracking.

    Args:
        operation: Operation name (e.g., "render")
        **details: Operation-specific details to log

    Yields:
        Logger bound with job_id and operation context

    Example:
        with operation_context("render", request="build.json") as log:
            stages = build_stages(context, requests)
            log.info(f"Rendered {len(stages)} stages")
    """
    job_id = f"{operation}-{uuid.uuid4().hex[:8]}"

    with logger.contextualize(job_id=job_id, operation=operation, **details):
        start_time = time.time()
        log = logger.bind(source=operation, job_id=job_id, tags=[operation])

        log.info(f"{operation.capitalize()} started", **details)

        try:
            yield log
            duration = time.time() - start_time
            log.success(
                f"{operation.capitalize()} completed", duration_seconds=round(duration, 2)
            )
        except Exception as e:
            duration = time.time() - start_time
            log.error(
                f"{operation.capitalize()} failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_seconds=round(duration, 2),
            )
            raise


class LoggerFactory:
    """
    Factory for creating domain-specific loggers with automatic context.

    Each factory method returns a logger pre-configured with appropriate
    source and tags for the generator family.
    """

    @staticmethod
    def for_disk() -> Logger:
        """Logger for partition, device and mount resolution."""
        return get_logger(source="disk", tags=["disk", "mounts"])

    @staticmethod
    def for_bootloader() -> Logger:
        """Logger for grub2/zipl stage generation."""
        return get_logger(source="bootloader", tags=["bootloader"])

    @staticmethod
    def for_installer() -> Logger:
        """Logger for kickstart, anaconda, lorax and dracut options."""
        return get_logger(source="installer", tags=["installer"])

    @staticmethod
    def for_iso() -> Logger:
        """Logger for bootable ISO options."""
        return get_logger(source="iso", tags=["iso"])

    @staticmethod
    def for_users() -> Logger:
        """Logger for user and group provisioning."""
        return get_logger(source="users", tags=["users"])

    @staticmethod
    def for_registry(job_id: str | None = None) -> Logger:
        """Logger for stage dispatch."""
        if job_id is None:
            job_id = f"stages-{uuid.uuid4().hex[:8]}"
        return get_logger(job_id=job_id, source="registry", tags=["registry"])

    @staticmethod
    def for_system() -> Logger:
        """Logger for system operations (startup, config, CLI)."""
        return get_logger(source="system", tags=["system"])
