"""
Logging setup for scripts and host loops embedding the pipeline.
"""

from pathlib import Path
import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def setup_logging(level: str = "INFO", log_file: str | Path | None = None) -> None:
    """Configure root logging.

    Args:
        level: Logging level name (DEBUG shows per-tick summaries)
        log_file: Optional file to log to in addition to stdout
    """
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
