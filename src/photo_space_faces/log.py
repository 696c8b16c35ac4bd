"""Logging helpers shared by the batch CLIs."""

import logging
import uuid

from rich.logging import RichHandler


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger to render through rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # botocore and httpx are chatty at INFO
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def new_run_id() -> str:
    """Short random id used to correlate the log lines of one batch run."""
    return uuid.uuid4().hex[:8]


class RunLogger(logging.LoggerAdapter):
    """Prefix every record with the run id it belongs to."""

    def __init__(self, logger: logging.Logger, run_id: str) -> None:
        super().__init__(logger, {"run_id": run_id})
        self.run_id = run_id

    def process(self, msg, kwargs):
        return f"run={self.run_id} {msg}", kwargs
