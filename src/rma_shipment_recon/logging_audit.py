# src/rma_shipment_recon/logging_audit.py

"""
Audit & session logging utilities.

Goals:
- Library modules log through `logging.getLogger(__name__)`, i.e. under the
  'rma_shipment_recon' namespace; they never configure handlers themselves.
- Hosts (the CLI, a web service) call setup_audit_logger() once to attach
  a rotating file handler and a console handler to that namespace.
- SessionLogger optionally records one NDJSON line per CLI operation
  (command, counts, errors) for later analysis.

Principles:
- DO NOT hardcode paths; the caller passes a base directory.
- Keep logging setup simple and explicit.
"""

from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from datetime import datetime
from typing import Optional, Dict, Any


LOGGER_NAMESPACE = "rma_shipment_recon"
DEFAULT_LOG_FILE_NAME = "rma_shipment_recon.log"
DEFAULT_SESSION_LOG_PREFIX = "session_"
MAX_BYTES = 1_000_000  # ~1 MB per file
BACKUP_COUNT = 5       # keep last 5 files

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_audit_logger(
    name: str = LOGGER_NAMESPACE,
    log_dir: Optional[Path] = None,
    level: int = logging.INFO,
    console: bool = True,
) -> logging.Logger:
    """
    Configure and return the package audit logger.

    Parameters
    ----------
    name:
        Logger name; defaults to the package namespace so that every
        module logger propagates into the configured handlers.
    log_dir:
        Directory for the rotating log file. If None, no file handler is added.
    level:
        Minimum log level to capture (default: INFO).
    console:
        Also log to stderr.

    Returns
    -------
    logging.Logger
        Configured logger instance.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid adding duplicate handlers if called multiple times.
    if logger.handlers:
        return logger

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            log_dir / DEFAULT_LOG_FILE_NAME,
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if console:
        stream = logging.StreamHandler()
        stream.setFormatter(formatter)
        logger.addHandler(stream)

    return logger


class SessionLogger:
    """
    One NDJSON file per CLI invocation, holding the command outcome.

    Each line carries the session id so runs from several files can be
    concatenated and still told apart.
    """

    def __init__(self, file_path: Path, session_id: str) -> None:
        self.file_path = file_path
        self.session_id = session_id
        self._file = self.file_path.open("a", encoding="utf-8")

    @classmethod
    def create(cls, base_dir: Path) -> "SessionLogger":
        base_dir.mkdir(parents=True, exist_ok=True)
        session_id = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        return cls(base_dir / f"{DEFAULT_SESSION_LOG_PREFIX}{session_id}.ndjson", session_id)

    def log(self, level: str, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        """
        Append one line: timestamp, session id, level, message and optional `extra`.

        Values in `extra` that JSON cannot encode (dates, enums) are written via str().
        """
        entry: Dict[str, Any] = {
            "timestamp": datetime.now().isoformat(timespec="seconds"),
            "session_id": self.session_id,
            "level": level.upper(),
            "message": message,
        }
        if extra:
            entry["extra"] = extra
        self._file.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")
        self._file.flush()

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    def __enter__(self) -> "SessionLogger":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
