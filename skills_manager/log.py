"""
skills_manager.log

Application logging (console + rotating file) and the JSON-lines operations log
that records every filesystem mutation.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any

from skills_manager.config import APP_NAME, resolve_log_file, resolve_ops_log_file


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """
    function_purpose: Configure application-wide logging to both console and rotating file.

    - Creates the log directory if needed.
    - Sets formatter and levels.
    - Returns the configured application logger; calling it again is a no-op.
    """
    logger = logging.getLogger(APP_NAME)
    if logger.handlers:
        return logger
    logger.setLevel(level)

    log_file = resolve_log_file()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s [%(threadName)s]: %(message)s"
    )

    # Console handler (stderr, stdout belongs to the MCP transport)
    sh = logging.StreamHandler()
    sh.setLevel(level)
    sh.setFormatter(formatter)
    logger.addHandler(sh)

    # Rotating file handler (5 files, 5MB each)
    fh = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=5)
    fh.setLevel(level)
    fh.setFormatter(formatter)
    logger.addHandler(fh)

    logger.info("Logging initialized. File: %s", str(log_file))
    return logger


def log_operation(op: str, payload: dict[str, Any]) -> None:
    """
    function_purpose: Append a single JSON line describing a filesystem mutation.

    Used for link, unlink, delete-local and upload so that actions are auditable.
    """
    ts = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")
    record = {"ts": ts, "op": op}
    record.update(payload)

    ops_log_file = resolve_ops_log_file()
    try:
        ops_log_file.parent.mkdir(parents=True, exist_ok=True)
        with open(ops_log_file, "a", encoding="utf-8") as f:
            _ = f.write(json.dumps(record, ensure_ascii=False) + "\n")
    except OSError:
        # Logging must not break the main operation.
        logging.getLogger(APP_NAME).warning(
            "Failed to write operation log entry", exc_info=True
        )
