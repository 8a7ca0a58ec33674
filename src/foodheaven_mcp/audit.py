import logging
import os
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


def audit_log(path: str, message: str) -> None:
    """Append an entry to the order audit log."""
    try:
        log_dir = os.path.dirname(path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        with open(path, "a") as f:
            f.write(f"{timestamp} | {message}\n")
    except OSError as e:
        logger.warning(f"Failed to write audit log: {e}")
