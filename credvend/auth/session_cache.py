"""Locally cached authentication session."""

from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)


def delete_local_session(path: Path) -> None:
    """Delete the cached session file so the next run re-authenticates.

    A missing file is not an error. Other OS errors propagate.
    """
    try:
        path.unlink()
    except FileNotFoundError:
        logger.debug("No cached session to delete", path=str(path))
        return
    logger.info("Deleted cached session", path=str(path))
