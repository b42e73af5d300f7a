import logging
import sys
from app.core.config import settings

def setup_logging():
    """
    Configure the application logger.

    Every module logs through the single "saudeagenda" logger so that one
    handler and one level govern request, admission and datastore messages.
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logger = logging.getLogger("saudeagenda")
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    ))

    if not logger.handlers:
        logger.addHandler(handler)

    return logger

logger = setup_logging()
