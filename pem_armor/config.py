# --- File: pem_armor/config.py ---
import os
import logging
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

# --- Logging Settings ---
LOG_LEVEL = os.getenv("PEM_ARMOR_LOG_LEVEL", "WARNING").upper()
LOG_FORMAT = os.getenv("PEM_ARMOR_LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")

# --- CLI Settings ---
MAX_INPUT_BYTES = int(os.getenv("PEM_ARMOR_MAX_INPUT_BYTES", str(1024 * 1024)))


def configure_logging(level: Optional[str] = None):
    """Applies the configured level and format to the root logger. Called by the CLI only."""
    level_name = (level or LOG_LEVEL).upper()
    numeric_level = getattr(logging, level_name, None)
    known_level = isinstance(numeric_level, int)
    if not known_level:
        numeric_level = logging.WARNING
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    logger = logging.getLogger(__name__)
    if not known_level:
        logger.warning(f"Unknown log level '{level_name}', falling back to WARNING.")
    logger.debug(f"Logging configured at level {logging.getLevelName(numeric_level)}.")
