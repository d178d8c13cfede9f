# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Logging bootstrap for Block Vault.

Handlers, formats and rotation are declared in etc/logging.conf.  Two knobs
come from the application settings instead:

* ``LOG_DIR``   – where app.log is written (default: <project>/log)
* ``LOG_LEVEL`` – overrides the level of the ``blockvault`` logger

Components ask for a child logger so each line names its source:

    from core.logger import get_logger
    _log = get_logger("blocks")        # -> "blockvault.blocks"
"""

import logging
import logging.config
from pathlib import Path
from typing import Optional

from core.config import settings

APP_LOGGER = "blockvault"

_PROJECT_ROOT = Path(__file__).resolve().parents[2]
_LOGGING_CONF = _PROJECT_ROOT / "etc" / "logging.conf"


def log_file_path(log_dir: Optional[str] = None) -> Path:
    directory = Path(log_dir) if log_dir else _PROJECT_ROOT / "log"
    return directory / "app.log"


def configure_logging(
    conf_path: Path = _LOGGING_CONF,
    log_dir: Optional[str] = None,
    level: Optional[str] = None,
) -> logging.Logger:
    """
    Apply *conf_path* and return the application logger.

    fileConfig interpolates ``%(log_file)s`` in handler args from *defaults*;
    format strings are read raw, so ``%(asctime)s`` needs no escaping.
    """
    log_file = log_file_path(log_dir)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.config.fileConfig(
        str(conf_path),
        defaults={"log_file": log_file.as_posix()},
        disable_existing_loggers=False,
        encoding="utf-8",
    )

    app_logger = logging.getLogger(APP_LOGGER)
    if level:
        app_logger.setLevel(level.upper())
    return app_logger


def get_logger(component: str) -> logging.Logger:
    return logger.getChild(component)


logger = configure_logging(log_dir=settings.log_dir, level=settings.log_level)
