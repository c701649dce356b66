import logging
import sys
from typing import Dict, Optional, Union

from tqdm import tqdm

LevelSpec = Union[str, int]

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s"


class LogWithTqdm(logging.Handler):
    """
    Logging handler that writes through `tqdm.write()` so log lines emitted
    during a scan do not tear the progress bar.
    """
    def emit(self, record):
        try:
            msg = self.format(record)
            tqdm.write(msg, file=sys.stderr)
            self.flush()
        except Exception:
            self.handleError(record)


def _to_level(level: LevelSpec, fallback: int) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), fallback)
    return level


def configure_logger(
        general_level: LevelSpec = "INFO",
        module_specific_levels: Optional[Dict[str, LevelSpec]] = None,
        silenced_loggers: Optional[Dict[str, LevelSpec]] = None
) -> logging.Handler:
    """
    Configures the root logger with a single tqdm-aware handler.

    Args:
        general_level: Level for the root logger (name or int).
        module_specific_levels: Per-logger levels, e.g. {"a11y_auditor.engine": "DEBUG"}.
        silenced_loggers: Loggers to muzzle; names default to CRITICAL when unknown.

    Returns:
        The installed handler.
    """
    handler = LogWithTqdm()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root_logger = logging.getLogger()
    root_logger.setLevel(_to_level(general_level, logging.INFO))
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name, level in (module_specific_levels or {}).items():
        logging.getLogger(name).setLevel(_to_level(level, logging.INFO))

    for name, level in (silenced_loggers or {}).items():
        logging.getLogger(name).setLevel(_to_level(level, logging.CRITICAL))

    return handler
