import logging
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


def read_template(path: Union[str, Path]) -> Optional[str]:
    """
    Reads a template file as UTF-8 text.

    A file that cannot be read or decoded is treated as absent: the failure is
    logged and None is returned, the scan goes on without it.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read template %s: %s", path, e)
        return None
