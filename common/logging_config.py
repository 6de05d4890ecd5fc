"""
Logging Configuration for the Cell Index.

All modules obtain their logger through :func:`get_logger` so that output
format is uniform across the library. The index itself never decides what
is worth alerting on; it reports boundary fallbacks and query truncation at
DEBUG/INFO so that callers can raise the level when investigating
geometry edge cases.
"""

import logging
import sys


# Configure root logger for the package
def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Get a logger configured for the cell index.

    Parameters
    ----------
    name : str
        Logger name (typically __name__).
    level : int
        Logging level.

    Returns
    -------
    logging.Logger
        Configured logger instance.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            '%(asctime)s | %(name)s | %(levelname)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger


def set_log_level(level: int, prefix: str = "mesh") -> None:
    """Change the level of every already-created logger under a prefix.

    Parameters
    ----------
    level : int
        New logging level (e.g. ``logging.DEBUG``).
    prefix : str
        Logger name prefix, e.g. ``"mesh"`` or ``"mesh.lookup"``.
    """
    for name in list(logging.root.manager.loggerDict):
        if name == prefix or name.startswith(prefix + "."):
            logging.getLogger(name).setLevel(level)
