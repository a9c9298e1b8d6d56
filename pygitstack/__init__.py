"""
The main pygitstack package.
"""
import logging
import sys

__version__ = "0.3.2"

# Default format for logs
LOG_FORMAT = '%(asctime)s.%(msecs)03d [%(levelname)s] %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def setup_logging(verbose: int = 0) -> None:
    """Setup logging with appropriate level based on verbosity.

    Args:
        verbose: Verbosity level
            0 = WARNING and above (keeps `list` output clean)
            1 = INFO, shows git/github calls
            2 = DEBUG and above
    """
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove any existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
    logger.addHandler(handler)
