"""
Logging setup shared by the admin node and render node processes.

Both processes log to stdout with the component name in every line, and
optionally to a file. Chatty third-party loggers (per-request access lines
from uvicorn, connection pool chatter from urllib3 during relay and heartbeat
calls) are held at WARNING so the registry's own transitions stay readable.
"""

import logging
import sys
from pathlib import Path
from typing import Iterable, Optional, Union

DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
NOISY_LOGGERS = ("urllib3", "uvicorn.access")


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, str):
        return getattr(logging, level.strip().upper(), logging.INFO)
    return int(level)


def setup_logging(
    component_name: str,
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    quiet_loggers: Iterable[str] = NOISY_LOGGERS,
) -> logging.Logger:
    """
    Configure root logging for one render farm process.

    Args:
        component_name: 'admin' or 'render', shown upper-cased in every line
        level: Level number or name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file that receives the same lines as stdout
        format_string: Override for the default line format
        quiet_loggers: Logger names capped at WARNING
    """
    level = _resolve_level(level)
    if format_string is None:
        format_string = f'[%(asctime)s] [{component_name.upper()}] %(levelname)s %(name)s - %(message)s'
    formatter = logging.Formatter(format_string, datefmt=DATE_FORMAT)

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logger = logging.getLogger(component_name)
    logger.info(f"{component_name.upper()} logging initialized (level={logging.getLevelName(level)})")
    return logger
