"""
Logging for the NFS broker process.

Every line carries the broker tag so that output from the broker, the
mount helpers it shells out to and uvicorn can be told apart when they
share one stdout.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from broker.config import BrokerSettings

DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
BROKER_TAG = "nfsbroker"


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    component_name: str = BROKER_TAG,
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
):
    """
    Replace the root logger's handlers with a stdout handler and, when
    `log_file` is set, a file handler using the same format.

    Args:
        component_name: Tag shown in every line
        level: Logging level, as a number or a name such as 'debug'
        log_file: Optional file path; parent directories are created
        format_string: Custom format string (default provided)
    """
    level = _resolve_level(level)
    if format_string is None:
        format_string = f'[%(asctime)s] [{component_name.upper()}] %(levelname)s %(name)s - %(message)s'

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=level, format=format_string, datefmt=DATE_FORMAT, handlers=handlers, force=True)

    logger = logging.getLogger(component_name)
    logger.info(f"{component_name.upper()} logging initialized (level={logging.getLevelName(level)})")
    return logger


def setup_broker_logging(settings: BrokerSettings):
    """Configure logging from NFSBROKER_LOG_LEVEL / NFSBROKER_LOG_FILE settings."""
    logger = setup_logging(BROKER_TAG, level=settings.log_level, log_file=settings.log_file or None)
    logger.info(
        f"Broker state in {settings.state_dir}, shares under {settings.mount_root} "
        f"({settings.mounter} mounter, {settings.remote_host}:{settings.remote_root})"
    )
    return logger
