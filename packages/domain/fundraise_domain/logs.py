"""Loguru sink configuration.

The library only emits records through ``loguru.logger``; applications call
configure_logging once at startup to decide where they go.
"""

import os
import sys

from loguru import logger

from .schemas import LogCFG

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function} | {message}"


def configure_logging(cfg: LogCFG) -> None:
    """Replace all loguru sinks with a stderr sink and optional rotating file.

    Args:
        cfg: Level, file directory, rotation and retention settings
    """
    logger.remove()

    logger.add(
        sys.stderr,
        level=cfg.level,
        format=LOG_FORMAT,
        backtrace=False,
        diagnose=False,
    )

    if cfg.sink_dir:
        os.makedirs(cfg.sink_dir, exist_ok=True)
        logger.add(
            os.path.join(cfg.sink_dir, "fundraise_{time:YYYY-MM-DD}.log"),
            level=cfg.level,
            format=LOG_FORMAT,
            rotation=cfg.rotation,
            retention=cfg.retention,
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )

    logger.debug("Logging configured at level {}", cfg.level)
