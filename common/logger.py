import logging
import sys
from typing import Optional

from common.config import yaml_config


def get_logger(name: Optional[str] = None) -> logging.Logger:
    logger = logging.getLogger(name or "cre")
    if logger.handlers:
        return logger
    logger.setLevel(yaml_config.app.log_level.upper())

    handler = logging.StreamHandler(sys.stdout)
    fmt = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
