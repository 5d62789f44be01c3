"""
Logging setup for the ``finledger`` package.

Entrypoints call ``configure_logging()`` once at startup. Library modules only
ever do ``logging.getLogger(__name__)`` and never attach handlers themselves.
"""
import logging
import sys
from typing import IO, Optional, Union

PACKAGE_LOGGER = "finledger"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def _parse_level(level: Union[int, str, None]) -> int:
     if isinstance(level, int):
          return level
     if isinstance(level, str):
          name = level.strip().upper()
          if name.isdigit():
               return int(name)
          numeric = getattr(logging, name, None)
          if isinstance(numeric, int):
               return numeric
     return logging.INFO


def configure_logging(
     level: Union[int, str, None] = None,
     fmt: Optional[str] = None,
     stream: IO[str] = sys.stderr,
) -> logging.Logger:
     """Attach a single StreamHandler to the package logger (idempotent)."""
     global _configured
     logger = logging.getLogger(PACKAGE_LOGGER)
     if _configured:
          return logger

     handler = logging.StreamHandler(stream)
     handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
     logger.addHandler(handler)
     logger.setLevel(_parse_level(level))
     logger.propagate = False

     _configured = True
     return logger
