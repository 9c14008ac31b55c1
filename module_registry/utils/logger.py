"""
Logger
Structured logging for the module registry.

Every component gets its own named logger; children share their parent's
level so one LOG_LEVEL setting covers the store, the sources and the build.
"""

import logging
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _level(level: str) -> int:
    return getattr(logging, level.upper(), logging.DEBUG)


class Logger:
    """Simple logger wrapper with structured logging support."""
    
    def __init__(self, name: str = "module-registry", level: str = "DEBUG"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(_level(level))
        
        # Only add handler if none exist
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setLevel(_level(level))
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            self.logger.addHandler(handler)
            # Children log through their own handler
            self.logger.propagate = "." not in name
    
    @property
    def name(self) -> str:
        return self.logger.name
    
    def child(self, suffix: str) -> "Logger":
        """Logger for a sub-component, sharing this logger's level."""
        return Logger(f"{self.logger.name}.{suffix}", level=logging.getLevelName(self.logger.level))
    
    def debug(self, message: str, extra: Optional[dict] = None):
        self.logger.debug(message, extra=extra)
    
    def info(self, message: str, extra: Optional[dict] = None):
        self.logger.info(message, extra=extra)
    
    def warning(self, message: str, extra: Optional[dict] = None):
        self.logger.warning(message, extra=extra)
    
    def error(self, message: str, extra: Optional[dict] = None, exc_info: bool = False):
        self.logger.error(message, extra=extra, exc_info=exc_info)
    
    def isEnabledFor(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)
