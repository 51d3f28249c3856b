"""
Shared helpers: logging setup and small formatting utilities.
"""
import logging
from typing import Optional

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_configured = False


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once for the whole application."""
    global _configured
    if _configured:
        logging.getLogger().setLevel(level.upper())
        return
    logging.basicConfig(level=level.upper(), format=_LOG_FORMAT)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a module logger."""
    return logging.getLogger(name)


def mask_secret(secret: Optional[str], visible: int = 8) -> str:
    """Hide all but the first characters of an API key for log output."""
    if not secret:
        return "NOT_SET"
    return f"{secret[:visible]}..."
