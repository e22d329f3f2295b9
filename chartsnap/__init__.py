import logging
import os

from .logging_config import setup_logging

__version__ = "0.1.0"

# Configure logging on import so every chart_snap.* logger shares one handler.
setup_logging(getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO))

__all__ = ["__version__"]
