"""Logging for the orchestration engine.

Every module logs through get_logger(__name__), so all records land under
the "llm_orchestrator" logger. setup_logging() attaches the single stderr
handler and keeps the provider SDKs' own HTTP chatter down unless debugging.
"""

import logging
import sys

from .config import get_settings

ROOT_LOGGER = "llm_orchestrator"

# third-party loggers that log every request at INFO
SDK_LOGGERS = ("httpx", "httpcore", "anthropic", "openai", "google_genai", "together")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def resolve_level(level: str | None = None) -> int:
    """Numeric level from the CLI flag, else Settings.log_level.

    Unknown names fall back to WARNING with a notice on stderr.
    """
    name = (level or get_settings().log_level or "WARNING").upper()
    numeric = logging.getLevelName(name)
    if not isinstance(numeric, int):
        print(f"Warning: Invalid log level '{name}', using WARNING", file=sys.stderr)
        return logging.WARNING
    return numeric


def setup_logging(level: str | None = None) -> logging.Logger:
    """Configure the engine's logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR). Defaults to
            the LLM_ORCHESTRATOR_LOG_LEVEL setting.

    Returns:
        The "llm_orchestrator" logger.
    """
    numeric = resolve_level(level)
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(numeric)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
    for handler in logger.handlers:
        handler.setLevel(numeric)

    sdk_level = logging.DEBUG if numeric <= logging.DEBUG else logging.WARNING
    for name in SDK_LOGGERS:
        logging.getLogger(name).setLevel(sdk_level)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a module; names outside the package are nested under it."""
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
