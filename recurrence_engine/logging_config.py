"""
Central logging configuration for recurrence_engine.

The engine itself only emits records through module loggers
(``logging.getLogger(__name__)``). Applications embedding it call
``configure_logging`` once to pick the level of the engine's loggers.
"""

import logging
import os
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .settings import EngineSettings

ENGINE_MODULES = [
    "recurrence_engine",
    "recurrence_engine.generator",
    "recurrence_engine.overlay",
    "recurrence_engine.materializer",
    "recurrence_engine.occurrence_edits",
    "recurrence_engine.rrule_codec",
    "recurrence_engine.settings",
]

LOG_FORMAT = "[%(asctime)s] %(levelname)s - %(name)s - %(message)s"


def configure_logging(
    debug_mode: bool = False,
    force_debug: Optional[bool] = None,
    level_name: Optional[str] = None,
) -> None:
    """
    Configure logging levels for recurrence_engine modules.

    Args:
        debug_mode: Whether to enable debug logging for engine modules
        force_debug: Override debug mode setting (None to use env var detection)
        level_name: Root log level name used when debug is off (default INFO)

    Environment Variables:
        RECURRENCE_ENGINE_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        RECURRENCE_ENGINE_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("RECURRENCE_ENGINE_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("RECURRENCE_ENGINE_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.INFO
    if level_name and level_name.upper() in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, level_name.upper())
    if final_debug:
        root_level = logging.DEBUG
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    # Keep handlers installed by the host application.
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(handler)

    engine_level = logging.DEBUG if final_debug else logging.INFO
    for module in ENGINE_MODULES:
        logging.getLogger(module).setLevel(engine_level)

    if final_debug:
        root_logger.info("Debug logging enabled for recurrence_engine modules")


def configure_logging_from_settings(settings: "EngineSettings") -> None:
    """Apply the ``debug`` and ``log_level`` fields of ``settings``."""
    configure_logging(debug_mode=settings.debug, level_name=settings.log_level)


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in ENGINE_MODULES:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
