"""Service layer logging utilities.

Provides structured logging functions for engine operations, enabling
consistent log format and context across validation, expansion, scaling
and catalog operations.

Usage:
    from src.services.logging_utils import configure_logging, get_service_logger, log_operation

    configure_logging(get_config())  # once, at process start
    logger = get_service_logger(__name__)

    log_operation(
        logger,
        operation="expand_recipe",
        outcome="success",
        recipe_id="pasta",
        line_count=12,
    )
"""

import logging
from typing import Any, Optional

from src.utils.constants import LOGGER_ROOT
from src.utils.datetime_utils import to_iso, utc_from_timestamp


class IsoTimestampFormatter(logging.Formatter):
    """Formatter rendering record times as ISO-8601 UTC timestamps."""

    default_format = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"

    def __init__(self, fmt: Optional[str] = None):
        super().__init__(fmt or self.default_format)

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        return to_iso(utc_from_timestamp(record.created), timespec="milliseconds")


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger instance with the 'recipe_cost.services' prefix.

    Example:
        >>> logger = get_service_logger(__name__)
        >>> logger.name
        'recipe_cost.services.recipe_expander'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"{LOGGER_ROOT}.services.{name}")


def configure_logging(config, handler: Optional[logging.Handler] = None) -> logging.Logger:
    """
    Install the engine's log handler and minimum severity.

    Meant to be called once at process start with the Config created there.
    Calling it again replaces the handler rather than adding a second one.

    Args:
        config: Config instance supplying log_level
        handler: Optional handler (defaults to a stderr StreamHandler)

    Returns:
        The configured root engine logger
    """
    root = logging.getLogger(LOGGER_ROOT)
    for existing in list(root.handlers):
        if getattr(existing, "_recipe_cost_handler", False):
            root.removeHandler(existing)

    if handler is None:
        handler = logging.StreamHandler()
    handler.setFormatter(IsoTimestampFormatter())
    handler._recipe_cost_handler = True

    root.addHandler(handler)
    root.setLevel(config.log_level_value)
    return root


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "expand_recipe", "scale_recipe")
        outcome: Outcome description (e.g., "success", "cost_mismatch", "cycle_detected")
        level: Log level (default: INFO). Use DEBUG for verbose/frequent logs.
        **context: Additional context fields (entity IDs, error details, etc.)
            Common fields:
            - recipe_id: Recipe being processed
            - ingredient_name: Ingredient being validated
            - expected / actual: Effective costs compared by the validator
            - path: Recipe id path for cycle and depth failures

    Example:
        >>> log_operation(
        ...     logger,
        ...     operation="validate_ingredient_cost",
        ...     outcome="cost_mismatch",
        ...     level=logging.WARNING,
        ...     ingredient_name="Tomato",
        ...     expected=12.5,
        ...     actual=10.0,
        ... )
        # Logs at WARNING level with the cost context
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)
