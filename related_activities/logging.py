# Structured logging for related_activities
# Doubles as the diagnostics sink handed to the pipeline

import functools
import logging
from typing import Any, Callable, Dict, Optional

NAMESPACE = "related_activities"

DEFAULT_LOGGER = logging.getLogger(NAMESPACE)


class StructuredLogger:
    """
    Logger that attaches a metadata dict to every record it emits.

    The metadata ends up on the ``LogRecord`` as ``record.metadata`` so that
    handlers and formatters can render it however the host prefers.
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        default_metadata: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize a structured logger.

        Args:
            logger: Logger instance to use (defaults to the related_activities logger)
            default_metadata: Metadata merged into every message
        """
        self.logger = logger or DEFAULT_LOGGER
        self.default_metadata = default_metadata or {}

    def bind(self, **metadata: Any) -> "StructuredLogger":
        """Return a logger sharing this one's target with extra default metadata."""
        return StructuredLogger(
            logger=self.logger,
            default_metadata={**self.default_metadata, **metadata}
        )

    def _log(
        self,
        level: int,
        msg: str,
        metadata: Optional[Dict[str, Any]] = None,
        *args,
        **kwargs
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return

        combined_metadata = {**self.default_metadata}
        if metadata:
            combined_metadata.update(metadata)

        extra = kwargs.get("extra", {})
        extra["metadata"] = combined_metadata
        kwargs["extra"] = extra

        self.logger.log(level, msg, *args, **kwargs)

    def debug(self, msg: str, metadata: Optional[Dict[str, Any]] = None, *args, **kwargs) -> None:
        """Log a debug message with metadata."""
        self._log(logging.DEBUG, msg, metadata, *args, **kwargs)

    def info(self, msg: str, metadata: Optional[Dict[str, Any]] = None, *args, **kwargs) -> None:
        """Log an info message with metadata."""
        self._log(logging.INFO, msg, metadata, *args, **kwargs)

    def warning(self, msg: str, metadata: Optional[Dict[str, Any]] = None, *args, **kwargs) -> None:
        """Log a warning message with metadata."""
        self._log(logging.WARNING, msg, metadata, *args, **kwargs)

    def error(self, msg: str, metadata: Optional[Dict[str, Any]] = None, *args, **kwargs) -> None:
        """Log an error message with metadata."""
        self._log(logging.ERROR, msg, metadata, *args, **kwargs)


def get_logger(
    name: Optional[str] = None,
    default_metadata: Optional[Dict[str, Any]] = None
) -> StructuredLogger:
    """
    Get a structured logger.

    Args:
        name: Logger name (appended to the 'related_activities' namespace)
        default_metadata: Default metadata to include with all log messages

    Returns:
        StructuredLogger instance
    """
    logger_name = f"{NAMESPACE}.{name}" if name else NAMESPACE
    return StructuredLogger(
        logger=logging.getLogger(logger_name),
        default_metadata=default_metadata
    )


def with_logging(
    func: Optional[Callable] = None,
    *,
    logger: Optional[StructuredLogger] = None,
    level: int = logging.DEBUG
) -> Callable:
    """
    Decorator that logs each call of the wrapped function and any exception it raises.

    Exceptions are logged and re-raised unchanged.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            nonlocal logger
            if logger is None:
                logger = get_logger(func.__module__.removeprefix(f"{NAMESPACE}."))

            logger._log(
                level,
                f"Calling {func.__qualname__}",
                metadata={"function": func.__qualname__}
            )

            try:
                return func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"Exception in {func.__qualname__}: {e}",
                    metadata={
                        "function": func.__qualname__,
                        "exception": str(e),
                        "exception_type": type(e).__name__
                    }
                )
                raise

        return wrapper

    if func is None:
        return decorator
    return decorator(func)
