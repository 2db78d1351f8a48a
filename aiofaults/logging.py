"""
Logging for aiofaults.

The library never writes anywhere on its own: the ``aiofaults`` logger carries
only a NullHandler and does not propagate. Applications opt in with either

* ``configure_logging()`` to attach a standard ``logging`` handler, or
* ``set_error_handler()`` to receive every failure the pipeline absorbs
  (fault bus publish errors, post-processing handler errors, event handler
  errors) in their own logging stack.

Example:
    import structlog
    from aiofaults import set_error_handler

    def report(name, exc, ctx):
        structlog.get_logger().error("fault_pipeline_error", module=name, error=str(exc), **ctx)

    set_error_handler(report)
"""

import logging
from typing import Any, Callable, Optional

ErrorHandler = Callable[[str, Exception, dict], None]

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

_library_logger = logging.getLogger('aiofaults')
_error_handler: Optional[ErrorHandler] = None


def _reset_handlers(handler: logging.Handler) -> None:
    _library_logger.handlers.clear()
    _library_logger.addHandler(handler)
    _library_logger.propagate = False


_reset_handlers(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """Logger for a module inside the package (pass ``__name__``)"""
    return logging.getLogger(name)


def set_error_handler(handler: Optional[ErrorHandler]) -> None:
    """
    Route absorbed pipeline failures to ``handler(logger_name, exception, context)``.

    Pass None to go back to the standard logger.
    """
    global _error_handler
    _error_handler = handler


def configure_logging(
    level: int = logging.INFO,
    handler: Optional[logging.Handler] = None,
    format_string: Optional[str] = None
) -> None:
    """
    Send aiofaults log records to a standard handler.

    Args:
        level: Minimum level for the ``aiofaults`` logger
        handler: Handler to attach (StreamHandler to stderr when omitted)
        format_string: Formatter pattern (DEFAULT_FORMAT when omitted)

    Example:
        configure_logging(logging.WARNING, handler=logging.FileHandler('faults.log'))
    """
    handler = handler or logging.StreamHandler()
    handler.setFormatter(logging.Formatter(format_string or DEFAULT_FORMAT))
    _reset_handlers(handler)
    _library_logger.setLevel(level)


def disable_logging() -> None:
    """Back to the silent default: NullHandler only, no error handler"""
    global _error_handler
    _error_handler = None
    _reset_handlers(logging.NullHandler())


def log_error(logger_name: str, exception: Exception, **context: Any) -> None:
    """
    Report a failure the pipeline absorbed instead of raising.

    Goes to the error handler when one is set, otherwise to the ``aiofaults``
    logger at WARNING level.

    Args:
        logger_name: Reporting module, e.g. ``'aiofaults.manager'``
        exception: The absorbed exception
        **context: Extra fields such as ``exception_id`` or ``handler``
    """
    if _error_handler is None:
        _library_logger.warning(
            f"[{logger_name}] {type(exception).__name__}: {exception}",
            extra={"fault_context": context},
        )
        return

    try:
        _error_handler(logger_name, exception, context)
    except Exception as handler_error:
        # a broken error handler must not break the pipeline
        _library_logger.debug(
            f"[{logger_name}] error handler raised {type(handler_error).__name__}; "
            f"original error: {type(exception).__name__}: {exception}"
        )


def is_logging_enabled() -> bool:
    """True when an error handler or a non-null handler is configured"""
    return _error_handler is not None or any(
        not isinstance(h, logging.NullHandler) for h in _library_logger.handlers
    )
