"""Logging configuration using Loguru for structured logging.

Provides session-aware logging with JSON formatting, rotation, and retention policies.
"""

import sys
import time
import asyncio
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Optional
from loguru import logger


def setup_logging(
    log_dir: str = "logs",
    level: str = "INFO",
    rotation: str = "50 MB",
    retention: str = "14 days",
    compression: str = "zip"
) -> None:
    """Configure Loguru sinks for console, application, JSON and error logs.

    Args:
        log_dir: Directory for log files
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        rotation: When to rotate log files
        retention: How long to keep old logs
        compression: Compression format for rotated logs
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    # Remove default handler
    logger.remove()

    # Console handler with colored output
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>",
        level=level,
        colorize=True
    )

    logger.add(
        log_path / "contrato_facil_{time}.log",
        format="{time} | {level} | {name}:{function}:{line} | {message}",
        level=level,
        rotation=rotation,
        retention=retention,
        compression=compression
    )

    # JSON structured log for parsing and analysis
    logger.add(
        log_path / "contrato_facil_json_{time}.log",
        level=level,
        rotation=rotation,
        retention=retention,
        compression=compression,
        serialize=True
    )

    # Error-only log file
    logger.add(
        log_path / "errors_{time}.log",
        format="{time} | {level} | {name}:{function}:{line} | {message}",
        level="ERROR",
        rotation=rotation,
        retention=retention,
        compression=compression
    )

    logger.info("Logging system initialized", log_dir=log_dir, level=level)


def get_session_logger(session_id: str, component: Optional[str] = None):
    """Get a logger bound to a workspace session and optionally a component.

    Args:
        session_id: Session identifier (history item id or "workspace")
        component: Optional component name, e.g. "ContractAnalysisAgent"

    Returns:
        Logger instance with session context
    """
    context = {"session_id": session_id}
    if component:
        context["component"] = component
    return logger.bind(**context)


def log_agent_execution(agent_name: str) -> Callable:
    """Decorator to log agent method execution with timing.

    Coroutine functions are awaited inside the timing window.

    Args:
        agent_name: Name of the agent being executed

    Returns:
        Decorated function with logging
    """
    def decorator(func: Callable) -> Callable:
        def started(kwargs):
            agent_logger = get_session_logger(kwargs.get("session_id", "workspace"), agent_name)
            agent_logger.info(f"Starting {agent_name} execution", function=func.__name__)
            return agent_logger, time.time()

        def finished(agent_logger, start_time):
            agent_logger.info(
                f"{agent_name} completed successfully",
                function=func.__name__,
                duration_seconds=round(time.time() - start_time, 3)
            )

        def failed(agent_logger, e):
            agent_logger.error(
                f"{agent_name} failed with error",
                function=func.__name__,
                error=str(e),
                error_type=type(e).__name__
            )

        if asyncio.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs) -> Any:
                agent_logger, start_time = started(kwargs)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    failed(agent_logger, e)
                    raise
                finished(agent_logger, start_time)
                return result

            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            agent_logger, start_time = started(kwargs)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                failed(agent_logger, e)
                raise
            finished(agent_logger, start_time)
            return result

        return wrapper
    return decorator


def log_tool_execution(tool_name: str) -> Callable:
    """Decorator to log tool execution.

    Args:
        tool_name: Name of the tool being executed

    Returns:
        Decorated function with logging
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            logger.debug(f"Executing tool: {tool_name}", function=func.__name__)

            try:
                result = func(*args, **kwargs)
                logger.debug(f"Tool {tool_name} completed", function=func.__name__)
                return result

            except Exception as e:
                logger.error(
                    f"Tool {tool_name} failed",
                    function=func.__name__,
                    error=str(e),
                    error_type=type(e).__name__
                )
                raise

        return wrapper
    return decorator
