"""Error handling for the Contrato Fácil assistant.

Provides the exception hierarchy and the error conversion decorator used by
the extractor, the Gemini agents and the history store.
"""

import asyncio
from functools import wraps
from typing import Any, Callable, Type
from loguru import logger


# Custom Exception Classes

class ContractExplainerError(Exception):
    """Base exception for all Contrato Fácil errors."""
    pass


class DocumentParsingError(ContractExplainerError):
    """Raised when an uploaded document cannot be read."""
    pass


class UnsupportedFormatError(DocumentParsingError):
    """Raised when the uploaded file extension is not accepted."""
    pass


class AnalysisError(ContractExplainerError):
    """Raised when the contract analysis cannot be produced."""
    pass


class AnalysisRequestError(AnalysisError):
    """Raised when the Gemini analysis request fails."""
    pass


class AnalysisParseError(AnalysisError):
    """Raised when the Gemini response does not match the analysis schema."""
    pass


class HistoryError(ContractExplainerError):
    """Raised when a history operation refers to a missing item."""
    pass


def handle_errors(error_type: Type[ContractExplainerError]) -> Callable:
    """Decorator to convert unexpected errors into a custom exception type.

    Works on both plain and coroutine functions. Exceptions that already
    belong to the ContractExplainerError hierarchy are reraised untouched.

    Args:
        error_type: Custom exception type to raise

    Returns:
        Decorated function with error handling
    """
    def decorator(func: Callable) -> Callable:
        def convert(e: Exception) -> ContractExplainerError:
            logger.error(
                f"Error in {func.__name__}",
                error=str(e),
                error_type=type(e).__name__
            )
            return error_type(f"Error in {func.__name__}: {str(e)}")

        if asyncio.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs) -> Any:
                try:
                    return await func(*args, **kwargs)
                except ContractExplainerError:
                    raise
                except Exception as e:
                    raise convert(e) from e

            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            try:
                return func(*args, **kwargs)
            except ContractExplainerError:
                # Already a custom exception, just reraise
                raise
            except Exception as e:
                raise convert(e) from e

        return wrapper
    return decorator
