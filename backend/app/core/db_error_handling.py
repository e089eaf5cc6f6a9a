"""
Database error handling utilities.

Centralizes the pattern used by write endpoints:
1. Roll back the session on error
2. Log the error with context
3. Raise an appropriate HTTPException

Domain errors (IPAError) and HTTPExceptions raised inside the block pass
through untouched so their own status codes reach the client.

Usage:
    from app.core.db_error_handling import handle_db_error

    async with handle_db_error(db, "create template"):
        template = await create_template(db, data, created_by=user.id)
        return template_to_response(template)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.error_responses import ErrorMessages
from app.core.exceptions import IPAError

logger = logging.getLogger(__name__)


class DatabaseOperationError(Exception):
    """Exception raised when a database operation fails.

    For non-HTTP contexts (scripts, library callers) where HTTPException
    is not appropriate.

    Attributes:
        operation_name: Human-readable name of the operation that failed
        original_error: The underlying exception that caused the failure
        message: The formatted error message
    """

    def __init__(
        self,
        operation_name: str,
        original_error: Exception,
        message: Optional[str] = None,
    ):
        self.operation_name = operation_name
        self.original_error = original_error
        self.message = message or f"Failed to {operation_name}: {str(original_error)}"
        super().__init__(self.message)


@asynccontextmanager
async def handle_db_error(
    db: AsyncSession,
    operation_name: str,
    *,
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    log_level: int = logging.ERROR,
    detail: Optional[str] = None,
) -> AsyncGenerator[None, None]:
    """Async context manager for handling database errors consistently.

    Args:
        db: The session to roll back on error.
        operation_name: Human-readable name of the operation for error messages
            and logging (e.g., "create template").
        status_code: HTTP status code to use in the raised HTTPException.
        log_level: Logging level for error messages.
        detail: Client-facing message, defaults to a generic one built from
            operation_name.

    Raises:
        HTTPException: On any unexpected exception, with the session rolled
            back. The detail never includes the underlying error text.
    """
    try:
        yield
    except (HTTPException, IPAError):
        raise
    except Exception as e:
        await db.rollback()

        logger.log(
            log_level,
            f"Database error during {operation_name}: {e}",
            exc_info=True,
        )

        raise HTTPException(
            status_code=status_code,
            detail=detail or ErrorMessages.database_operation_failed(operation_name),
        )


async def run_db_operation(db: AsyncSession, operation_name: str, coro):
    """
    Await a store coroutine and wrap unexpected failures.

    Non-HTTP counterpart of handle_db_error: rolls back and raises
    DatabaseOperationError instead of HTTPException. Domain errors propagate.

    Args:
        db: Session the coroutine runs against
        operation_name: Human-readable name of the operation
        coro: The awaitable to run

    Returns:
        Whatever the awaitable returns
    """
    try:
        return await coro
    except IPAError:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Database error during {operation_name}: {e}", exc_info=True)
        raise DatabaseOperationError(operation_name, e) from e
