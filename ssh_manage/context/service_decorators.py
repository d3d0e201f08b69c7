"""
Service layer decorators for reducing code duplication.

This module provides the decorator that turns low-level driver failures
into RepositoryError so that no raw driver text reaches the caller.
"""

from functools import wraps
from typing import Any, Callable, Optional, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import ErrorCode, RepositoryError

F = TypeVar("F", bound=Callable[..., Any])


def handle_store_errors(operation_name: Optional[str] = None):
    """
    Decorator converting SQLAlchemy errors raised inside a store method.

    The service's ``session`` is rolled back before the RepositoryError is
    raised; errors from this package pass through untouched.

    Args:
        operation_name: Optional name for the operation. If not provided,
                       uses the function name.

    Usage:
        @handle_store_errors("add_profile")
        def add_profile(self, ...):
            ...
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            op_name = operation_name or func.__name__
            try:
                return func(self, *args, **kwargs)
            except SQLAlchemyError as e:
                session = getattr(self, "session", None)
                if session is not None:
                    session.rollback()
                raise RepositoryError(
                    f"Database error in {op_name}",
                    error_code=ErrorCode.DATABASE_ERROR,
                    cause=e,
                    operation=op_name,
                    error_type=type(e).__name__,
                ) from e

        return cast(F, wrapper)

    return decorator
