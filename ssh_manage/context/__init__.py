"""Context management for operations."""

from .operation_context import OperationContext, OperationHandler, operation
from .service_decorators import handle_store_errors

__all__ = [
    "operation",
    "OperationContext",
    "OperationHandler",
    "handle_store_errors",
]
