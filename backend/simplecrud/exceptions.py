"""
simple-crud — Custom Exception Hierarchy
=========================================

What:  Application-specific exceptions for store and infrastructure failures.
How:   Each exception carries a message and optional context dict.
       Global exception handlers (registered in main.py) turn anything that
       escapes a request into a 500 envelope; the repository turns a rejected
       update into a 400 envelope itself.
Who:   Raised by the document store client; caught by the repository and the
       global handlers.

Exception Hierarchy:
    SimpleCrudError (base)
    └── StoreError               → 500 (fatal to the request, not the process)
        ├── StoreTimeoutError    → 500 (per-operation timeout expired)
        ├── DuplicateKeyError    → 500 (concurrent first insert lost the race)
        └── WriteError           → 400 (update document rejected; handled by the repository)

Client input problems (bad JSON, unsupported method) are not exceptions:
they are ordinary envelopes built by the dispatcher.
"""

from typing import Any, Dict, Optional


class SimpleCrudError(Exception):
    """
    Base exception for all simple-crud application errors.

    Attributes:
        message:  Human-readable description
        context:  Additional debug info (logged, never returned to the client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class StoreError(SimpleCrudError):
    """
    Raised when a document store operation fails.

    When:    Connection lost, query failed, pool exhausted, driver error.
    HTTP:    500 Internal Server Error (generic message; details are logged)
    """

    def __init__(
        self,
        message: str = "Document store operation failed",
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if operation:
            ctx["operation"] = operation
        super().__init__(message=message, context=ctx)
        self.operation = operation


class StoreTimeoutError(StoreError):
    """Raised when a single store operation exceeds STORE_TIMEOUT."""

    def __init__(
        self,
        operation: str,
        timeout: float,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["timeout"] = timeout
        super().__init__(
            message=f"Store operation '{operation}' timed out after {timeout}s",
            operation=operation,
            context=ctx,
        )
        self.timeout = timeout


class DuplicateKeyError(StoreError):
    """
    Raised when an insert collides with an existing document for the same path.

    When:    Two requests both saw "not found" for a new path and both inserted;
             the unique constraint on `path` rejects the second one.
    """

    def __init__(self, path: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["path"] = path
        super().__init__(
            message=f"A document for path '{path}' already exists",
            operation="insert_one",
            context=ctx,
        )
        self.path = path


class WriteError(StoreError):
    """
    Raised when the store rejects an update document.

    What:    Malformed update operators, non-operator keys, type mismatches
             or an attempt to modify the reserved `path` field.
    HTTP:    400 Bad Request, with `message` as the envelope text
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, operation="update_one", context=context)
