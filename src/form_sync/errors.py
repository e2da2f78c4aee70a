"""
errors.py - Domain-specific exceptions for form_sync.

All exceptions inherit from FormSyncError for unified handling.
Each exception type represents a distinct failure mode.
"""

from typing import Any


class FormSyncError(Exception):
    """Base exception for all form_sync errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} [{context_str}]"
        return self.message


class InvalidNameInputError(FormSyncError):
    """
    Raised when a table or view name cannot be derived.

    This happens when the naming scheme is handed a missing form,
    a form or account without a row id, or an empty repeatable key.
    """

    def __init__(self, message: str, field: str | None = None, value: Any = None) -> None:
        context = {}
        if field is not None:
            context["field"] = field
        if value is not None:
            context["value"] = repr(value)[:100]
        super().__init__(message, context=context)
        self.field = field
        self.value = value


class UnsupportedFieldTypeError(FormSyncError):
    """
    Raised when an element type has no column or serialization rule.

    Fields are never dropped silently: generating a schema or a record
    statement for an unknown type fails instead.
    """

    def __init__(
        self, message: str, element_type: str | None = None, element_key: str | None = None
    ) -> None:
        context = {}
        if element_type is not None:
            context["element_type"] = element_type
        if element_key is not None:
            context["element_key"] = element_key
        super().__init__(message, context=context)
        self.element_type = element_type
        self.element_key = element_key


class StatementFailedError(FormSyncError):
    """
    Raised when the store rejects a DDL or DML statement.

    The full statement is kept on the exception; the string form
    truncates it for readability.
    """

    def __init__(
        self, message: str, sql: str | None = None, operation: str | None = None
    ) -> None:
        context = {}
        if operation is not None:
            context["operation"] = operation
        if sql is not None:
            # Truncate long SQL for readability
            context["sql"] = sql[:200] + "..." if len(sql) > 200 else sql
        super().__init__(message, context=context)
        self.sql = sql
        self.operation = operation


class AccountNotFoundError(FormSyncError):
    """Raised when a sync is requested for an unknown organization."""

    def __init__(self, org: str) -> None:
        super().__init__(f"Unable to find account {org!r}", context={"org": org})
        self.org = org


class SourceError(FormSyncError):
    """
    Raised when the host export cannot be read.

    This includes missing files, invalid JSON and documents that do
    not match the expected export layout.
    """

    def __init__(self, message: str, path: str | None = None, reason: str | None = None) -> None:
        context = {}
        if path is not None:
            context["path"] = path
        if reason is not None:
            context["reason"] = reason
        super().__init__(message, context=context)
        self.path = path
        self.reason = reason
